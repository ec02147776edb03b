"""
sponsored-wallet - admin CLI.

Commands:
  encode KEY       print the bech32m / short / hex encodings of a coin key
  resolve ADDRESS  decode any accepted address form to the raw key hex
  simulate SENDER  run ``increment`` on an in-memory contract per sender
  demo             sponsor-pays-prover-proves walkthrough on the local devnet
  serve            run the HTTP service (uvicorn)

Examples:
  sponsored-wallet encode 1111111111111111111111111111111111111111111111111111111111111111
  sponsored-wallet resolve cpk:ERERERERERERERERERERERERERERERERERERERERERE
  sponsored-wallet demo --plan A,A,B
"""

from __future__ import annotations

import asyncio
import json
from typing import Dict, List, Optional

import typer

from sponsored_wallet.address import DEFAULT_NETWORK_ID, encode_all, resolve
from sponsored_wallet.config import Settings, load_config
from sponsored_wallet.contract.simulator import CounterSimulator
from sponsored_wallet.errors import ApiError
from sponsored_wallet.logging import setup_logging

app = typer.Typer(
    name="sponsored-wallet",
    help="Sponsored wallet: address tools, devnet demo and service launcher",
    no_args_is_help=True,
    add_completion=False,
)


def _fail(err: ApiError) -> None:
    typer.echo(json.dumps(err.to_problem(), indent=2), err=True)
    raise typer.Exit(code=1)


@app.command("encode")
def encode_cmd(
    key: str = typer.Argument(..., help="Coin public key (any accepted form)"),
    network: str = typer.Option(DEFAULT_NETWORK_ID, "--network", "-n", help="Network id for the bech32m HRP"),
) -> None:
    """Print every encoding of a coin public key."""
    try:
        k = resolve(key, network)
    except ApiError as e:
        _fail(e)
    typer.echo(json.dumps(encode_all(k, network), indent=2))


@app.command("resolve")
def resolve_cmd(
    address: str = typer.Argument(..., help="bech32m, cpk: short form, or 64-char hex"),
    network: str = typer.Option(DEFAULT_NETWORK_ID, "--network", "-n"),
) -> None:
    """Decode an address to the raw coin public key (hex)."""
    try:
        typer.echo(resolve(address, network).hex())
    except ApiError as e:
        _fail(e)


@app.command("simulate")
def simulate_cmd(
    senders: List[str] = typer.Argument(..., help="Sender keys (hex), one increment each, in order"),
) -> None:
    """Run increments directly against an in-memory counter contract."""
    sim = CounterSimulator()
    try:
        for s in senders:
            sim.increment(s)
    except ValueError as e:
        typer.echo(f"invalid sender: {e}", err=True)
        raise typer.Exit(code=1)
    ledger = sim.get_ledger().snapshot()
    typer.echo(json.dumps({k.hex(): v for k, v in sorted(ledger.items())}, indent=2))


async def _run_demo(cfg: Settings, plan: List[str]) -> Dict[str, object]:
    from sponsored_wallet.adapters.local_chain import SimulatedWallet
    from sponsored_wallet.services.sponsor import build_local_session

    session = build_local_session(cfg)
    provers: Dict[str, SimulatedWallet] = {}
    txs: List[Dict[str, object]] = []
    for label in plan:
        if label.lower() == "sponsor":
            result = await session.increment(None)
        else:
            prover = provers.setdefault(label, SimulatedWallet.random())
            result = await session.increment(prover)
        txs.append({"as": label, "txId": result.tx_id, "stages": [s.value for s in result.stages]})

    counters: Dict[str, int] = {}
    for label, prover in provers.items():
        _, counters[label] = await session.counter(prover.coin_public_key.hex())
    _, counters["sponsor"] = await session.counter(None)
    return {
        "sponsor": session.provider.sponsor_identity.coin_public_key.hex(),
        "sponsorBalance": session.provider.sponsor.balance,
        "transactions": txs,
        "counters": counters,
    }


@app.command("demo")
def demo_cmd(
    plan: str = typer.Option("A,A,B", "--plan", help="Comma list of prover labels; 'sponsor' increments the sponsor"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Console logs"),
) -> None:
    """Unfunded provers increment their own counters while the sponsor pays."""
    setup_logging(level="DEBUG" if verbose else "WARNING", log_format="console")
    labels = [p.strip() for p in plan.split(",") if p.strip()]
    if not labels:
        typer.echo("plan must name at least one prover", err=True)
        raise typer.Exit(code=2)
    cfg = load_config().model_copy(update={"wallet_mode": "local"})
    try:
        out = asyncio.run(_run_demo(cfg, labels))
    except ApiError as e:
        _fail(e)
    typer.echo(json.dumps(out, indent=2))


@app.command("serve")
def serve_cmd(
    host: str = typer.Option("127.0.0.1", "--host"),
    port: int = typer.Option(8080, "--port"),
    workers: int = typer.Option(1, "--workers"),
    reload: bool = typer.Option(False, "--reload"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
) -> None:
    """Run the HTTP service."""
    from sponsored_wallet.main import serve

    serve(host=host, port=port, workers=workers, reload=reload, log_level=(log_level or "info").lower())


def main() -> None:
    app()


if __name__ == "__main__":
    main()
