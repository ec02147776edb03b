"""
Sponsor session: the service-level entrypoint routers and the CLI call.

A session owns one sponsor :class:`WalletProvider`, the process's
:class:`OverrideContext`, a :class:`TransactionPipeline` and a ledger source.
All transaction work goes through one ``asyncio.Lock`` so the sequence

    activate(prover) -> pipeline -> deactivate

never interleaves with another request's, and the override is always cleared
afterwards, even when the pipeline fails.

``build_session(cfg)`` wires the collaborators for ``WALLET_MODE``:

- ``local``  : LocalChain devnet + SimulatedWallet sponsor (seeded from
  ``SPONSOR_SEED`` or random), contract deployed at ``CONTRACT_ADDRESS``;
- ``remote`` : RemoteWallet sponsor over ``WALLET_RPC_URL`` and an indexer
  ledger source over ``INDEXER_URL``.
"""

from __future__ import annotations

import asyncio
import secrets
from typing import Any, Dict, List, Optional, Tuple

from sponsored_wallet.adapters.local_chain import LocalChain, SimulatedWallet
from sponsored_wallet.config import Settings
from sponsored_wallet.errors import BadRequest, NotFound
from sponsored_wallet.logging import get_logger
from sponsored_wallet.pipeline import (PipelineResult, StageObserver,
                                       TransactionPipeline)
from sponsored_wallet.query import LedgerSource, read_counter, resolve_or_own
from sponsored_wallet.transactions import ProvenTransaction
from sponsored_wallet.wallet.identity import CoinPublicKey, Identity
from sponsored_wallet.wallet.override import OverrideContext, OverrideState
from sponsored_wallet.wallet.provider import WalletProvider
from sponsored_wallet.wallet.runtime import WalletRuntime

log = get_logger(__name__)

__all__ = ["SponsorSession", "build_session", "build_local_session"]


class SponsorSession:
    def __init__(
        self,
        provider: WalletProvider,
        ctx: OverrideContext,
        ledger: LedgerSource,
        *,
        contract_address: str,
        network_id: str,
        observer: Optional[StageObserver] = None,
        closeables: Optional[List[Any]] = None,
    ) -> None:
        self.provider = provider
        self.ctx = ctx
        self.ledger = ledger
        self.contract_address = contract_address
        self.network_id = network_id
        self.pipeline = TransactionPipeline(
            provider, ctx, contract_address=contract_address, observer=observer
        )
        self._lock = asyncio.Lock()
        self._closeables = list(closeables or [])

    def set_observer(self, observer: Optional[StageObserver]) -> None:
        self.pipeline.observer = observer

    # ---- transactions ----

    async def increment(self, prover: Optional[WalletRuntime] = None) -> PipelineResult:
        """
        Increment the counter of ``prover`` (or of the sponsor when None),
        with the sponsor paying and submitting.
        """
        async with self._lock:
            try:
                if prover is None:
                    self.ctx.deactivate()
                else:
                    await self.ctx.activate(prover)
                return await self.pipeline.increment()
            finally:
                self.ctx.deactivate()

    async def submit_proven(self, tx: ProvenTransaction, signer: Identity) -> PipelineResult:
        """Relay a transaction proven by ``signer``; the sponsor submits it."""
        if bytes(signer.coin_public_key) != bytes(tx.prover):
            raise BadRequest(
                "signer does not match the transaction's prover",
                details={"signer": signer.coin_public_key.hex(), "prover": tx.prover.hex()},
            )
        async with self._lock:
            return await self.pipeline.submit_only(tx)

    # ---- reads ----

    async def counter(self, address: Optional[str] = None) -> Tuple[CoinPublicKey, int]:
        """Counter for ``address`` (any accepted form), or for the current identity."""
        key = resolve_or_own(address, self.provider, self.ctx, self.network_id)
        count = await read_counter(self.ledger, self.contract_address, key)
        return key, count

    def override_state(self) -> OverrideState:
        return self.ctx.current()

    def identity_info(self) -> Dict[str, Any]:
        return {
            "sponsor": self.provider.sponsor_identity.to_dict(),
            "current": self.provider.identity(self.ctx).to_dict(),
            "overrideActive": self.ctx.active,
        }

    async def aclose(self) -> None:
        for c in self._closeables:
            close = getattr(c, "close", None)
            if close is not None:
                await close()
        self._closeables.clear()


def build_local_session(cfg: Settings, *, chain: Optional[LocalChain] = None) -> SponsorSession:
    """Local devnet session. The simulated sponsor is synced on creation."""
    chain = chain or LocalChain(fee=cfg.local_tx_fee)
    try:
        chain.contract(cfg.contract_address)
    except NotFound:
        chain.deploy(cfg.contract_address)
    seed = bytes.fromhex(cfg.sponsor_seed) if cfg.sponsor_seed else secrets.token_bytes(32)
    sponsor = SimulatedWallet(seed, chain=chain, balance=cfg.local_sponsor_balance)
    provider = WalletProvider(sponsor, sponsor.identity)
    ctx = OverrideContext(timeout_s=cfg.sync_timeout_s, poll_interval_s=cfg.sync_poll_interval_s)
    log.info("session_ready", mode="local", sponsor=sponsor.coin_public_key.short(), contract=cfg.contract_address)
    return SponsorSession(
        provider,
        ctx,
        chain,
        contract_address=cfg.contract_address,
        network_id=cfg.network_id,
    )


async def build_session(cfg: Settings) -> SponsorSession:
    if cfg.wallet_mode == "local":
        return build_local_session(cfg)

    from sponsored_wallet.adapters.jsonrpc import JsonRpcConfig
    from sponsored_wallet.adapters.node_rpc import IndexerLedgerSource, NodeRpc
    from sponsored_wallet.adapters.wallet_rpc import RemoteWallet

    sponsor = RemoteWallet.from_url(
        cfg.wallet_rpc_url, timeout_s=cfg.rpc_timeout_s, max_retries=cfg.rpc_max_retries
    )
    ledger = IndexerLedgerSource(
        NodeRpc(JsonRpcConfig(url=cfg.indexer_url, timeout_s=cfg.rpc_timeout_s, max_retries=cfg.rpc_max_retries))
    )
    try:
        provider = await WalletProvider.create(
            sponsor,
            timeout_s=cfg.sync_timeout_s,
            poll_interval_s=cfg.sync_poll_interval_s,
            min_balance=cfg.sponsor_min_balance,
        )
    except BaseException:
        await sponsor.close()
        await ledger.close()
        raise
    ctx = OverrideContext(timeout_s=cfg.sync_timeout_s, poll_interval_s=cfg.sync_poll_interval_s)
    log.info("session_ready", mode="remote", wallet=cfg.wallet_rpc_url, indexer=cfg.indexer_url)
    return SponsorSession(
        provider,
        ctx,
        ledger,
        contract_address=cfg.contract_address,
        network_id=cfg.network_id,
        closeables=[sponsor, ledger],
    )
