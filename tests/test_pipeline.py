from __future__ import annotations

import pytest

from sponsored_wallet.adapters.local_chain import LocalChain, SimulatedWallet
from sponsored_wallet.errors import InsufficientFunds, ProofFailed
from sponsored_wallet.pipeline import Stage, TransactionPipeline
from sponsored_wallet.wallet.override import OverrideContext
from sponsored_wallet.wallet.provider import WalletProvider

CONTRACT = "0x" + "00" * 31 + "01"


def _pipeline(chain: LocalChain, sponsor: SimulatedWallet, observer=None):
    ctx = OverrideContext(timeout_s=0.5, poll_interval_s=0.01)
    provider = WalletProvider(sponsor, sponsor.identity)
    return TransactionPipeline(provider, ctx, contract_address=CONTRACT, observer=observer), ctx


@pytest.fixture()
def deployed(chain: LocalChain) -> LocalChain:
    chain.deploy(CONTRACT)
    return chain


@pytest.mark.asyncio
async def test_stages_run_in_order(deployed):
    sponsor = SimulatedWallet(b"sponsor", chain=deployed, balance=50)
    seen = []
    pipeline, _ = _pipeline(deployed, sponsor, observer=lambda s, o: seen.append((s, o)))

    result = await pipeline.increment()

    assert result.stages == (Stage.BUILT, Stage.BALANCED, Stage.PROVEN, Stage.SUBMITTED)
    assert result.stage is Stage.SUBMITTED
    assert result.tx_id.startswith("0x")
    assert not result.overridden
    assert seen == [("built", "ok"), ("balanced", "ok"), ("proven", "ok"), ("submitted", "ok")]
    assert deployed.contract(CONTRACT).counters.lookup(sponsor.coin_public_key) == 1


@pytest.mark.asyncio
async def test_override_picks_prover_and_caller(deployed, prover_a):
    sponsor = SimulatedWallet(b"sponsor", chain=deployed, balance=50)
    pipeline, ctx = _pipeline(deployed, sponsor)
    await ctx.activate(prover_a)

    result = await pipeline.increment()

    assert result.overridden
    assert result.submitted.proven.prover == prover_a.coin_public_key
    counters = deployed.contract(CONTRACT).counters
    assert counters.lookup(prover_a.coin_public_key) == 1
    assert not counters.member(sponsor.coin_public_key)
    assert sponsor.balance == 50 - deployed.fee


@pytest.mark.asyncio
async def test_balance_failure_aborts_before_chain(deployed):
    sponsor = SimulatedWallet(b"poor", chain=deployed, balance=deployed.fee - 1)
    seen = []
    pipeline, _ = _pipeline(deployed, sponsor, observer=lambda s, o: seen.append((s, o)))

    with pytest.raises(InsufficientFunds) as ei:
        await pipeline.increment()

    assert ei.value.stage == "balanced"
    assert ei.value.to_problem()["stage"] == "balanced"
    assert seen[-1] == ("balanced", "error")
    assert deployed.contract(CONTRACT).counters.is_empty()
    assert deployed.height == 0


class _BrokenProver(SimulatedWallet):
    async def prove_transaction(self, tx):
        raise ProofFailed("proof server returned 500")


@pytest.mark.asyncio
async def test_prove_failure_is_tagged_proven(deployed):
    sponsor = SimulatedWallet(b"sponsor", chain=deployed, balance=50)
    pipeline, ctx = _pipeline(deployed, sponsor)
    await ctx.activate(_BrokenProver(b"broken"))

    with pytest.raises(ProofFailed) as ei:
        await pipeline.increment()

    assert ei.value.stage == "proven"
    assert ei.value.message == "proof server returned 500"
    assert deployed.contract(CONTRACT).counters.is_empty()
    assert sponsor.balance == 50


class _DeactivatingSponsor(SimulatedWallet):
    """Clears the override while balancing, i.e. after the snapshot was taken."""

    ctx: OverrideContext

    async def balance_transaction(self, tx, new_coins=()):
        self.ctx.deactivate()
        return await super().balance_transaction(tx, new_coins)


@pytest.mark.asyncio
async def test_snapshot_survives_concurrent_deactivate(deployed, prover_a):
    sponsor = _DeactivatingSponsor(b"sponsor", chain=deployed, balance=50)
    pipeline, ctx = _pipeline(deployed, sponsor)
    sponsor.ctx = ctx
    await ctx.activate(prover_a)

    result = await pipeline.increment()

    assert not ctx.active
    assert result.overridden
    assert result.submitted.proven.prover == prover_a.coin_public_key
    assert deployed.contract(CONTRACT).counters.lookup(prover_a.coin_public_key) == 1


@pytest.mark.asyncio
async def test_submit_only(deployed, prover_a):
    sponsor = SimulatedWallet(b"sponsor", chain=deployed, balance=50)
    pipeline, ctx = _pipeline(deployed, sponsor)
    await ctx.activate(prover_a)
    tx = pipeline.build_increment()
    ctx.deactivate()

    balanced = await sponsor.balance_transaction(tx)
    proven = await prover_a.prove_transaction(balanced)
    result = await pipeline.submit_only(proven)

    assert result.stages == (Stage.SUBMITTED,)
    assert deployed.contract(CONTRACT).counters.lookup(prover_a.coin_public_key) == 1
