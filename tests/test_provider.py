from __future__ import annotations

import asyncio

import pytest

from sponsored_wallet.adapters.local_chain import LocalChain, SimulatedWallet
from sponsored_wallet.errors import IdentityUnavailable, InsufficientFunds
from sponsored_wallet.transactions import UnprovenTransaction
from sponsored_wallet.wallet.override import NO_OVERRIDE, OverrideContext
from sponsored_wallet.wallet.provider import WalletProvider
from sponsored_wallet.wallet.runtime import wait_for_funds, wait_for_identity

CONTRACT = "0x" + "00" * 31 + "01"


@pytest.fixture()
def sponsor(chain: LocalChain) -> SimulatedWallet:
    chain.deploy(CONTRACT)
    return SimulatedWallet(b"sponsor", chain=chain, balance=100)


@pytest.fixture()
def ctx() -> OverrideContext:
    return OverrideContext(timeout_s=0.5, poll_interval_s=0.01)


@pytest.mark.asyncio
async def test_keys_follow_the_override(sponsor, ctx, prover_a):
    provider = await WalletProvider.create(sponsor, timeout_s=0.5, poll_interval_s=0.01)
    assert provider.coin_public_key(ctx) == sponsor.coin_public_key

    await ctx.activate(prover_a)
    assert provider.coin_public_key(ctx) == prover_a.coin_public_key
    assert provider.encryption_public_key(ctx) == prover_a.identity.encryption_public_key

    ctx.deactivate()
    assert provider.coin_public_key(ctx) == sponsor.coin_public_key
    assert provider.identity(ctx) == provider.sponsor_identity


@pytest.mark.asyncio
async def test_balance_and_submit_always_use_sponsor(sponsor, ctx, prover_a):
    provider = WalletProvider(sponsor, sponsor.identity)
    await ctx.activate(prover_a)
    state = ctx.current()

    tx = UnprovenTransaction(CONTRACT, "increment", prover_a.coin_public_key)
    balanced = await provider.balance(tx)
    assert balanced.fee_payer == sponsor.coin_public_key

    proven = await provider.prove(balanced, state)
    assert proven.prover == prover_a.coin_public_key

    await provider.submit(proven)
    assert sponsor.balance == 100 - balanced.fee
    assert prover_a.balance == 0


@pytest.mark.asyncio
async def test_prove_without_override_uses_sponsor(sponsor):
    provider = WalletProvider(sponsor, sponsor.identity)
    assert provider.prover_for(NO_OVERRIDE) is sponsor
    tx = UnprovenTransaction(CONTRACT, "increment", sponsor.coin_public_key)
    proven = await provider.prove(await provider.balance(tx), NO_OVERRIDE)
    assert proven.prover == sponsor.coin_public_key


@pytest.mark.asyncio
async def test_create_times_out_for_unsynced_sponsor():
    unsynced = SimulatedWallet(b"slow", synced=False)
    with pytest.raises(IdentityUnavailable):
        await WalletProvider.create(unsynced, timeout_s=0.05, poll_interval_s=0.01)


@pytest.mark.asyncio
async def test_create_waits_for_sponsor_funds():
    poor = SimulatedWallet(b"poor", balance=0)
    with pytest.raises(InsufficientFunds) as ei:
        await WalletProvider.create(poor, timeout_s=0.05, poll_interval_s=0.01, min_balance=10)
    assert ei.value.details["minimum"] == 10

    async def fund_later():
        await asyncio.sleep(0.02)
        poor.fund(10)

    task = asyncio.create_task(fund_later())
    provider = await WalletProvider.create(poor, timeout_s=1.0, poll_interval_s=0.01, min_balance=10)
    await task
    assert provider.sponsor_identity == poor.identity


@pytest.mark.asyncio
async def test_wait_helpers(prover_a):
    ident = await wait_for_identity(prover_a, timeout_s=0.2, poll_interval_s=0.01)
    assert ident == prover_a.identity

    prover_a.fund(5)
    assert await wait_for_funds(prover_a, 5, timeout_s=0.2, poll_interval_s=0.01) == 5

    with pytest.raises(InsufficientFunds):
        await wait_for_funds(prover_a, 6, timeout_s=0.05, poll_interval_s=0.01)
