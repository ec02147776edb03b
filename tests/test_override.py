from __future__ import annotations

import asyncio
import threading

import pytest

from sponsored_wallet.adapters.local_chain import SimulatedWallet
from sponsored_wallet.errors import IdentityUnavailable, OverrideStateCorrupt
from sponsored_wallet.wallet.identity import Identity
from sponsored_wallet.wallet.override import (NO_OVERRIDE, NoOverride,
                                              Override, OverrideContext)


def _ctx() -> OverrideContext:
    return OverrideContext(timeout_s=0.2, poll_interval_s=0.01)


def test_starts_without_override():
    ctx = _ctx()
    assert ctx.current() is NO_OVERRIDE
    assert not ctx.active


@pytest.mark.asyncio
async def test_activate_then_deactivate(prover_a):
    ctx = _ctx()
    assert await ctx.activate(prover_a) is True
    state = ctx.current()
    assert isinstance(state, Override)
    assert state.identity == prover_a.identity
    assert state.coin_public_key == prover_a.coin_public_key
    assert state.prover is prover_a

    assert ctx.deactivate() is True
    assert isinstance(ctx.current(), NoOverride)


@pytest.mark.asyncio
async def test_activate_and_deactivate_are_idempotent(prover_a):
    ctx = _ctx()
    assert ctx.deactivate() is False
    assert await ctx.activate(prover_a) is True
    assert await ctx.activate(prover_a) is False
    assert ctx.current().prover is prover_a
    assert ctx.deactivate() is True
    assert ctx.deactivate() is False


@pytest.mark.asyncio
async def test_activate_replaces_previous_override(prover_a, prover_b):
    ctx = _ctx()
    await ctx.activate(prover_a)
    assert await ctx.activate(prover_b) is True
    assert ctx.current().identity == prover_b.identity


@pytest.mark.asyncio
async def test_failed_activate_keeps_previous_state(prover_a):
    ctx = _ctx()
    await ctx.activate(prover_a)

    syncing = SimulatedWallet(b"still-syncing", synced=False)
    with pytest.raises(IdentityUnavailable):
        await ctx.activate(syncing)

    assert ctx.current().prover is prover_a


@pytest.mark.asyncio
async def test_activate_waits_for_sync():
    ctx = OverrideContext(timeout_s=2.0, poll_interval_s=0.01)
    wallet = SimulatedWallet(b"late", synced=False)

    async def sync_later():
        await asyncio.sleep(0.05)
        wallet.mark_synced()

    task = asyncio.create_task(sync_later())
    await ctx.activate(wallet)
    await task
    assert ctx.current().identity == wallet.identity


def test_override_requires_prover(prover_a):
    with pytest.raises(OverrideStateCorrupt):
        Override(identity=prover_a.identity, prover=None)  # type: ignore[arg-type]
    with pytest.raises(OverrideStateCorrupt):
        Override(identity=None, prover=prover_a)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_concurrent_readers_never_see_partial_state(prover_a):
    ctx = _ctx()
    identity: Identity = prover_a.identity
    await ctx.activate(prover_a)
    override = ctx.current()
    ctx.deactivate()

    bad = []
    stop = threading.Event()

    def reader():
        while not stop.is_set():
            state = ctx.current()
            if isinstance(state, Override):
                if state.identity != identity or state.prover is not prover_a:
                    bad.append(state)
            elif state is not NO_OVERRIDE:
                bad.append(state)

    readers = [threading.Thread(target=reader) for _ in range(4)]
    for t in readers:
        t.start()
    for _ in range(2000):
        ctx._swap(override)
        ctx._swap(NO_OVERRIDE)
    stop.set()
    for t in readers:
        t.join()

    assert bad == []
