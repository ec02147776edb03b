"""
sponsored_wallet.wallet.runtime
===============================

Boundary contract for a wallet runtime (sponsor or prover) plus bounded waits
on its sync state.

The core never derives keys, tracks balances or talks to the proof server or
chain itself. It only needs something satisfying :class:`WalletRuntime`:

- ``current_state()``        -> WalletState (pollable)
- ``balance_transaction()``  -> BalancedTransaction | raises
- ``prove_transaction()``    -> ProvenTransaction   | raises
- ``submit_transaction()``   -> tx id               | raises

Sponsor and prover identities are both values of this same contract.

Waiting for key material or funds polls ``current_state()`` and is bounded by
``timeout_s``; a timeout raises the matching taxonomy error. The waits are
plain coroutines and therefore cancellable.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, runtime_checkable

from sponsored_wallet.errors import IdentityUnavailable, InsufficientFunds
from sponsored_wallet.logging import get_logger
from sponsored_wallet.transactions import (BalancedTransaction,
                                           ProvenTransaction,
                                           UnprovenTransaction)
from sponsored_wallet.wallet.identity import (CoinPublicKey,
                                              EncryptionPublicKey, Identity)

log = get_logger(__name__)

DEFAULT_SYNC_TIMEOUT_S = 120.0
DEFAULT_POLL_INTERVAL_S = 0.5

__all__ = [
    "SyncProgress",
    "WalletState",
    "WalletRuntime",
    "wait_for_identity",
    "wait_for_funds",
]


@dataclass(frozen=True)
class SyncProgress:
    synced: bool
    applied: int = 0
    target: int = 0


@dataclass(frozen=True)
class WalletState:
    coin_public_key: Optional[CoinPublicKey]
    encryption_public_key: Optional[EncryptionPublicKey]
    balance: int
    sync_progress: SyncProgress

    def identity(self) -> Optional[Identity]:
        """Both public keys as an :class:`Identity`, or None while either is missing."""
        if self.coin_public_key is None or self.encryption_public_key is None:
            return None
        return Identity(self.coin_public_key, self.encryption_public_key)


@runtime_checkable
class WalletRuntime(Protocol):
    async def current_state(self) -> WalletState: ...

    async def balance_transaction(
        self, tx: UnprovenTransaction, new_coins: Sequence[str] = ()
    ) -> BalancedTransaction: ...

    async def prove_transaction(self, tx: BalancedTransaction) -> ProvenTransaction: ...

    async def submit_transaction(self, tx: ProvenTransaction) -> str: ...


async def _poll_identity(runtime: WalletRuntime, interval: float) -> Identity:
    while True:
        state = await runtime.current_state()
        ident = state.identity()
        if ident is not None and state.sync_progress.synced:
            return ident
        await asyncio.sleep(interval)


async def wait_for_identity(
    runtime: WalletRuntime,
    *,
    timeout_s: float = DEFAULT_SYNC_TIMEOUT_S,
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
) -> Identity:
    """
    Wait until the runtime is synced and exposes both public keys.

    Raises:
        IdentityUnavailable: on timeout, or if reading the state itself fails.
    """
    try:
        return await asyncio.wait_for(_poll_identity(runtime, poll_interval_s), timeout=timeout_s)
    except asyncio.TimeoutError as e:
        log.warning("identity_wait_timeout", timeout_s=timeout_s)
        raise IdentityUnavailable(
            f"wallet keys not available after {timeout_s:g}s",
            details={"timeout_s": timeout_s},
        ) from e
    except (OSError, RuntimeError, ValueError) as e:
        raise IdentityUnavailable(f"reading wallet state failed: {e}") from e


async def _poll_funds(runtime: WalletRuntime, minimum: int, interval: float) -> int:
    while True:
        state = await runtime.current_state()
        if state.sync_progress.synced and state.balance >= minimum:
            return state.balance
        await asyncio.sleep(interval)


async def wait_for_funds(
    runtime: WalletRuntime,
    minimum: int = 1,
    *,
    timeout_s: float = DEFAULT_SYNC_TIMEOUT_S,
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
) -> int:
    """
    Wait until the runtime is synced with a balance of at least ``minimum``.

    Returns the observed balance. Raises InsufficientFunds on timeout.
    """
    try:
        return await asyncio.wait_for(_poll_funds(runtime, minimum, poll_interval_s), timeout=timeout_s)
    except asyncio.TimeoutError as e:
        log.warning("funds_wait_timeout", timeout_s=timeout_s, minimum=minimum)
        raise InsufficientFunds(
            f"balance did not reach {minimum} within {timeout_s:g}s",
            details={"minimum": minimum, "timeout_s": timeout_s},
        ) from e
