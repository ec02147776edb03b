"""
sponsored_wallet.wallet.override
================================

Identity override store.

The override decides which identity *proves* (and therefore owns) the next
transaction while the sponsor keeps paying and submitting. Its state is a sum
type::

    OverrideState = NoOverride | Override(identity, prover)

An :class:`Override` can only be built with both public keys and the live
prover handle, so a half-populated record is not representable. The current
state lives in an :class:`OverrideContext`, a lock-guarded cell that is passed
explicitly to whoever needs it. Every operation swaps or reads one immutable
state object under the lock, so concurrent readers see either the whole
sponsor view or the whole override view.

Usage
-----
    ctx = OverrideContext(timeout_s=30)
    await ctx.activate(prover_wallet)   # waits for the prover's keys
    ctx.current()                       # Override(...)
    ctx.deactivate()                    # NoOverride
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import ClassVar, Union

from sponsored_wallet.errors import OverrideStateCorrupt
from sponsored_wallet.logging import get_logger
from sponsored_wallet.wallet.identity import (CoinPublicKey,
                                              EncryptionPublicKey, Identity)
from sponsored_wallet.wallet.runtime import (DEFAULT_POLL_INTERVAL_S,
                                             DEFAULT_SYNC_TIMEOUT_S,
                                             WalletRuntime, wait_for_identity)

log = get_logger(__name__)

__all__ = [
    "NoOverride",
    "Override",
    "OverrideState",
    "NO_OVERRIDE",
    "OverrideContext",
]


@dataclass(frozen=True)
class NoOverride:
    active: ClassVar[bool] = False


NO_OVERRIDE = NoOverride()


@dataclass(frozen=True)
class Override:
    identity: Identity
    prover: WalletRuntime
    active: ClassVar[bool] = True

    def __post_init__(self) -> None:
        _require_complete(self)

    @property
    def coin_public_key(self) -> CoinPublicKey:
        return self.identity.coin_public_key

    @property
    def encryption_public_key(self) -> EncryptionPublicKey:
        return self.identity.encryption_public_key


OverrideState = Union[NoOverride, Override]


def _require_complete(state: Override) -> None:
    ident = getattr(state, "identity", None)
    missing = []
    if not isinstance(ident, Identity):
        missing.append("identity")
    else:
        if getattr(ident, "coin_public_key", None) is None:
            missing.append("coin_public_key")
        if getattr(ident, "encryption_public_key", None) is None:
            missing.append("encryption_public_key")
    if getattr(state, "prover", None) is None:
        missing.append("prover")
    if missing:
        log.error("override_state_corrupt", missing=missing)
        raise OverrideStateCorrupt(details={"missing": missing})


class OverrideContext:
    """
    Process-wide override cell, passed explicitly.

    ``activate`` waits for the prover's keys *before* taking the lock, then
    swaps the new state in. If the wait fails the previous state is untouched.
    """

    def __init__(
        self,
        *,
        timeout_s: float = DEFAULT_SYNC_TIMEOUT_S,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
    ) -> None:
        self._lock = threading.Lock()
        self._state: OverrideState = NO_OVERRIDE
        self._timeout_s = timeout_s
        self._poll_interval_s = poll_interval_s

    def current(self) -> OverrideState:
        with self._lock:
            state = self._state
        if isinstance(state, Override):
            _require_complete(state)
        return state

    @property
    def active(self) -> bool:
        return self.current().active

    async def activate(self, prover: WalletRuntime) -> bool:
        """
        Install ``prover`` as the override. Returns True if the state changed.

        Raises:
            IdentityUnavailable: the prover's keys could not be read in time.
        """
        identity = await wait_for_identity(
            prover, timeout_s=self._timeout_s, poll_interval_s=self._poll_interval_s
        )
        changed = self._swap(Override(identity=identity, prover=prover))
        if changed:
            log.info("override_activated", coin_public_key=identity.coin_public_key.hex())
        return changed

    def deactivate(self) -> bool:
        """Clear the override. Returns True if an override was active."""
        changed = self._swap(NO_OVERRIDE)
        if changed:
            log.info("override_cleared")
        return changed

    def _swap(self, new: OverrideState) -> bool:
        with self._lock:
            old = self._state
            if old == new:
                return False
            self._state = new
        return True
