from __future__ import annotations

"""
Per-identity isolated counter map.

Contract-side state mapping a coin public key to an unsigned counter:

* a key is present iff at least one increment for it has succeeded;
* ``increment(k)`` inserts a zero entry for ``k`` if absent, then adds 1;
  both steps happen under ``k``'s own lock, so concurrent increments of the
  same key never lose updates;
* increments of different keys take different locks and never touch each
  other's entry.

Keys are treated as opaque equality-comparable values (``bytes``); iteration
order carries no meaning and ``snapshot()`` is the only way to read the map
as a whole.
"""

import threading
from typing import Dict, Iterator, Mapping

from sponsored_wallet.wallet.identity import CoinPublicKey

__all__ = ["IsolatedLedgerMap"]


class IsolatedLedgerMap:
    def __init__(self, initial: Mapping[bytes, int] | None = None) -> None:
        self._counts: Dict[CoinPublicKey, int] = {}
        self._key_locks: Dict[CoinPublicKey, threading.Lock] = {}
        # Only guards creation of per-key locks / new entries.
        self._registry_lock = threading.Lock()
        for k, v in (initial or {}).items():
            if int(v) < 1:
                raise ValueError("initial counts must be >= 1 (absent keys are never stored)")
            key = CoinPublicKey(k)
            self._counts[key] = int(v)
            self._key_locks[key] = threading.Lock()

    def _lock_for(self, key: CoinPublicKey) -> threading.Lock:
        lock = self._key_locks.get(key)
        if lock is None:
            with self._registry_lock:
                lock = self._key_locks.setdefault(key, threading.Lock())
        return lock

    # ---- mutation ----

    def increment(self, key: bytes) -> int:
        """Insert-default then +1 for ``key``. Returns the new count."""
        k = CoinPublicKey(key)
        with self._lock_for(k):
            if k not in self._counts:
                with self._registry_lock:
                    self._counts[k] = 0
            new = self._counts[k] + 1
            self._counts[k] = new
            return new

    # ---- reads ----

    def member(self, key: bytes) -> bool:
        return CoinPublicKey(key) in self._counts

    def lookup(self, key: bytes) -> int:
        """Stored count for ``key``; KeyError if it was never incremented."""
        return self._counts[CoinPublicKey(key)]

    def get(self, key: bytes, default: int = 0) -> int:
        return self._counts.get(CoinPublicKey(key), default)

    def size(self) -> int:
        return len(self._counts)

    def is_empty(self) -> bool:
        return not self._counts

    def snapshot(self) -> Dict[CoinPublicKey, int]:
        with self._registry_lock:
            return dict(self._counts)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, (bytes, bytearray, memoryview)):
            return False
        try:
            return self.member(bytes(key))
        except ValueError:
            return False

    def __iter__(self) -> Iterator[CoinPublicKey]:
        return iter(self.snapshot())

    def __repr__(self) -> str:
        return f"IsolatedLedgerMap(size={self.size()})"
