from __future__ import annotations

"""
In-process simulator for the counter contract.

Runs circuits directly against a fresh :class:`CounterContract`, skipping
balancing, proving and submission. Useful for checking contract semantics in
isolation:

    sim = CounterSimulator("11" * 32)
    sim.increment()            # as the default sender
    sim.increment("22" * 32)   # as another identity
    sim.get_ledger().lookup(CoinPublicKey.from_hex("11" * 32))  # -> 1
"""

from typing import Optional, Union

from sponsored_wallet.contract.counter import (CircuitContext,
                                               CounterContract, PrivateState)
from sponsored_wallet.contract.ledger import IsolatedLedgerMap
from sponsored_wallet.wallet.identity import CoinPublicKey

KeyLike = Union[str, bytes, CoinPublicKey]

DEFAULT_SENDER = "00" * 32


def _as_key(value: KeyLike) -> CoinPublicKey:
    if isinstance(value, str):
        return CoinPublicKey.from_hex(value)
    return CoinPublicKey(value)


class CounterSimulator:
    def __init__(self, sender: KeyLike = DEFAULT_SENDER) -> None:
        self.contract = CounterContract()
        self.sender = _as_key(sender)

    def get_ledger(self) -> IsolatedLedgerMap:
        return self.contract.counters

    def get_private_state(self) -> PrivateState:
        return self.contract.private_state

    def increment(self, sender: Optional[KeyLike] = None) -> IsolatedLedgerMap:
        caller = self.sender if sender is None else _as_key(sender)
        self.contract.increment(CircuitContext(caller=caller))
        return self.get_ledger()


__all__ = ["CounterSimulator", "DEFAULT_SENDER"]
