from __future__ import annotations

"""
Per-identity counter contract.

Ledger:

    counters: Map<CoinPublicKey, Counter>

Private state:

    PrivateState(private_counter=0)      # carried along, never changed by circuits

Circuits:

    increment()
        Insert a zero counter for the caller if absent, then add 1. The caller
        is the coin public key of whoever produced the proof, not the fee payer.

Circuits are dispatched by name through :meth:`CounterContract.call`; an
unknown circuit name is rejected like any other invalid submission.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Final

from sponsored_wallet.contract.ledger import IsolatedLedgerMap
from sponsored_wallet.errors import SubmissionRejected
from sponsored_wallet.wallet.identity import CoinPublicKey

CIRCUIT_INCREMENT: Final[str] = "increment"


@dataclass(frozen=True)
class PrivateState:
    private_counter: int = 0


@dataclass(frozen=True)
class CircuitContext:
    """What a circuit sees about its invocation."""

    caller: CoinPublicKey


class CounterContract:
    def __init__(self, private_state: PrivateState | None = None) -> None:
        self.counters = IsolatedLedgerMap()
        self.private_state = private_state or PrivateState()
        self._circuits: Dict[str, Callable[[CircuitContext], int]] = {
            CIRCUIT_INCREMENT: self.increment,
        }

    @property
    def circuits(self) -> tuple:
        return tuple(sorted(self._circuits))

    def increment(self, ctx: CircuitContext) -> int:
        """Returns the caller's new count."""
        return self.counters.increment(ctx.caller)

    def call(self, circuit: str, ctx: CircuitContext) -> int:
        fn = self._circuits.get(circuit)
        if fn is None:
            raise SubmissionRejected(
                f"unknown circuit {circuit!r}",
                details={"circuits": list(self.circuits)},
            )
        return fn(ctx)


__all__ = ["CIRCUIT_INCREMENT", "PrivateState", "CircuitContext", "CounterContract"]
