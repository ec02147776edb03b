"""
Contract-side state and circuits.

- ledger     : IsolatedLedgerMap (identity -> counter)
- counter    : CounterContract with the ``increment`` circuit
- simulator  : CounterSimulator for running circuits without a chain
"""

from __future__ import annotations

from .counter import CIRCUIT_INCREMENT, CircuitContext, CounterContract, PrivateState
from .ledger import IsolatedLedgerMap
from .simulator import CounterSimulator

__all__ = [
    "CIRCUIT_INCREMENT",
    "CircuitContext",
    "CounterContract",
    "CounterSimulator",
    "IsolatedLedgerMap",
    "PrivateState",
]
