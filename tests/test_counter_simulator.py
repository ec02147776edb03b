from __future__ import annotations

import pytest

from sponsored_wallet.contract.counter import (CIRCUIT_INCREMENT,
                                               CircuitContext, CounterContract,
                                               PrivateState)
from sponsored_wallet.contract.simulator import CounterSimulator
from sponsored_wallet.errors import SubmissionRejected
from sponsored_wallet.wallet.identity import CoinPublicKey

KEY_A = "1" * 64
KEY_B = "2" * 64


def as_key(h: str) -> CoinPublicKey:
    return CoinPublicKey.from_hex(h)


def test_initial_ledger_is_deterministic():
    ledger0 = CounterSimulator().get_ledger()
    ledger1 = CounterSimulator().get_ledger()
    assert ledger0.is_empty()
    assert ledger1.is_empty()
    assert ledger0.size() == ledger1.size()


def test_initial_private_state():
    sim = CounterSimulator()
    assert sim.get_ledger().is_empty()
    assert sim.get_private_state() == PrivateState(private_counter=0)


def test_increment_as_default_sender():
    sim = CounterSimulator(KEY_A)
    ledger = sim.increment()
    assert ledger.member(as_key(KEY_A))
    assert ledger.lookup(as_key(KEY_A)) == 1
    assert sim.get_private_state().private_counter == 0


def test_counters_isolated_per_signer():
    sim = CounterSimulator(KEY_A)
    sim.increment()
    sim.increment(KEY_A)
    after_b = sim.increment(KEY_B)
    assert after_b.lookup(as_key(KEY_A)) == 2
    assert after_b.lookup(as_key(KEY_B)) == 1
    assert sim.get_private_state().private_counter == 0


def test_invalid_sender_hex():
    sim = CounterSimulator()
    with pytest.raises(ValueError):
        sim.increment("zz" * 32)


def test_contract_dispatches_by_circuit_name():
    contract = CounterContract()
    assert contract.circuits == (CIRCUIT_INCREMENT,)
    assert contract.call(CIRCUIT_INCREMENT, CircuitContext(caller=as_key(KEY_A))) == 1
    with pytest.raises(SubmissionRejected):
        contract.call("decrement", CircuitContext(caller=as_key(KEY_A)))
    assert contract.counters.lookup(as_key(KEY_A)) == 1
