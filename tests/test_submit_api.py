from __future__ import annotations

from typing import Any, Dict

import pytest

from sponsored_wallet.adapters.local_chain import SimulatedWallet

# Notes:
# - Transactions are balanced by the sponsor and proven by an offline prover
#   in-process, then relayed through POST /submit as their JSON wire form.
# - Error bodies are RFC 7807 problem+json with ``code`` and, for pipeline
#   failures, ``stage``.


async def _proven_for(session, prover) -> Dict[str, Any]:
    await session.ctx.activate(prover)
    try:
        tx = session.pipeline.build_increment()
    finally:
        session.ctx.deactivate()
    balanced = await session.provider.balance(tx)
    proven = await prover.prove_transaction(balanced)
    return proven.to_dict()


@pytest.mark.asyncio
async def test_submit_relays_proven_transaction(aclient, session, prover_a):
    body = {"transaction": await _proven_for(session, prover_a), "signer": prover_a.identity.to_dict()}
    r = await aclient.post("/submit", json=body)
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["status"] == "accepted"
    assert data["stage"] == "submitted"
    assert data["txId"].startswith("0x")

    r = await aclient.get(f"/counters/{prover_a.coin_public_key.hex()}")
    assert r.json()["count"] == 1


@pytest.mark.asyncio
async def test_submit_signer_mismatch(aclient, session, prover_a, prover_b):
    body = {"transaction": await _proven_for(session, prover_a), "signer": prover_b.identity.to_dict()}
    r = await aclient.post("/submit", json=body)
    assert r.status_code == 400
    assert r.headers["content-type"].startswith("application/problem+json")
    data = r.json()
    assert data["code"] == "bad_request"
    assert data["instance"] == "/submit"
    assert data["request_id"]


@pytest.mark.asyncio
async def test_submit_replay_is_rejected_with_stage(aclient, session, prover_a):
    body = {"transaction": await _proven_for(session, prover_a), "signer": prover_a.identity.to_dict()}
    assert (await aclient.post("/submit", json=body)).status_code == 200

    r = await aclient.post("/submit", json=body)
    assert r.status_code == 422
    data = r.json()
    assert data["code"] == "submission_rejected"
    assert data["stage"] == "submitted"
    assert "nonce" in data["detail"]


@pytest.mark.asyncio
async def test_submit_rejects_transaction_paid_by_another_wallet(aclient, session, prover_a):
    await session.ctx.activate(prover_a)
    try:
        tx = session.pipeline.build_increment()
    finally:
        session.ctx.deactivate()
    payer = SimulatedWallet(b"self-payer", balance=100)
    balanced = await payer.balance_transaction(tx)
    proven = await prover_a.prove_transaction(balanced)
    sponsor = session.provider.sponsor
    start = sponsor.balance

    body = {"transaction": proven.to_dict(), "signer": prover_a.identity.to_dict()}
    r = await aclient.post("/submit", json=body)
    assert r.status_code == 422
    data = r.json()
    assert data["code"] == "submission_rejected"
    assert data["stage"] == "submitted"
    assert "fee payer" in data["detail"]

    assert sponsor.balance == start
    assert payer.balance == 100
    assert session.ledger.transactions == []
    r = await aclient.get(f"/counters/{prover_a.coin_public_key.hex()}")
    assert r.json()["count"] == 0


@pytest.mark.asyncio
async def test_submit_malformed_transaction(aclient, prover_a):
    body = {"transaction": {"balanced": {}}, "signer": prover_a.identity.to_dict()}
    r = await aclient.post("/submit", json=body)
    assert r.status_code == 400
    assert r.json()["code"] == "bad_request"


@pytest.mark.asyncio
async def test_submit_validation_error_is_bad_request(aclient):
    r = await aclient.post("/submit", json={"signer": {"coinPublicKey": "nothex"}})
    assert r.status_code == 400
    data = r.json()
    assert data["code"] == "bad_request"
    assert isinstance(data["details"]["errors"], list)


@pytest.mark.asyncio
async def test_request_id_is_propagated(aclient):
    r = await aclient.post("/submit", json={}, headers={"X-Request-Id": "abc-123"})
    assert r.headers["X-Request-Id"] == "abc-123"
    assert r.json()["request_id"] == "abc-123"
    assert r.headers["traceparent"].startswith("00-")
