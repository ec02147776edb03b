from __future__ import annotations

import httpx
import pytest


@pytest.mark.asyncio
async def test_healthz_ok(aclient):
    r = await aclient.get("/healthz")
    assert r.status_code == 200
    data = r.json()
    assert data.get("status") == "ok"
    assert data.get("service") == "sponsored-wallet"
    assert "version" in data


@pytest.mark.asyncio
async def test_readyz_local_mode(aclient):
    r = await aclient.get("/readyz")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    checks = data["checks"]
    assert checks["session"]["ok"] is True
    assert checks["proofServer"]["skipped"] == "local mode"


@pytest.mark.asyncio
async def test_readyz_degraded_without_session(app, aclient):
    app.state.session = None
    r = await aclient.get("/readyz")
    assert r.status_code == 503
    assert r.json()["status"] == "degraded"


@pytest.mark.asyncio
async def test_readyz_probes_proof_server_in_remote_mode(app, aclient):
    app.state.config = app.state.config.model_copy(update={"wallet_mode": "remote"})

    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(str(request.url))
        return httpx.Response(503)

    app.state.probe_transport = httpx.MockTransport(handler)
    r = await aclient.get("/readyz")
    assert r.status_code == 503
    assert calls == ["http://127.0.0.1:6300/health"]
    assert r.json()["checks"]["proofServer"]["status"] == 503

    app.state.probe_transport = httpx.MockTransport(lambda req: httpx.Response(200, json={"ok": True}))
    r = await aclient.get("/readyz")
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_version(aclient):
    r = await aclient.get("/version")
    assert r.status_code == 200
    data = r.json()
    assert data["networkId"] == "undeployed"
    assert data["walletMode"] == "local"


@pytest.mark.asyncio
async def test_unknown_route_is_problem_json(aclient):
    r = await aclient.get("/nope")
    assert r.status_code == 404
    assert r.headers["content-type"].startswith("application/problem+json")
    assert r.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_metrics_exposed(aclient, session, prover_a):
    await session.increment(prover_a)
    await aclient.get("/healthz")

    r = await aclient.get("/metrics")
    assert r.status_code == 200
    text = r.text
    assert 'pipeline_stage_total{stage="submitted",outcome="ok"} 1.0' in text
    assert "override_active 0.0" in text
    assert "http_requests_total" in text
    assert 'service_info{name="sponsored-wallet"' in text


@pytest.mark.asyncio
async def test_traceparent_is_continued(aclient):
    trace_id = "4bf92f3577b34da6a3ce929d0e0e4736"
    parent = f"00-{trace_id}-00f067aa0ba902b7-01"
    r = await aclient.get("/healthz", headers={"traceparent": parent})
    echoed = r.headers["traceparent"].split("-")
    assert echoed[1] == trace_id
    assert echoed[2] != "00f067aa0ba902b7"

    r = await aclient.get("/healthz", headers={"traceparent": "garbage"})
    assert r.headers["traceparent"].split("-")[1] != trace_id
    assert r.headers["X-Request-Id"]
