from __future__ import annotations

import os
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

import httpx
from fastapi import APIRouter, Request, Response, status

from sponsored_wallet import version as svc_version
from sponsored_wallet.config import Settings
from sponsored_wallet.logging import get_logger

log = get_logger(__name__)
router = APIRouter(tags=["health"])

_PROCESS_START = time.time()


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _uptime_seconds() -> float:
    return max(0.0, time.time() - _PROCESS_START)


def _version_blob() -> Dict[str, Any]:
    return {
        "service": "sponsored-wallet",
        "version": svc_version.__version__,
        "revision": svc_version.source_revision(),
        "python": {
            "version": "{}.{}.{}".format(*sys.version_info[:3]),
            "impl": sys.implementation.name,
        },
        "started_at": datetime.fromtimestamp(_PROCESS_START, tz=timezone.utc).isoformat(),
        "now": _utcnow_iso(),
        "uptime_seconds": round(_uptime_seconds(), 3),
    }


async def _check_proof_server(cfg: Settings, transport: httpx.AsyncBaseTransport | None = None) -> Tuple[bool, Dict[str, Any]]:
    """
    Proof server readiness: GET {PROOF_SERVER_URL}/health must answer 2xx.
    Only required in remote mode; the local devnet proves in-process.
    """
    info: Dict[str, Any] = {"url": cfg.proof_server_url}
    if cfg.wallet_mode == "local":
        info["skipped"] = "local mode"
        return True, info
    try:
        async with httpx.AsyncClient(timeout=min(cfg.rpc_timeout_s, 2.0), transport=transport) as client:
            resp = await client.get(cfg.proof_server_url.rstrip("/") + "/health")
        info["status"] = resp.status_code
        return resp.is_success, info
    except httpx.HTTPError as e:
        info["error"] = str(e)
        return False, info


def _check_session(request: Request) -> Tuple[bool, Dict[str, Any]]:
    session = getattr(request.app.state, "session", None)
    if session is None:
        return False, {"error": "sponsor session not initialised"}
    return True, {
        "sponsor": session.provider.sponsor_identity.coin_public_key.hex(),
        "overrideActive": session.ctx.active,
    }


@router.get("/healthz", summary="Liveness probe", response_model=None)
def healthz() -> Dict[str, Any]:
    return {"status": "ok", **_version_blob()}


@router.get("/version", summary="Service version", response_model=None)
def version(request: Request) -> Dict[str, Any]:
    meta = _version_blob()
    cfg: Settings = request.app.state.config
    meta["networkId"] = cfg.network_id
    meta["walletMode"] = cfg.wallet_mode
    meta["env"] = os.getenv("ENV")
    return meta


@router.get("/readyz", summary="Readiness probe", response_model=None)
async def readyz(request: Request, response: Response) -> Dict[str, Any]:
    """
    200 when the sponsor session is up and (in remote mode) the proof server
    answers its health check; 503 otherwise.
    """
    cfg: Settings = request.app.state.config
    checks: Dict[str, Dict[str, Any]] = {}

    ok_session, info = _check_session(request)
    checks["session"] = {"ok": ok_session, **info}

    transport = getattr(request.app.state, "probe_transport", None)
    ok_proof, info = await _check_proof_server(cfg, transport)
    checks["proofServer"] = {"ok": ok_proof, **info}

    ok_all = ok_session and ok_proof
    if not ok_all:
        log.warning("not_ready", checks=checks)
    response.status_code = status.HTTP_200_OK if ok_all else status.HTTP_503_SERVICE_UNAVAILABLE
    return {
        "status": "ok" if ok_all else "degraded",
        "now": _utcnow_iso(),
        "uptime_seconds": round(_uptime_seconds(), 3),
        "checks": checks,
    }
