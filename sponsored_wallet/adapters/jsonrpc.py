"""
Retrying async JSON-RPC 2.0 transport over HTTP(S).

Shared by the wallet-daemon and indexer adapters. Only transport-level
failures (connection errors, timeouts, 502/503/504) are retried, with
exponential backoff, and only for calls made with ``retry=True`` (the
default). Calls that change state on the server (proving, submitting) pass
``retry=False``: a timeout there does not say whether the server acted. A
JSON-RPC ``error`` object is returned to the caller immediately as
:class:`RpcResponseError`.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from sponsored_wallet.logging import get_logger

log = get_logger(__name__)


# ----------------------------- Errors ---------------------------------------


class RpcError(Exception):
    """Base class for JSON-RPC adapter errors."""


class RpcTransportError(RpcError):
    """Network/HTTP transport-level error."""


class RpcResponseError(RpcError):
    """JSON-RPC error object returned by the server."""

    def __init__(self, code: int, message: str, data: Any | None = None):
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data


_RETRY_STATUSES = (502, 503, 504)


class _RetriableStatus(RpcTransportError):
    pass


def _build_headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    hdrs = {
        "content-type": "application/json",
        "accept": "application/json",
    }
    if extra:
        hdrs.update(extra)
    return hdrs


# ----------------------------- Client ---------------------------------------


@dataclass
class JsonRpcConfig:
    url: str
    path: str = "/"
    timeout_s: float = 10.0
    max_retries: int = 3
    backoff_base_s: float = 0.25
    headers: Optional[Dict[str, str]] = None
    # Injected in tests (httpx.MockTransport)
    transport: Optional[httpx.AsyncBaseTransport] = None


class JsonRpcClient:
    def __init__(self, config: JsonRpcConfig):
        self._cfg = config
        self._id = 0
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def url(self) -> str:
        return self._cfg.url

    # ---------- lifecycle ----------

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._cfg.url,
                timeout=self._cfg.timeout_s,
                headers=_build_headers(self._cfg.headers),
                transport=self._cfg.transport,
            )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "JsonRpcClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ---------- core transport ----------

    async def call(self, method: str, params: Any | None = None, *, retry: bool = True) -> Any:
        if self._client is None:
            await self.start()
        assert self._client is not None

        self._id += 1
        payload = {"jsonrpc": "2.0", "id": self._id, "method": method, "params": params or []}

        attempt = 0
        while True:
            attempt += 1
            try:
                resp = await self._client.post(self._cfg.path, json=payload)
                if resp.status_code in _RETRY_STATUSES:
                    raise _RetriableStatus(f"HTTP {resp.status_code}: {resp.text[:256]!r}")
                if resp.status_code != 200:
                    raise RpcTransportError(f"HTTP {resp.status_code}: {resp.text[:256]!r}")
                try:
                    data = json.loads(resp.content)
                except ValueError as e:
                    raise RpcResponseError(-32700, f"invalid JSON from server: {e}") from e
                err = data.get("error")
                if err is not None:
                    raise RpcResponseError(err.get("code", -32000), err.get("message", "Unknown error"), err.get("data"))
                return data.get("result")
            except (httpx.TimeoutException, httpx.TransportError, _RetriableStatus) as exc:
                if not retry or attempt > self._cfg.max_retries:
                    log.warning("rpc_failed", url=self._cfg.url, method=method, attempts=attempt, error=str(exc))
                    raise RpcTransportError(f"RPC call {method} failed after {attempt} attempts: {exc}") from exc
                delay = self._cfg.backoff_base_s * (2 ** (attempt - 1))
                log.debug("rpc_retry", method=method, attempt=attempt, delay_s=delay)
                await asyncio.sleep(delay)


__all__ = [
    "JsonRpcClient",
    "JsonRpcConfig",
    "RpcError",
    "RpcTransportError",
    "RpcResponseError",
]
