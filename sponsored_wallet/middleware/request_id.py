from __future__ import annotations

"""
Request correlation middleware.

Every request gets:

- a request id: the inbound ``X-Request-Id`` if present, else a fresh uuid4 hex;
- a W3C trace context: an inbound ``traceparent`` is continued with a new span
  id; a missing or invalid one starts a new sampled trace.

Both are stored on ``request.state`` (problem+json bodies quote them), bound into
structlog contextvars while the request runs, and echoed back as response
headers.
"""

import re
import secrets
import uuid
from typing import NamedTuple, Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from sponsored_wallet.logging import bind_request_context, clear_request_context

REQUEST_ID_HEADER = "X-Request-Id"
TRACEPARENT_HEADER = "traceparent"

_TRACEPARENT = re.compile(r"^00-([0-9a-f]{32})-([0-9a-f]{16})-([0-9a-f]{2})$")


class TraceContext(NamedTuple):
    trace_id: str
    span_id: str
    flags: str

    @classmethod
    def continue_from(cls, header: Optional[str]) -> "TraceContext":
        """New span under ``header``'s trace, or a new trace if it does not parse."""
        m = _TRACEPARENT.match(header.strip()) if header else None
        if m and set(m.group(1)) != {"0"} and set(m.group(2)) != {"0"}:
            return cls(m.group(1), secrets.token_hex(8), m.group(3))
        return cls(secrets.token_hex(16), secrets.token_hex(8), "01")

    def header(self) -> str:
        return f"00-{self.trace_id}-{self.span_id}-{self.flags}"


class RequestIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, header: str = REQUEST_ID_HEADER):
        super().__init__(app)
        self.header = header

    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get(self.header) or uuid.uuid4().hex
        trace = TraceContext.continue_from(request.headers.get(TRACEPARENT_HEADER))

        request.state.request_id = req_id
        request.state.trace_id = trace.trace_id
        request.state.span_id = trace.span_id

        bind_request_context(request_id=req_id, trace_id=trace.trace_id, span_id=trace.span_id)
        try:
            response: Response = await call_next(request)
        finally:
            clear_request_context("request_id", "trace_id", "span_id")

        response.headers[self.header] = req_id
        response.headers[TRACEPARENT_HEADER] = trace.header()
        return response


def install_request_id_middleware(app: FastAPI, *, header: str = REQUEST_ID_HEADER) -> None:
    app.add_middleware(RequestIdMiddleware, header=header)


__all__ = ["TraceContext", "RequestIdMiddleware", "install_request_id_middleware"]
