from __future__ import annotations

"""
Exception -> RFC 7807 "problem+json" mappers for FastAPI.

- ``ApiError`` subclasses render with their own ``code``, ``title``, status and
  extension members (``stage``, ``details``).
- Starlette ``HTTPException`` (404 for unknown routes, 405, ...) keeps its status.
- Request validation errors become ``bad_request`` (400) with the pydantic
  error list attached.
- Anything else is a 500 ``server_error``; the stack trace is logged, never
  returned.

Every body carries ``instance`` (the request path) and the ``request_id`` /
``trace_id`` set by the request-id middleware.
"""

from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sponsored_wallet.errors import ApiError, BadRequest, ServerError
from sponsored_wallet.logging import get_logger

PROBLEM_CT = "application/problem+json"

log = get_logger(__name__)

_HTTP_TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    409: "Conflict",
    413: "Payload Too Large",
    415: "Unsupported Media Type",
    422: "Unprocessable Entity",
    429: "Too Many Requests",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


def _state_ids(request: Request) -> Dict[str, str]:
    return {
        "request_id": getattr(request.state, "request_id", "") or "",
        "trace_id": getattr(request.state, "trace_id", "") or "",
    }


def _problem(request: Request, base: Dict[str, Any], extras: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    prob = dict(base)
    prob.setdefault("type", "about:blank")
    prob.setdefault("detail", "")
    prob["instance"] = str(request.url.path)
    prob.update(_state_ids(request))
    for k, v in (extras or {}).items():
        # extension members never clobber the standard ones
        prob.setdefault(k, v)
    return prob


def _respond(status: int, body: Dict[str, Any]) -> JSONResponse:
    return JSONResponse(status_code=status, content=jsonable_encoder(body), media_type=PROBLEM_CT)


# --------------------------- Handlers ---------------------------


async def _handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    body = _problem(request, exc.to_problem())
    if exc.status_code >= 500:
        log.error("api_error", **body)
    else:
        log.warning("api_error", **body)
    return _respond(exc.status_code, body)


async def _handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    status = int(exc.status_code)
    title = _HTTP_TITLES.get(status, "Error")
    body = _problem(
        request,
        {
            "title": title,
            "status": status,
            "code": title.lower().replace(" ", "_"),
            "detail": str(exc.detail) if exc.detail else "",
        },
    )
    (log.warning if status < 500 else log.error)("http_exception", **body)
    return _respond(status, body)


async def _handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    err = BadRequest("Request validation failed.", details={"errors": exc.errors()})
    body = _problem(request, err.to_problem())
    log.warning("validation_error", path=body["instance"], request_id=body["request_id"])
    return _respond(err.status_code, body)


async def _handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    err = ServerError("An unexpected error occurred. Retry or report the request_id.")
    body = _problem(request, err.to_problem())
    log.exception("unhandled_exception", **body)
    return _respond(err.status_code, body)


# --------------------------- Installer ---------------------------


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, _handle_api_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _handle_unexpected_error)


__all__ = ["install_error_handlers", "PROBLEM_CT"]
