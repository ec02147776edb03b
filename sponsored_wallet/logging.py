from __future__ import annotations

"""
Structured logging for Sponsored Wallet Services.

structlog renders every event (ours and those of uvicorn / httpx routed
through stdlib ``logging``) as one JSON object per line, or as coloured console
output for local runs and the ``demo`` command.

Each event carries ``service``, ``logger``, ``level`` and an ISO timestamp,
plus whatever the request-id middleware bound into contextvars
(``request_id``, ``trace_id``, ``span_id``).

Wallet material is kept out of the sink: seed fields and credentials are
masked, and raw ``bytes`` values (keys, proofs) are logged as hex.

    from sponsored_wallet.logging import setup_logging, get_logger

    setup_logging(level="INFO")           # once, at process start
    log = get_logger(__name__)
    log.info("pipeline_submitted", tx_id=tx_id)

Environment: LOG_LEVEL (default INFO), LOG_FORMAT ("json" | "console").
"""

import logging
import os
from typing import Any, Dict, List, Optional

import structlog
from structlog.contextvars import merge_contextvars

SECRET_FIELDS = frozenset({"authorization", "password", "secret", "secret_key", "seed", "token"})

# Third-party loggers that are chatty at INFO.
_QUIET_LOGGERS = {
    "asyncio": "LOG_LEVEL_ASYNCIO",
    "httpcore": "LOG_LEVEL_HTTPCORE",
    "httpx": "LOG_LEVEL_HTTPX",
}

EventDict = Dict[str, Any]


# ------------------------------ Processors -----------------------------------


def _scrub_secrets(_: Any, __: str, event: EventDict) -> EventDict:
    for k, v in event.items():
        name = k.lower()
        if v is not None and (name in SECRET_FIELDS or name.endswith("_seed")):
            event[k] = "***"
    return event


def _hexify_bytes(_: Any, __: str, event: EventDict) -> EventDict:
    for k, v in event.items():
        if isinstance(v, (bytes, bytearray)):
            event[k] = bytes(v).hex()
    return event


def _stamp_service(service_name: str):
    def processor(_: Any, __: str, event: EventDict) -> EventDict:
        event.setdefault("service", service_name)
        return event

    return processor


def _shared_chain(service_name: str, tracebacks: bool) -> List[Any]:
    chain: List[Any] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        merge_contextvars,
        structlog.processors.StackInfoRenderer(),
    ]
    if tracebacks:
        chain.append(structlog.processors.format_exc_info)
    chain += [
        _scrub_secrets,
        _hexify_bytes,
        structlog.processors.UnicodeDecoder(),
        _stamp_service(service_name),
    ]
    return chain


# ------------------------------ Setup ----------------------------------------


def setup_logging(
    *,
    service_name: str = "sponsored-wallet",
    level: Optional[str | int] = None,
    log_format: Optional[str] = None,
) -> None:
    """
    Configure structlog and the stdlib root logger. Call once per process.

    ``level`` and ``log_format`` fall back to $LOG_LEVEL / $LOG_FORMAT, then
    to INFO / json. JSON output includes formatted tracebacks; the console
    renderer prints its own.
    """
    level = level or os.getenv("LOG_LEVEL", "").upper() or "INFO"
    fmt = (log_format or os.getenv("LOG_FORMAT") or "json").lower()

    shared = _shared_chain(service_name, tracebacks=fmt != "console")
    if fmt == "console":
        renderer: Any = structlog.dev.ConsoleRenderer(colors=True, sort_keys=False)
    else:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            *shared,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=[structlog.stdlib.add_logger_name, *shared],
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # uvicorn installs its own handlers; route them through ours instead.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.handlers = [handler]
        lg.propagate = False
        lg.setLevel(level)

    for name, env in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(os.getenv(env, "WARNING"))


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """Structlog logger, with ``logger=<name>`` bound when a name is given."""
    log = structlog.get_logger()
    return log.bind(logger=name) if name else log


# ------------------------------ Request context ------------------------------


def bind_request_context(**kv: Any) -> None:
    structlog.contextvars.bind_contextvars(**kv)


def clear_request_context(*keys: str) -> None:
    """Unbind ``keys``, or every contextvar when called without arguments."""
    if keys:
        structlog.contextvars.unbind_contextvars(*keys)
    else:
        structlog.contextvars.clear_contextvars()


__all__ = [
    "setup_logging",
    "get_logger",
    "bind_request_context",
    "clear_request_context",
]
