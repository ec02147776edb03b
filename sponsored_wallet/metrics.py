from __future__ import annotations

"""
Prometheus metrics and the /metrics exporter.

Recorded
--------
- http_requests_total{method,route,status}           scrapes of /metrics are not counted
- http_request_duration_seconds{method,route,status}  (histogram)
- pipeline_stage_total{stage,outcome}                 one per attempted stage
- override_active                                     1 while a prover override is installed
- service_info{name,version}

Usage
-----
    metrics = setup_metrics(app, service_version=__version__)
    metrics.bind_session(session)   # pipeline counters + override gauge
"""

import time
from typing import Any, Dict, Optional, Tuple

from fastapi import APIRouter, FastAPI
from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, Histogram, Info, generate_latest)
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

_LATENCY_BUCKETS = (0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)
_HTTP_LABELS = ("method", "route", "status")


class Metrics:
    """Registry and metric objects; exposed as ``app.state.metrics``."""

    def __init__(self, service_name: str, service_version: Optional[str] = None) -> None:
        self.registry = CollectorRegistry()

        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            _HTTP_LABELS,
            registry=self.registry,
        )
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            _HTTP_LABELS,
            buckets=_LATENCY_BUCKETS,
            registry=self.registry,
        )
        self.pipeline_stage_total = Counter(
            "pipeline_stage_total",
            "Transaction pipeline stage transitions",
            ["stage", "outcome"],
            registry=self.registry,
        )
        self.override_active = Gauge(
            "override_active",
            "1 while a prover identity override is installed",
            registry=self.registry,
        )

        self.service_info = Info("service", "Service metadata", registry=self.registry)
        self.service_info.info({"name": service_name, "version": service_version or "unknown"})

    def observe_stage(self, stage: str, outcome: str) -> None:
        self.pipeline_stage_total.labels(stage, outcome).inc()

    def bind_session(self, session: Any) -> None:
        """Feed pipeline transitions and the override state of ``session`` into the registry."""
        session.set_observer(self.observe_stage)
        self.override_active.set_function(lambda: 1.0 if session.ctx.active else 0.0)

    def exposition(self) -> bytes:
        return generate_latest(self.registry)


def _path_template(scope: Scope) -> str:
    """Route template (low cardinality) when routed, else the raw path."""
    route = scope.get("route")
    tmpl = getattr(route, "path_format", None) or getattr(route, "path", None)
    if isinstance(tmpl, str) and tmpl:
        return tmpl
    return scope.get("path") or "/"


class PrometheusMiddleware:
    def __init__(self, app: ASGIApp, metrics: Metrics, exclude: Tuple[str, ...] = ()):
        self.app = app
        self.metrics = metrics
        self.exclude = frozenset(exclude)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path") in self.exclude:
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        start = time.perf_counter()
        status_code = 500

        async def capture_status(message: Dict[str, Any]) -> None:
            nonlocal status_code
            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 500))
            await send(message)

        try:
            await self.app(scope, receive, capture_status)
        finally:
            labels = (method, _path_template(scope), str(status_code))
            self.metrics.http_requests_total.labels(*labels).inc()
            self.metrics.http_request_duration_seconds.labels(*labels).observe(time.perf_counter() - start)


def create_metrics_router(metrics: Metrics, path: str = "/metrics") -> APIRouter:
    router = APIRouter()

    @router.get(path, include_in_schema=False)
    async def metrics_endpoint() -> Response:
        return Response(content=metrics.exposition(), media_type=CONTENT_TYPE_LATEST)

    return router


def setup_metrics(
    app: FastAPI,
    *,
    service_name: str = "sponsored-wallet",
    service_version: Optional[str] = None,
    path: str = "/metrics",
) -> Metrics:
    """
    Create the registry, add the HTTP middleware and mount the exporter.
    Stores the instance in ``app.state.metrics``.
    """
    metrics = Metrics(service_name=service_name, service_version=service_version)
    app.add_middleware(PrometheusMiddleware, metrics=metrics, exclude=(path,))
    app.include_router(create_metrics_router(metrics, path))
    app.state.metrics = metrics
    return metrics


__all__ = [
    "Metrics",
    "PrometheusMiddleware",
    "create_metrics_router",
    "setup_metrics",
]
