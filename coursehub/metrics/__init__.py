"""Prometheus metrics for the HTTP surface and the course pipeline."""

from __future__ import annotations

import time
from typing import Any, Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()
REQUESTS = Counter(
    "requests_total", "HTTP requests", ["path", "method", "status"], registry=REGISTRY
)
LATENCY = Histogram(
    "request_latency_seconds",
    "Request latency (seconds)",
    ["path", "method"],
    registry=REGISTRY,
)
COURSE_CACHE_EVENTS = Counter(
    "course_cache_events_total",
    "Course cache lookups by result",
    ["result"],
    registry=REGISTRY,
)
UPSTREAM_PAGES = Counter(
    "upstream_pages_total",
    "Upstream catalog page fetches by outcome",
    ["outcome"],
    registry=REGISTRY,
)


async def metrics_app(_req: Request | None = None) -> Response:
    data = generate_latest(REGISTRY)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


def _route_label(scope: dict[str, Any]) -> str:
    # Prefer the matched route template so path parameters don't explode labels.
    route = scope.get("route")
    template = getattr(route, "path", None)
    if template:
        return str(template)
    return str(scope.get("path", ""))


class MetricsMiddleware:
    """Record request counts and latency for every HTTP request."""

    def __init__(self, app: Callable[..., Awaitable[Any]]):
        self.app = app

    async def __call__(
        self,
        scope: dict[str, Any],
        receive: Callable[..., Awaitable[Any]],
        send: Callable[..., Awaitable[Any]],
    ) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "GET")
        start = time.perf_counter()
        status_code = 500

        async def _send(message: dict[str, Any]) -> None:
            nonlocal status_code
            if message.get("type") == "http.response.start":
                status_code = message.get("status", 200)
            await send(message)

        try:
            await self.app(scope, receive, _send)
        finally:
            path = _route_label(scope)
            LATENCY.labels(path=path, method=method).observe(
                time.perf_counter() - start
            )
            REQUESTS.labels(path=path, method=method, status=str(status_code)).inc()


__all__ = [
    "REGISTRY",
    "REQUESTS",
    "LATENCY",
    "COURSE_CACHE_EVENTS",
    "UPSTREAM_PAGES",
    "metrics_app",
    "MetricsMiddleware",
]
