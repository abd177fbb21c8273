"""
Request timing middleware for performance monitoring.

Adds ``X-Process-Time`` to every response, feeds the HTTP histograms and
logs slow requests.
"""

from collections.abc import Awaitable, Callable
import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 250.0
METRICS_PATH = "/metrics/prometheus"


def _endpoint_label(request: Request) -> str:
    # Route templates keep the label set bounded (ids stay out of it)
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or request.url.path


class TimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path == METRICS_PATH:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start_time
        process_time = elapsed * 1000

        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
        prometheus_metrics.record_http_request(
            method=request.method,
            endpoint=_endpoint_label(request),
            duration=elapsed,
            status_code=response.status_code,
        )

        if process_time > SLOW_REQUEST_MS:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {process_time:.2f}ms"
            )

        return response
