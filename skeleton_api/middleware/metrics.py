"""
Metrics Middleware

Records Prometheus request metrics, labeled by the route template rather
than the raw path so that IDs do not explode label cardinality.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from skeleton_api.context import route_template
from skeleton_api.services.metrics import HTTPMetrics


def _content_length(value: str | None) -> int | None:
    if value is None or not value.isdigit():
        return None
    return int(value)


class MetricsMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, metrics: HTTPMetrics) -> None:
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        status = 500
        response_size = None
        self.metrics.active_connections.inc()

        try:
            response = await call_next(request)
            status = response.status_code
            response_size = _content_length(response.headers.get("content-length"))
            return response
        finally:
            # A fault unwinding to the recovery stage is counted as a 500
            self.metrics.active_connections.dec()
            self.metrics.observe(
                method=request.method,
                path=route_template(request),
                status=status,
                duration=time.perf_counter() - start,
                request_size=_content_length(request.headers.get("content-length")),
                response_size=response_size,
            )
