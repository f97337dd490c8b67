"""
Tracing Middleware

Continues the caller's trace when the request carries W3C trace context
headers, otherwise starts a new trace. One SERVER span per request; the
span is stored on the request context so handlers can add attributes.
"""

from opentelemetry.propagate import extract
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import SpanKind, Status, StatusCode
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from skeleton_api.context import get_request_context, route_template
from skeleton_api.services.tracing import TRACER_NAME

COMPONENT = "fastapi"


class TracingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, provider: TracerProvider) -> None:
        super().__init__(app)
        self.tracer = provider.get_tracer(TRACER_NAME)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        ctx = get_request_context(request)
        parent = extract(request.headers)

        with self.tracer.start_as_current_span(
            f"{request.method} {request.url.path}",
            context=parent,
            kind=SpanKind.SERVER,
            attributes={
                "http.method": request.method,
                "http.url": str(request.url),
                "component": COMPONENT,
            },
        ) as span:
            ctx.span = span
            try:
                response = await call_next(request)
            except Exception:
                span.set_attribute("http.status_code", 500)
                raise

            route = route_template(request)
            span.update_name(f"{request.method} {route}")
            span.set_attribute("http.route", route)
            span.set_attribute("http.status_code", response.status_code)

            if ctx.has_errors or response.status_code >= 500:
                message = "; ".join(ctx.errors) or f"HTTP {response.status_code}"
                span.set_attribute("error", True)
                span.set_attribute("error.message", message)
                span.set_status(Status(StatusCode.ERROR, message))

            return response
