"""
Request Logging Middleware

Writes exactly one structured access record per request on the
``skeleton_api.access`` logger: ERROR when something was recorded on the
request context's error list, INFO otherwise. The request fields are
event keys, so the JSON formatter from log_config renders the record as
one line. Request and response bodies are included, truncated to a
configurable number of bytes.

This is also the first custom stage, so it creates the request context.
"""

import time

import structlog
from starlette.concurrency import iterate_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from skeleton_api.context import get_request_context
from skeleton_api.services.rate_limiter import get_client_ip

access_logger = structlog.get_logger("skeleton_api.access")

DEFAULT_BODY_LIMIT = 2048


def _snapshot(body: bytes, limit: int) -> str:
    text = body[:limit].decode("utf-8", errors="replace")
    if len(body) > limit:
        text += f"...({len(body)} bytes)"
    return text


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, body_limit: int = DEFAULT_BODY_LIMIT) -> None:
        super().__init__(app)
        self.body_limit = body_limit

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        ctx = get_request_context(request)
        start = time.perf_counter()
        ctx.request_body = await request.body()

        response = await call_next(request)

        # Drain the streamed body so it can be logged, then hand it back
        chunks = [chunk async for chunk in response.body_iterator]
        ctx.response_body = b"".join(chunks)
        response.body_iterator = iterate_in_threadpool(iter(chunks))

        latency_ms = (time.perf_counter() - start) * 1000
        fields = {
            "method": request.method,
            "path": request.url.path,
            "query": request.url.query,
            "ip": get_client_ip(request),
            "user_agent": request.headers.get("user-agent", ""),
            "status": response.status_code,
            "latency_ms": round(latency_ms, 2),
            "request_body": _snapshot(ctx.request_body, self.body_limit),
            "response_body": _snapshot(ctx.response_body, self.body_limit),
        }
        if ctx.identity is not None:
            fields["identity"] = ctx.identity.identity
        if ctx.span is not None:
            fields["trace_id"] = f"{ctx.span.get_span_context().trace_id:032x}"

        if ctx.has_errors:
            access_logger.error("request failed", errors=list(ctx.errors), **fields)
        else:
            access_logger.info("request completed", **fields)

        return response
