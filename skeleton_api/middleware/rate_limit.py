"""
Rate Limit Middleware

Counts every request against the client IP's fixed window. Rate limit
headers go on every response of a limited path, whether it was allowed
or not; a rejected request is answered with 429 here and never reaches
the route.
"""

from collections.abc import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from skeleton_api.context import get_request_context
from skeleton_api.errors import RateLimited
from skeleton_api.schemas.envelope import error_response
from skeleton_api.services.rate_limiter import RateLimiter, get_client_ip

RATE_LIMIT_ANNOTATION = "rate_limit"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        limiter: RateLimiter,
        exempt_paths: Iterable[str] = (),
    ) -> None:
        super().__init__(app)
        self.limiter = limiter
        self.exempt_paths = frozenset(exempt_paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in self.exempt_paths:
            return await call_next(request)

        result = self.limiter.check(get_client_ip(request))
        # Recovery answers faults from further down; it reads this to keep
        # the headers on its 500.
        get_request_context(request).annotations[RATE_LIMIT_ANNOTATION] = result
        if not result.allowed:
            return error_response(RateLimited(), headers=result.headers)

        response = await call_next(request)
        response.headers.update(result.headers)
        return response
