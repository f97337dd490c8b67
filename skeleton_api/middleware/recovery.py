"""
Recovery Middleware

Error boundary around everything downstream. An exception that no
exception handler dealt with is logged with its traceback, recorded on the
request context, reported to the alert webhook in the background, and
turned into a generic 500 envelope. The client never sees exception text.
Rate limit headers set for the request are kept on that 500.
"""

import logging
import traceback

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from skeleton_api.context import get_request_context
from skeleton_api.errors import InternalError
from skeleton_api.middleware.rate_limit import RATE_LIMIT_ANNOTATION
from skeleton_api.schemas.envelope import error_response
from skeleton_api.services.alerts import AlertNotifier
from skeleton_api.services.rate_limiter import get_client_ip

logger = logging.getLogger(__name__)


class RecoveryMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, notifier: AlertNotifier) -> None:
        super().__init__(app)
        self.notifier = notifier

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            ctx = get_request_context(request)
            client_ip = get_client_ip(request)
            stack = traceback.format_exc()

            logger.error(
                f"Unhandled error on {request.method} {request.url.path} "
                f"from {client_ip}: {exc!r}",
                exc_info=exc,
            )
            ctx.record_error(f"{type(exc).__name__}: {exc}")

            self.notifier.dispatch(
                self.notifier.build_message(
                    method=request.method,
                    path=request.url.path,
                    client_ip=client_ip,
                    error=repr(exc),
                    stack=stack,
                )
            )

            rate_limit = ctx.annotations.get(RATE_LIMIT_ANNOTATION)
            headers = rate_limit.headers if rate_limit is not None else None
            return error_response(InternalError(), headers=headers)
