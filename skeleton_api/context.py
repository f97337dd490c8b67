"""
Request Context

A per-request bag that pipeline stages use to hand information to each
other: the authenticated identity, the tracing span, body snapshots for
the access log and any errors recorded while handling the request.

The context lives on ``request.state.ctx``. Starlette keeps ``state`` in
the ASGI scope, so every middleware and the route handler see the same
object for a given request.
"""

import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from starlette.requests import Request

if TYPE_CHECKING:
    from opentelemetry.trace import Span

    from skeleton_api.services.security import Claims


@dataclass
class RequestContext:
    identity: "Claims | None" = None
    span: "Span | None" = None
    request_body: bytes = b""
    response_body: bytes = b""
    errors: list[str] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    started_at: float = field(default_factory=time.perf_counter)

    def record_error(self, message: str) -> None:
        self.errors.append(message)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def get_request_context(request: Request) -> RequestContext:
    """Return the request's context, creating it on first access."""
    ctx = getattr(request.state, "ctx", None)
    if ctx is None:
        ctx = RequestContext()
        request.state.ctx = ctx
    return ctx


def route_template(request: Request) -> str:
    """
    The matched route's path template (e.g. ``/api/v1/examples/{example_id}``).

    Only known once routing has happened; falls back to the raw URL path
    for unmatched requests.
    """
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path or request.url.path
