"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.
FastAPI's Depends() function manages their lifecycle.

Common Dependency Patterns:
- Database sessions (per-request)
- Authentication (verify the bearer token)
- Pagination parameters
- Shared services built by create_app() (read from app.state)
"""

from typing import Annotated

from fastapi import Depends, Header, Query, Request
from sqlalchemy.orm import Session

from skeleton_api.context import get_request_context
from skeleton_api.database import get_db
from skeleton_api.errors import APIError, InvalidCredential, TokenNotFound
from skeleton_api.services.events import EventPublisher
from skeleton_api.services.examples import ExampleStore
from skeleton_api.services.security import Claims, TokenService

BEARER_SCHEME = "Bearer"

# =============================================================================
# Type Aliases with Annotated
# =============================================================================
# Instead of writing:
#   def list_examples(db: Session = Depends(get_db)):
#
# You can write:
#   def list_examples(db: DbSession):

DbSession = Annotated[Session, Depends(get_db)]


# =============================================================================
# Application Services
# =============================================================================
def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_event_publisher(request: Request) -> EventPublisher:
    return request.app.state.events


def get_example_store(db: DbSession) -> ExampleStore:
    """One store per request, bound to the request's session."""
    return ExampleStore(db)


Tokens = Annotated[TokenService, Depends(get_token_service)]
Events = Annotated[EventPublisher, Depends(get_event_publisher)]
Store = Annotated[ExampleStore, Depends(get_example_store)]


# =============================================================================
# Pagination Parameters
# =============================================================================
DEFAULT_PAGE = 1
DEFAULT_SIZE = 10
MAX_SIZE = 100


def _parse_positive(raw: str | None, default: int, maximum: int | None = None) -> int:
    """Parse a query value, falling back to ``default`` when it is unusable."""
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    if value < 1 or (maximum is not None and value > maximum):
        return default
    return value


class PaginationParams:
    """
    Common pagination parameters for list endpoints.

    Parsing is lenient: a missing, non-numeric or out-of-range value falls
    back to the default instead of failing the request.
        GET /api/v1/examples?page=abc&size=500  ->  page 1, size 10

    Usage in route:
        @router.get("")
        def list_examples(store: Store, pagination: Pagination):
            items, total = store.list(pagination.page, pagination.size)
    """

    def __init__(
        self,
        page: str | None = Query(
            default=None,
            description="Page number (1-indexed, default 1)",
            examples=["1", "2"],
        ),
        size: str | None = Query(
            default=None,
            description=f"Items per page (1-{MAX_SIZE}, default {DEFAULT_SIZE})",
            examples=["10", "25"],
        ),
    ) -> None:
        self.page = _parse_positive(page, DEFAULT_PAGE)
        self.size = _parse_positive(size, DEFAULT_SIZE, MAX_SIZE)

    @property
    def skip(self) -> int:
        """
        Calculate the number of records to skip.

        Page 1 -> skip 0 items
        Page 2 -> skip size items
        """
        return (self.page - 1) * self.size


Pagination = Annotated[PaginationParams, Depends()]


# =============================================================================
# Bearer Token Authentication
# =============================================================================
def bearer_token(authorization: str) -> str:
    scheme, _, token = authorization.partition(" ")
    if scheme != BEARER_SCHEME or not token.strip():
        raise InvalidCredential("Authorization header must be 'Bearer <token>'")
    return token.strip()


def require_identity(
    request: Request,
    tokens: Tokens,
    authorization: str | None = Header(default=None),
) -> Claims:
    """
    Verify the bearer token and return the caller's claims.

    The claims are also stored on the request context so that later
    pipeline stages (access log, tracing) can see who made the request.

    Raises:
        TokenNotFound: No Authorization header
        InvalidCredential: Wrong scheme, empty token or failed verification
    """
    if not authorization:
        raise TokenNotFound()

    claims = tokens.verify(bearer_token(authorization))
    get_request_context(request).identity = claims
    return claims


def optional_identity(
    request: Request,
    tokens: Tokens,
    authorization: str | None = Header(default=None),
) -> Claims | None:
    """
    Same check as require_identity, but never fails.

    Mounted on public routes so the access log and the request span still
    name the caller when a valid token is sent.
    """
    if not authorization:
        return None

    try:
        claims = tokens.verify(bearer_token(authorization))
    except APIError:
        return None

    get_request_context(request).identity = claims
    return claims


CurrentIdentity = Annotated[Claims, Depends(require_identity)]
