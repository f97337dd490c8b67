"""
API Error Kinds

Every failure a client can observe is one of the kinds below. Each kind
carries a stable machine-readable code, a human-readable message and a
default HTTP status. The envelope's ``code`` is authoritative; the HTTP
status is only a transport-level hint and can be overridden by the caller.

Code ranges:
- 1xxxx: System errors
- 2xxxx: Authentication / authorization errors
- 4xxxx: Resource errors
- 5xxxx: Business rule violations
"""

from typing import Any


class APIError(Exception):
    """
    Base class for errors that are rendered through the response envelope.

    Subclasses only override the class attributes; a custom message can be
    passed when the default is too generic, but it must never contain
    storage or transport internals.
    """

    code: int = 10001
    message: str = "Internal server error"
    status_code: int = 500

    def __init__(self, message: str | None = None, data: Any = None) -> None:
        if message is not None:
            self.message = message
        self.data = data
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"Err - code: {self.code}, message: {self.message}"


# =============================================================================
# System Errors
# =============================================================================

class InternalError(APIError):
    code = 10001
    message = "Internal server error"
    status_code = 500


class BindError(APIError):
    code = 10002
    message = "Invalid request parameters"
    status_code = 400


class ValidationError(APIError):
    code = 10003
    message = "Parameter validation failed"
    status_code = 400


class StorageUnavailable(APIError):
    code = 10004
    message = "Storage is temporarily unavailable"
    status_code = 500


class BrokerUnavailable(APIError):
    code = 10005
    message = "Message broker is unavailable"
    status_code = 500


class RateLimited(APIError):
    code = 10007
    message = "Too many requests"
    status_code = 429


# =============================================================================
# Authentication / Authorization Errors
# =============================================================================

class InvalidCredential(APIError):
    code = 20001
    message = "Invalid token"
    status_code = 401


class TokenExpired(APIError):
    code = 20002
    message = "Token has expired"
    status_code = 401


class TokenNotFound(APIError):
    code = 20003
    message = "Token not found"
    status_code = 401


class PermissionDenied(APIError):
    code = 20004
    message = "Permission denied"
    status_code = 403


class Unauthorized(APIError):
    code = 20005
    message = "Unauthorized"
    status_code = 401


class NotRefreshable(APIError):
    code = 20006
    message = "Token is not eligible for refresh"
    status_code = 400


# =============================================================================
# Resource Errors
# =============================================================================

class NotFound(APIError):
    code = 40001
    message = "Resource not found"
    status_code = 404


class AlreadyExists(APIError):
    code = 40002
    message = "Resource already exists"
    status_code = 409


class Conflict(APIError):
    code = 40003
    message = "Resource conflict"
    status_code = 409


# =============================================================================
# Business Errors
# =============================================================================

class BusinessError(APIError):
    code = 50001
    message = "Business rule violation"
    status_code = 400


# HTTP status -> kind, used when Starlette itself rejects a request
# (unknown route, wrong method) before any handler runs.
STATUS_ERROR_KINDS: dict[int, type[APIError]] = {
    400: BindError,
    401: Unauthorized,
    403: PermissionDenied,
    404: NotFound,
    405: BindError,
    409: Conflict,
    422: ValidationError,
    429: RateLimited,
}


def error_kind_for_status(status_code: int) -> type[APIError]:
    """Pick the closest error kind for a bare HTTP status."""
    if status_code in STATUS_ERROR_KINDS:
        return STATUS_ERROR_KINDS[status_code]
    if 400 <= status_code < 500:
        return BindError
    return InternalError
