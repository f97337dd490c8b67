"""
Response Envelope

Every JSON body the API returns has the same outer shape:

    {"code": 0, "message": "OK", "data": {...}}

- code == 0 means success; any other value is an error kind from
  skeleton_api.errors
- data is omitted when there is nothing to return
- HTTP status is chosen by the caller, independent of code
"""

from typing import Any, Generic, List, Optional, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from skeleton_api.errors import APIError

T = TypeVar("T")

OK_CODE = 0
OK_MESSAGE = "OK"


class Envelope(BaseModel, Generic[T]):
    """Uniform response wrapper, used for OpenAPI documentation."""

    code: int = Field(default=OK_CODE, description="0 on success, error code otherwise")
    message: str = Field(default=OK_MESSAGE, description="Human-readable status")
    data: Optional[T] = Field(default=None, description="Payload, omitted when empty")


class PageData(BaseModel, Generic[T]):
    """Paginated list payload."""

    list: List[T] = Field(..., description="Items on the requested page")
    total: int = Field(..., description="Total number of items across all pages")
    page: int = Field(..., description="Current page number (1-indexed)")
    size: int = Field(..., description="Items per page")


def envelope(code: int, message: str, data: Any = None) -> dict[str, Any]:
    """Build the envelope body, dropping data when it is None."""
    body: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    return body


def success(data: Any = None, status_code: int = 200) -> JSONResponse:
    """Business success response."""
    return JSONResponse(status_code=status_code, content=envelope(OK_CODE, OK_MESSAGE, data))


def page(items: list, total: int, page: int, size: int) -> JSONResponse:
    """Paginated business success response."""
    return success({"list": items, "total": total, "page": page, "size": size})


def error_response(
    exc: APIError,
    status_code: int | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """
    Render an error kind through the envelope.

    Args:
        exc: The error kind (its code and message go into the body)
        status_code: HTTP status; defaults to the kind's own status
        headers: Extra response headers (e.g. rate-limit headers)
    """
    return JSONResponse(
        status_code=status_code or exc.status_code,
        content=envelope(exc.code, exc.message, exc.data),
        headers=headers,
    )
