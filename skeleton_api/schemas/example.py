"""
Example Pydantic Schemas

Request payloads are declared statically per operation:
- ExampleCreate: title required, everything else defaulted
- ExampleUpdate: every field optional; only fields actually sent are
  applied (model_dump(exclude_unset=True))
- ExampleResponse: what clients get back (deleted_at is never exposed)
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from skeleton_api.models.example import STATUS_DISABLED, STATUS_ENABLED

VALID_STATUSES = {STATUS_DISABLED, STATUS_ENABLED}


def _validate_status(v: Optional[int]) -> Optional[int]:
    if v is not None and v not in VALID_STATUSES:
        raise ValueError(f"status must be one of {sorted(VALID_STATUSES)}")
    return v


class ExampleCreate(BaseModel):
    """Schema for creating a new example."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Example title",
        examples=["First example"],
    )
    description: str = Field(
        default="",
        description="Free-form description",
    )
    status: int = Field(
        default=STATUS_ENABLED,
        description="1 = enabled, 0 = disabled",
    )
    sort_order: int = Field(
        default=0,
        ge=0,
        description="Ascending display order",
    )

    @field_validator("title")
    @classmethod
    def title_must_not_be_blank(cls, v: str) -> str:
        """Validate and normalize title."""
        if not v.strip():
            raise ValueError("Title cannot be empty or whitespace")
        return v.strip()

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, v: int) -> int:
        return _validate_status(v)


class ExampleUpdate(BaseModel):
    """Schema for updating an existing example. All fields optional."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Example title",
    )
    description: Optional[str] = Field(
        default=None,
        description="Free-form description",
    )
    status: Optional[int] = Field(
        default=None,
        description="1 = enabled, 0 = disabled",
    )
    sort_order: Optional[int] = Field(
        default=None,
        ge=0,
        description="Ascending display order",
    )

    @field_validator("title")
    @classmethod
    def title_must_not_be_blank(cls, v: Optional[str]) -> str:
        """Validate title if provided; explicit null is not allowed."""
        if v is None or not v.strip():
            raise ValueError("Title cannot be null, empty or whitespace")
        return v.strip()

    @field_validator("description", "status", "sort_order")
    @classmethod
    def must_not_be_null(cls, v):
        # Validators only run for values that were sent, so None here
        # means the client explicitly asked to null a required column.
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    @field_validator("status")
    @classmethod
    def status_must_be_known(cls, v: int) -> int:
        return _validate_status(v)


class ExampleResponse(BaseModel):
    """Schema for example responses."""

    id: int = Field(..., description="Unique identifier")
    title: str
    description: str
    status: int
    sort_order: int
    created_by: str = Field(..., description="Owner identity")
    created_at: datetime = Field(..., description="When the example was created")
    updated_at: datetime = Field(..., description="When the example was last updated")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "First example",
                "description": "The first example record",
                "status": 1,
                "sort_order": 0,
                "created_by": "alice",
                "created_at": "2024-01-15T10:30:00Z",
                "updated_at": "2024-01-15T10:30:00Z",
            }
        },
    )
