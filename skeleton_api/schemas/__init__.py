"""
Pydantic Schemas Package

This package contains Pydantic models for request/response validation.

Schema Naming Convention:
- XxxCreate: Fields required when creating a new record
- XxxUpdate: Fields allowed when updating (all optional)
- XxxResponse: Fields returned in API responses

Every response body is wrapped in the envelope from envelope.py.
"""

from skeleton_api.schemas.envelope import Envelope, PageData
from skeleton_api.schemas.example import (
    ExampleCreate,
    ExampleResponse,
    ExampleUpdate,
)

__all__ = [
    # Envelope
    "Envelope",
    "PageData",
    # Example schemas
    "ExampleCreate",
    "ExampleUpdate",
    "ExampleResponse",
]
