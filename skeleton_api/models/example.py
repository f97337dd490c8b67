"""
Example Model

The sample resource this service is built around. Copy it (together with
its schemas, store and router) to add a new resource type.

Examples are soft-deleted: DELETE stamps deleted_at instead of removing
the row, so historical references keep resolving for audits.
"""

from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from skeleton_api.database import Base

STATUS_DISABLED = 0
STATUS_ENABLED = 1


class Example(Base):
    """
    Example model.

    Table: examples

    Indexes:
    - Primary key on id (automatic)
    - created_by: ownership lookups
    - status: filtering by enabled/disabled
    - deleted_at: excluding tombstoned rows

    Example:
        example = Example(title="First", created_by="alice")
    """

    __tablename__ = "examples"

    # -------------------------------------------------------------------------
    # Primary Key
    # -------------------------------------------------------------------------
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # -------------------------------------------------------------------------
    # Basic Fields
    # -------------------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    description: Mapped[str] = mapped_column(
        Text,
        default="",
        nullable=False,
    )

    status: Mapped[int] = mapped_column(
        Integer,
        default=STATUS_ENABLED,
        nullable=False,
        comment="1 = enabled, 0 = disabled",
    )

    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        comment="Ascending display order",
    )

    # Identity of the creator; only they (or admin) may change the row
    created_by: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Owner identity",
    )

    # -------------------------------------------------------------------------
    # Timestamps
    # -------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"Example(id={self.id}, title='{self.title}', created_by='{self.created_by}')"
