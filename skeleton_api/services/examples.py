"""
Example Store

Persistence for the Example resource. Routers never touch the session
directly; they go through ExampleStore so that ownership rules, soft
deletes and storage error handling live in one place.

Rules:
- Soft-deleted rows (deleted_at set) are invisible to every normal query
- Only the creator or the "admin" identity may update or delete a row
- Any SQLAlchemy failure rolls the session back and surfaces as
  StorageUnavailable; storage details are logged, never returned
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from skeleton_api.errors import NotFound, PermissionDenied, StorageUnavailable
from skeleton_api.models.example import Example
from skeleton_api.schemas.example import ExampleCreate, ExampleUpdate

logger = logging.getLogger(__name__)

ADMIN_IDENTITY = "admin"

# Largest OFFSET a signed 64-bit database integer can hold
MAX_OFFSET = 2**63 - 1


def can_modify(example: Example, actor: str) -> bool:
    """Ownership rule: the creator or the admin identity."""
    return actor == example.created_by or actor == ADMIN_IDENTITY


class ExampleStore:
    """
    Session-bound store for examples.

    Args:
        db: The request's database session
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Storage failure during {operation}: {e}")
            raise StorageUnavailable() from e

    def _alive(self):
        return select(Example).where(Example.deleted_at.is_(None))

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def list(self, page: int, size: int) -> tuple[Sequence[Example], int]:
        """
        Return one page of live examples and the total count.

        Items are ordered by (sort_order, id). A page past the end yields
        an empty sequence together with the true total.
        """
        offset = (page - 1) * size

        with self._guard("list"):
            total = self.db.execute(
                select(func.count(Example.id)).where(Example.deleted_at.is_(None))
            ).scalar() or 0
            if offset > MAX_OFFSET:
                return [], total

            stmt = (
                self._alive()
                .order_by(Example.sort_order, Example.id)
                .offset(offset)
                .limit(size)
            )
            items = self.db.execute(stmt).scalars().all()

        return items, total

    def get(self, example_id: int) -> Example:
        """Get a live example by ID or raise NotFound."""
        with self._guard("get"):
            example = self.db.execute(
                self._alive().where(Example.id == example_id)
            ).scalar_one_or_none()

        if example is None:
            raise NotFound(f"Example {example_id} not found")
        return example

    def get_unscoped(self, example_id: int) -> Example | None:
        """Get an example by ID including soft-deleted rows (audit use)."""
        with self._guard("get_unscoped"):
            return self.db.execute(
                select(Example).where(Example.id == example_id)
            ).scalar_one_or_none()

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------
    def create(self, payload: ExampleCreate, owner: str) -> Example:
        """Insert a new example owned by ``owner``."""
        example = Example(**payload.model_dump(), created_by=owner)

        with self._guard("create"):
            self.db.add(example)
            self.db.commit()
            self.db.refresh(example)

        logger.info(f"Example {example.id} created by {owner}")
        return example

    def update(self, example_id: int, payload: ExampleUpdate, actor: str) -> Example:
        """
        Apply the fields present in ``payload`` to an example.

        Raises:
            NotFound: No live example with this ID
            PermissionDenied: ``actor`` is neither the creator nor admin
        """
        example = self._get_for_change(example_id, actor)

        update_data = payload.model_dump(exclude_unset=True)
        for field, value in update_data.items():
            setattr(example, field, value)

        with self._guard("update"):
            self.db.commit()
            self.db.refresh(example)

        logger.info(f"Example {example_id} updated by {actor}: {sorted(update_data)}")
        return example

    def delete(self, example_id: int, actor: str) -> None:
        """Soft-delete an example (same checks as update)."""
        example = self._get_for_change(example_id, actor)
        example.deleted_at = datetime.now(UTC)

        with self._guard("delete"):
            self.db.commit()

        logger.info(f"Example {example_id} deleted by {actor}")

    def _get_for_change(self, example_id: int, actor: str) -> Example:
        example = self.get(example_id)
        if not can_modify(example, actor):
            logger.warning(
                f"{actor} tried to modify example {example_id} owned by {example.created_by}"
            )
            raise PermissionDenied()
        return example
