"""
Schema Bootstrap

Ensures the tables, the extra indexes and a couple of seed rows exist.
This is not a migration engine: existing tables are never altered.

Run automatically from the application lifespan when AUTO_MIGRATE is on,
or by hand with scripts/init_db.py.
"""

import logging

from sqlalchemy import Engine, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from skeleton_api.database import create_tables
from skeleton_api.models.example import STATUS_ENABLED, Example

logger = logging.getLogger(__name__)

SEED_OWNER = "system"

INDEX_STATEMENTS = [
    "CREATE INDEX IF NOT EXISTS idx_examples_status ON examples(status)",
    "CREATE INDEX IF NOT EXISTS idx_examples_created_by ON examples(created_by)",
]

SEED_EXAMPLES = [
    {
        "title": "Example title 1",
        "description": "Description of the first example",
        "status": STATUS_ENABLED,
        "sort_order": 1,
    },
    {
        "title": "Example title 2",
        "description": "Description of the second example",
        "status": STATUS_ENABLED,
        "sort_order": 2,
    },
]


def auto_migrate(engine: Engine) -> None:
    """Create any missing tables."""
    try:
        create_tables(engine)
    except SQLAlchemyError as e:
        logger.error(f"Database migration failed: {e}")
        raise
    logger.info("Database migration completed")


def create_indexes(engine: Engine) -> None:
    """Create the secondary indexes used by list and ownership queries."""
    try:
        with engine.begin() as conn:
            for statement in INDEX_STATEMENTS:
                conn.execute(text(statement))
    except SQLAlchemyError as e:
        logger.error(f"Index creation failed: {e}")
        raise
    logger.info("Database indexes ensured")


def seed_data(db: Session) -> int:
    """
    Insert the default examples when the table is empty.

    Returns:
        Number of rows inserted (0 if the table already had data)
    """
    count = db.execute(select(func.count(Example.id))).scalar() or 0
    if count:
        logger.debug(f"Skipping seed, examples table already has {count} rows")
        return 0

    try:
        db.add_all([Example(**row, created_by=SEED_OWNER) for row in SEED_EXAMPLES])
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to seed examples: {e}")
        raise

    logger.info(f"Seeded {len(SEED_EXAMPLES)} default examples")
    return len(SEED_EXAMPLES)


def bootstrap(engine: Engine, session: Session, seed: bool = True) -> None:
    """Run the full bootstrap: tables, indexes and (optionally) seed rows."""
    auto_migrate(engine)
    create_indexes(engine)
    if seed:
        seed_data(session)
