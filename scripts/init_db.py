#!/usr/bin/env python3
"""
Database Init Script

Creates the tables and indexes and inserts the default examples.
The application does the same on startup when AUTO_MIGRATE is on; use this
script when it is off.

USAGE:
    # Make sure you're in the project root with venv activated
    python scripts/init_db.py

    # Skip the seed rows
    python scripts/init_db.py --no-seed
"""

import argparse
import sys
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from skeleton_api.config import get_settings
from skeleton_api.database import create_db_engine, create_session_factory
from skeleton_api.services.migration import auto_migrate, create_indexes, seed_data


def init_database(seed: bool = True) -> None:
    """
    Main function to initialise the database.

    Args:
        seed: If True, inserts the default examples into an empty table.
    """
    settings = get_settings()

    print("=" * 60)
    print(f"Initialising database: {settings.database_url.split('@')[-1]}")
    print("=" * 60)

    engine = create_db_engine(settings)
    session_factory = create_session_factory(engine)

    try:
        auto_migrate(engine)
        print("Tables ensured.")
        create_indexes(engine)
        print("Indexes ensured.")

        if seed:
            with session_factory() as db:
                inserted = seed_data(db)
            print(f"Seed rows inserted: {inserted}")

        print("=" * 60)
        print("Database initialisation completed successfully!")
        print("=" * 60)
    finally:
        engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create tables, indexes and seed rows.")
    parser.add_argument("--no-seed", action="store_true", help="do not insert default examples")
    args = parser.parse_args()

    init_database(seed=not args.no_seed)
