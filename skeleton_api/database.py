"""
Database Engine and Sessions

Synchronous SQLAlchemy 2.0. FastAPI runs sync route handlers in its
threadpool, so a blocking query only holds up its own request.

Each request gets its own session from get_db(); the store commits or
rolls back, and the session is closed when the request ends.

The engine and session factory are built by create_app() and stored on
app.state, so separate application instances (tests, workers) never share
a connection pool.
"""

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from skeleton_api.config import Settings


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

        class Example(Base):
            __tablename__ = "examples"
            ...
    """
    pass


# =============================================================================
# Engine / Session Factories
# =============================================================================
def create_db_engine(settings: Settings) -> Engine:
    """
    Create the SQLAlchemy engine for the configured database URL.

    Key parameters:
    - pool_size / max_overflow: connection pool sizing (server databases)
    - pool_pre_ping: test connection health before using
    - echo: log all SQL statements in debug mode

    SQLite gets a single shared connection instead of a pool so that an
    in-memory database survives across sessions.
    """
    if settings.database_url.startswith("sqlite"):
        return create_engine(
            settings.database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=settings.debug,
        )

    return create_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.debug,
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """
    Create the session factory bound to an engine.

    - autocommit=False: We control when to commit
    - autoflush=False: Don't auto-flush before queries
    """
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )


# =============================================================================
# Dependency Injection
# =============================================================================
def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI.

    Yields a session from the application's session factory and closes it
    when the request ends, even if the handler raised.

    Usage in Routes:
        @router.get("/examples")
        def list_examples(db: Session = Depends(get_db)):
            ...
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


# =============================================================================
# Utility Functions
# =============================================================================
def ping(db: Session) -> bool:
    """Return True when the database answers a trivial query."""
    db.execute(text("SELECT 1"))
    return True


def create_tables(engine: Engine) -> None:
    """
    Create all database tables.

    Only creates missing tables; it never alters existing ones.
    """
    Base.metadata.create_all(bind=engine)


def drop_tables(engine: Engine) -> None:
    """
    Drop all database tables.

    Used by the test suite teardown.
    """
    Base.metadata.drop_all(bind=engine)
