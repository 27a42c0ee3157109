"""SQLAlchemy database configuration and connection management.

This module is responsible for:
- Engine creation and SQLite connection pragmas
- Session factory creation
- Global engine and session factory lifecycle
"""

from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from music_catalog.config import get_logger, settings

logger = get_logger(__name__)


def _is_sqlite(db_url: str) -> bool:
    return db_url.startswith("sqlite")


def _is_in_memory(db_url: str) -> bool:
    database = make_url(db_url).database
    return not database or database == ":memory:"


def create_db_engine(connection_string: str | None = None) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    SQLite connections get foreign key enforcement and a busy timeout on
    connect. In-memory databases share a single static connection so every
    session sees the same schema and rows.
    """
    db_url = connection_string or settings.database.url
    engine_kwargs: dict[str, Any] = {"echo": settings.database.echo}

    if _is_sqlite(db_url):
        engine_kwargs["connect_args"] = {"check_same_thread": False}
        if _is_in_memory(db_url):
            engine_kwargs["poolclass"] = StaticPool
        else:
            Path(make_url(db_url).database).parent.mkdir(parents=True, exist_ok=True)
            engine_kwargs["pool_pre_ping"] = True
    else:
        engine_kwargs.update(
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
            pool_timeout=settings.database.pool_timeout,
            pool_recycle=settings.database.pool_recycle,
            pool_pre_ping=True,
        )

    engine = create_async_engine(db_url, **engine_kwargs)

    if _is_sqlite(db_url):
        busy_timeout = settings.database.busy_timeout_ms
        in_memory = _is_in_memory(db_url)

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _):  # type: ignore # pragma: no cover
            """Set SQLite PRAGMAs on connection creation."""
            cursor = dbapi_connection.cursor()
            cursor.execute(f"PRAGMA busy_timeout = {int(busy_timeout)}")
            cursor.execute("PRAGMA foreign_keys = ON")
            if not in_memory:
                cursor.execute("PRAGMA journal_mode = WAL")
                cursor.execute("PRAGMA synchronous = NORMAL")
            cursor.close()

    logger.debug("Created database engine", url=make_url(db_url).render_as_string())
    return engine


# Global engine singleton
_engine: AsyncEngine | None = None


def get_engine() -> AsyncEngine:
    """Get or create the global database engine singleton."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


async def dispose_engine() -> None:
    """Dispose the global engine and forget the cached session factory."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


def create_session_factory(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory for the given engine.

    Args:
        engine: Optional engine (uses global engine if None)
    """
    return async_sessionmaker(
        bind=engine or get_engine(),
        expire_on_commit=False,
        autoflush=True,
    )


# Global session factory singleton
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the global session factory singleton."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory()
    return _session_factory
