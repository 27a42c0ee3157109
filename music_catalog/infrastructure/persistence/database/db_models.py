"""SQLAlchemy database models for the music catalog.

This module defines the catalog tables and their relationships using
SQLAlchemy 2.0 patterns with type annotations. Join rows (plays,
performances) are owned by their aggregate root and removed with it, except
that a musician referenced by a performance cannot be deleted.
"""

from datetime import UTC, date, datetime

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    String,
    UniqueConstraint,
    inspect,
)
from sqlalchemy.ext.asyncio import AsyncAttrs, AsyncEngine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from music_catalog.config import get_logger

logger = get_logger(__name__)

# Define naming convention for constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

SIN_INDEX_NAME = "ix_musicians_sin"


class CatalogDBBase(AsyncAttrs, DeclarativeBase):
    """Base class for all database models with surrogate key and timestamps."""

    metadata = metadata

    id: Mapped[int] = mapped_column(primary_key=True)
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


class DBInstrument(CatalogDBBase):
    """Instrument lookup."""

    __tablename__ = "instruments"

    name: Mapped[str] = mapped_column(String(50), nullable=False)

    plays: Mapped[list["DBPlays"]] = relationship(
        back_populates="instrument",
        passive_deletes=True,
    )


class DBGenre(CatalogDBBase):
    """Genre lookup."""

    __tablename__ = "genres"

    name: Mapped[str] = mapped_column(String(50), nullable=False)


class DBAlbum(CatalogDBBase):
    """Album with an optional genre."""

    __tablename__ = "albums"
    __table_args__ = (Index(None, "name", "year_produced"),)

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    year_produced: Mapped[int | None]
    genre_id: Mapped[int | None] = mapped_column(
        ForeignKey("genres.id", ondelete="SET NULL"),
    )

    genre: Mapped[DBGenre | None] = relationship()


class DBMusician(CatalogDBBase):
    """Musician aggregate root."""

    __tablename__ = "musicians"
    __table_args__ = (
        Index(SIN_INDEX_NAME, "sin", unique=True),
        Index(None, "last_name", "first_name"),
    )

    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(50))
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(10), nullable=False)
    dob: Mapped[date] = mapped_column(Date, nullable=False)
    sin: Mapped[str] = mapped_column(String(9), nullable=False)
    instrument_id: Mapped[int | None] = mapped_column(
        ForeignKey("instruments.id", ondelete="SET NULL"),
    )
    version: Mapped[int] = mapped_column(default=1, nullable=False)

    # Relationships
    instrument: Mapped[DBInstrument | None] = relationship()
    plays: Mapped[list["DBPlays"]] = relationship(
        back_populates="musician",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    performances: Mapped[list["DBPerformance"]] = relationship(
        back_populates="musician",
        passive_deletes="all",
    )


class DBSong(CatalogDBBase):
    """Song aggregate root."""

    __tablename__ = "songs"
    __table_args__ = (Index(None, "title"),)

    title: Mapped[str] = mapped_column(String(80), nullable=False)
    album_id: Mapped[int | None] = mapped_column(
        ForeignKey("albums.id", ondelete="SET NULL"),
    )
    genre_id: Mapped[int | None] = mapped_column(
        ForeignKey("genres.id", ondelete="SET NULL"),
    )
    version: Mapped[int] = mapped_column(default=1, nullable=False)

    # Relationships
    album: Mapped[DBAlbum | None] = relationship()
    genre: Mapped[DBGenre | None] = relationship()
    performances: Mapped[list["DBPerformance"]] = relationship(
        back_populates="song",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class DBPlays(CatalogDBBase):
    """Musician plays instrument."""

    __tablename__ = "plays"
    __table_args__ = (UniqueConstraint("musician_id", "instrument_id"),)

    musician_id: Mapped[int] = mapped_column(
        ForeignKey("musicians.id", ondelete="CASCADE"),
    )
    instrument_id: Mapped[int] = mapped_column(
        ForeignKey("instruments.id", ondelete="CASCADE"),
    )

    musician: Mapped[DBMusician] = relationship(back_populates="plays")
    instrument: Mapped[DBInstrument] = relationship(back_populates="plays")


class DBPerformance(CatalogDBBase):
    """Musician performed on song."""

    __tablename__ = "performances"
    __table_args__ = (UniqueConstraint("musician_id", "song_id"),)

    musician_id: Mapped[int] = mapped_column(
        ForeignKey("musicians.id", ondelete="RESTRICT"),
    )
    song_id: Mapped[int] = mapped_column(
        ForeignKey("songs.id", ondelete="CASCADE"),
    )

    musician: Mapped[DBMusician] = relationship(back_populates="performances")
    song: Mapped[DBSong] = relationship(back_populates="performances")


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Initialize database schema.

    Creates all tables if they don't exist.
    This is a safe operation that won't affect existing data.
    """
    from music_catalog.infrastructure.persistence.database.db_connection import (
        get_engine,
    )

    engine = engine or get_engine()

    try:
        async with engine.connect() as conn:
            existing_tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
            if existing_tables:
                logger.info("Found existing tables", tables=existing_tables)

        async with engine.begin() as conn:
            await conn.run_sync(CatalogDBBase.metadata.create_all)
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    else:
        logger.info("Database schema initialization complete")
