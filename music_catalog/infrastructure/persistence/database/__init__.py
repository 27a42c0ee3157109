"""Database models and connection management."""

from .db_connection import (
    create_db_engine,
    create_session_factory,
    dispose_engine,
    get_engine,
    get_session_factory,
)
from .db_models import (
    CatalogDBBase,
    DBAlbum,
    DBGenre,
    DBInstrument,
    DBMusician,
    DBPerformance,
    DBPlays,
    DBSong,
    init_db,
)

__all__ = [
    "CatalogDBBase",
    "DBAlbum",
    "DBGenre",
    "DBInstrument",
    "DBMusician",
    "DBPerformance",
    "DBPlays",
    "DBSong",
    "create_db_engine",
    "create_session_factory",
    "dispose_engine",
    "get_engine",
    "get_session_factory",
    "init_db",
]
