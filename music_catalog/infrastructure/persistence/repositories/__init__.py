"""Repository layer for database operations with SQLAlchemy 2.0."""

from music_catalog.infrastructure.persistence.repositories.base_repo import (
    BaseModelMapper,
    BaseRepository,
    ModelMapper,
)
from music_catalog.infrastructure.persistence.repositories.musician import (
    MusicianMapper,
    MusicianRepository,
)
from music_catalog.infrastructure.persistence.repositories.reference import (
    ReferenceRepository,
)
from music_catalog.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
    translate_store_error,
)
from music_catalog.infrastructure.persistence.repositories.song import (
    SongMapper,
    SongRepository,
)

__all__ = [
    "BaseModelMapper",
    "BaseRepository",
    "ModelMapper",
    "MusicianMapper",
    "MusicianRepository",
    "ReferenceRepository",
    "SongMapper",
    "SongRepository",
    "db_operation",
    "translate_store_error",
]
