"""Song aggregate repository package."""

from music_catalog.infrastructure.persistence.repositories.song.core import (
    SongRepository,
)
from music_catalog.infrastructure.persistence.repositories.song.mapper import (
    SongMapper,
)

__all__ = ["SongMapper", "SongRepository"]
