"""Musician aggregate repository package."""

from music_catalog.infrastructure.persistence.repositories.musician.core import (
    MusicianRepository,
)
from music_catalog.infrastructure.persistence.repositories.musician.mapper import (
    MusicianMapper,
)

__all__ = ["MusicianMapper", "MusicianRepository"]
