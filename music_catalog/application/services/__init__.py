"""Application services - CRUD orchestration and form option loading."""

from .crud_service import EntityCrudService
from .form_options import (
    MusicianFormOptions,
    SongFormOptions,
    load_musician_form_options,
    load_song_form_options,
)

__all__ = [
    "EntityCrudService",
    "MusicianFormOptions",
    "SongFormOptions",
    "load_musician_form_options",
    "load_song_form_options",
]
