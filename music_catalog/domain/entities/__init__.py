"""Domain entities for the music catalog.

Pure immutable representations with no persistence dependencies.
"""

from .catalog import (
    Album,
    Genre,
    Instrument,
    Musician,
    Performance,
    Plays,
    Song,
    age_on,
)
from .submissions import (
    MUSICIAN_EDITABLE_FIELDS,
    SONG_EDITABLE_FIELDS,
    FieldErrors,
    MusicianSubmission,
    SongSubmission,
    merge_field_errors,
    musician_field_errors,
    song_field_errors,
)

__all__ = [
    "MUSICIAN_EDITABLE_FIELDS",
    "SONG_EDITABLE_FIELDS",
    "Album",
    "FieldErrors",
    "Genre",
    "Instrument",
    "Musician",
    "MusicianSubmission",
    "Performance",
    "Plays",
    "Song",
    "SongSubmission",
    "age_on",
    "merge_field_errors",
    "musician_field_errors",
    "song_field_errors",
]
