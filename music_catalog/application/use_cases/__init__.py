"""Application use cases - orchestrate catalog operations."""

from .list_musicians import (
    ListMusiciansCommand,
    ListMusiciansResult,
    ListMusiciansUseCase,
)
from .manage_musician import (
    CreateMusicianCommand,
    CreateMusicianUseCase,
    DeleteMusicianCommand,
    DeleteMusicianUseCase,
    EditMusicianCommand,
    EditMusicianUseCase,
    PrepareMusicianFormCommand,
    PrepareMusicianFormUseCase,
    ShowMusicianCommand,
    ShowMusicianUseCase,
)
from .manage_song import (
    CreateSongCommand,
    CreateSongUseCase,
    DeleteSongCommand,
    DeleteSongUseCase,
    EditSongCommand,
    EditSongUseCase,
    ListSongsUseCase,
    PrepareSongFormCommand,
    PrepareSongFormUseCase,
    ShowSongCommand,
    ShowSongUseCase,
)

__all__ = [
    "CreateMusicianCommand",
    "CreateMusicianUseCase",
    "CreateSongCommand",
    "CreateSongUseCase",
    "DeleteMusicianCommand",
    "DeleteMusicianUseCase",
    "DeleteSongCommand",
    "DeleteSongUseCase",
    "EditMusicianCommand",
    "EditMusicianUseCase",
    "EditSongCommand",
    "EditSongUseCase",
    "ListMusiciansCommand",
    "ListMusiciansResult",
    "ListMusiciansUseCase",
    "ListSongsUseCase",
    "PrepareMusicianFormCommand",
    "PrepareMusicianFormUseCase",
    "PrepareSongFormCommand",
    "PrepareSongFormUseCase",
    "ShowMusicianCommand",
    "ShowMusicianUseCase",
    "ShowSongCommand",
    "ShowSongUseCase",
]
