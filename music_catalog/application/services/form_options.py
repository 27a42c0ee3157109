"""Picker lists the musician and song forms need on first display and redisplay."""

from attrs import define, field

from music_catalog.domain.catalog.options import (
    AssignedOption,
    AssignmentOptions,
    SelectOption,
    album_options,
    assignment_checklist,
    genre_options,
    instrument_options,
    split_assignment,
)
from music_catalog.domain.entities import Musician, Song
from music_catalog.domain.repositories.interfaces import UnitOfWorkProtocol


@define(frozen=True, slots=True)
class MusicianFormOptions:
    instrument_options: list[SelectOption] = field(factory=list)
    instrument_checklist: list[AssignedOption] = field(factory=list)


@define(frozen=True, slots=True)
class SongFormOptions:
    genre_options: list[SelectOption] = field(factory=list)
    album_options: list[SelectOption] = field(factory=list)
    performers: AssignmentOptions = field(factory=AssignmentOptions)

    @property
    def selected_musicians(self) -> list[SelectOption]:
        return self.performers.selected

    @property
    def available_musicians(self) -> list[SelectOption]:
        return self.performers.available


async def load_musician_form_options(
    uow: UnitOfWorkProtocol, musician: Musician | None = None
) -> MusicianFormOptions:
    """Primary instrument picker and played-instrument checklist.

    The checklist reflects the musician's current (possibly in-progress)
    plays, so a redisplay keeps the user's selections.
    """
    instruments = await uow.get_reference_repository().list_instruments()
    selected_id = musician.instrument_id if musician else None
    assigned = musician.instrument_ids if musician else frozenset()
    return MusicianFormOptions(
        instrument_options=instrument_options(instruments, selected_id),
        instrument_checklist=assignment_checklist(instruments, assigned),
    )


async def load_song_form_options(
    uow: UnitOfWorkProtocol, song: Song | None = None
) -> SongFormOptions:
    """Genre and album pickers plus the performer split for a song."""
    reference_repo = uow.get_reference_repository()
    genres = await reference_repo.list_genres()
    albums = await reference_repo.list_albums()
    musicians = await uow.get_musician_repository().list_musicians()
    return SongFormOptions(
        genre_options=genre_options(genres, song.genre_id if song else None),
        album_options=album_options(albums, song.album_id if song else None),
        performers=split_assignment(
            musicians, song.musician_ids if song else frozenset()
        ),
    )
