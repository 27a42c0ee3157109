"""Song use cases: list, show, prepare form, create, edit and delete.

Mirrors the musician use cases with performances as the reconciled
association. Every store failure except an exhausted retry shows the
generic save message.
"""

from collections.abc import Mapping, Sequence
from operator import attrgetter
from typing import Any

import attrs
from attrs import define, field

from music_catalog.application.services.crud_service import EntityCrudService
from music_catalog.application.services.form_options import (
    SongFormOptions,
    load_song_form_options,
)
from music_catalog.application.utilities.results import CrudOutcome, ErrorKind
from music_catalog.config import get_logger
from music_catalog.domain.catalog.reconciliation import MembershipChange, reconcile
from music_catalog.domain.entities import (
    Album,
    Genre,
    Musician,
    Song,
    SongSubmission,
    merge_field_errors,
    song_field_errors,
)
from music_catalog.domain.entities.submissions import SELECTED_OPTIONS
from music_catalog.domain.errors import (
    ConcurrencyConflictError,
    NotFoundError,
    PersistenceError,
    ValidationFailedError,
)
from music_catalog.domain.repositories.interfaces import (
    UnitOfWorkFactory,
    UnitOfWorkProtocol,
)

logger = get_logger(__name__)

ENTITY_NAME = "Song"

INVALID_SELECTION_MESSAGE = "Select performers from the list."

SongOutcome = CrudOutcome[Song, SongFormOptions]


@define(frozen=True, slots=True)
class ShowSongCommand:
    song_id: int | None = None


@define(frozen=True, slots=True)
class PrepareSongFormCommand:
    song_id: int | None = None


@define(frozen=True, slots=True)
class CreateSongCommand:
    form: Mapping[str, Any] = field(factory=dict)
    selected_options: Sequence[str] | None = None


@define(frozen=True, slots=True)
class EditSongCommand:
    song_id: int | None = None
    form: Mapping[str, Any] = field(factory=dict)
    selected_options: Sequence[str] | None = None


@define(frozen=True, slots=True)
class DeleteSongCommand:
    song_id: int | None = None


@define(frozen=True, slots=True)
class SongReferences:
    """Lookup data a song save validates against."""

    albums: list[Album]
    genres: list[Genre]
    musicians: list[Musician]

    @classmethod
    async def load(cls, uow: UnitOfWorkProtocol) -> "SongReferences":
        reference_repo = uow.get_reference_repository()
        return cls(
            albums=await reference_repo.list_albums(),
            genres=await reference_repo.list_genres(),
            musicians=await uow.get_musician_repository().list_musicians(),
        )


def _stage_performances(
    song: Song,
    submission: SongSubmission,
    references: SongReferences,
) -> tuple[Song, MembershipChange[int], dict[str, str]]:
    """Reconcile the submitted performers and resolve album and genre."""
    errors: dict[str, str] = {}
    try:
        requested = submission.requested_musician_ids()
    except ValueError:
        errors[SELECTED_OPTIONS] = INVALID_SELECTION_MESSAGE
        requested = song.musician_ids

    change = reconcile(
        song.musician_ids, requested, references.musicians, attrgetter("id")
    )
    staged = song.with_performances_change(
        change, {musician.id: musician for musician in references.musicians}
    )
    albums = {album.id: album for album in references.albums}
    genres = {genre.id: genre for genre in references.genres}
    staged = attrs.evolve(
        staged,
        album=albums.get(staged.album_id),
        genre=genres.get(staged.genre_id),
    )
    return staged, change, errors


def _validate(
    song: Song,
    submission: SongSubmission,
    selection_errors: dict[str, str],
    references: SongReferences,
) -> None:
    errors = merge_field_errors(
        submission.conversion_errors,
        selection_errors,
        song_field_errors(
            song,
            {album.id for album in references.albums},
            {genre.id for genre in references.genres},
        ),
    )
    if errors:
        raise ValidationFailedError(errors, entity_name=ENTITY_NAME)


async def _redisplay_options(
    uow_factory: UnitOfWorkFactory, song: Song | None
) -> SongFormOptions:
    async with uow_factory() as uow:
        return await load_song_form_options(uow, song)


async def _redisplay_failure(
    uow_factory: UnitOfWorkFactory, song: Song | None, error: PersistenceError
) -> SongOutcome:
    kind, message = EntityCrudService.describe_failure(error)
    logger.warning(
        "Song save failed",
        error_kind=kind.value,
        error=str(error),
        detail=error.detail,
    )
    return CrudOutcome.redisplay(
        song,
        options=await _redisplay_options(uow_factory, song),
        form_error=message,
        error_kind=kind,
    )


class ListSongsUseCase:
    """Every song with album, genre and performers, ordered by title."""

    async def execute(self, uow: UnitOfWorkProtocol) -> list[Song]:
        async with uow:
            songs = await uow.get_song_repository().list_songs()
        logger.debug(f"Listed {len(songs)} songs")
        return songs


class ShowSongUseCase:
    async def execute(
        self, command: ShowSongCommand, uow_factory: UnitOfWorkFactory
    ) -> SongOutcome:
        if command.song_id is None:
            return CrudOutcome.not_found()

        service = EntityCrudService(uow_factory)

        async def load(uow: UnitOfWorkProtocol) -> Song:
            return await uow.get_song_repository().get_song(command.song_id)

        try:
            song = await service.run(load, "show_song")
        except NotFoundError:
            return CrudOutcome.not_found(command.song_id)
        return CrudOutcome.display(song)


class PrepareSongFormUseCase:
    """Create or edit form with genre, album and performer pickers."""

    async def execute(
        self, command: PrepareSongFormCommand, uow_factory: UnitOfWorkFactory
    ) -> SongOutcome:
        service = EntityCrudService(uow_factory)

        async def prepare(uow: UnitOfWorkProtocol) -> tuple[Song, SongFormOptions]:
            if command.song_id is None:
                song = Song(title="")
            else:
                song = await uow.get_song_repository().get_song(command.song_id)
            return song, await load_song_form_options(uow, song)

        try:
            song, options = await service.run(prepare, "prepare_song_form")
        except NotFoundError:
            return CrudOutcome.not_found(command.song_id)
        return CrudOutcome.display(song, options=options)


class CreateSongUseCase:
    """Create a song with the musicians who performed on it."""

    async def execute(
        self, command: CreateSongCommand, uow_factory: UnitOfWorkFactory
    ) -> SongOutcome:
        submission = SongSubmission.from_form(command.form, command.selected_options)
        service = EntityCrudService(uow_factory)
        staged = submission.to_song()

        logger.info(
            "Starting song create",
            selected_count=len(submission.selected_options or ()),
        )

        async def create(uow: UnitOfWorkProtocol) -> Song:
            nonlocal staged
            references = await SongReferences.load(uow)
            staged, _, selection_errors = _stage_performances(
                submission.to_song(), submission, references
            )
            _validate(staged, submission, selection_errors, references)
            return await uow.get_song_repository().add_song(staged)

        try:
            saved = await service.run(create, "create_song")
        except ValidationFailedError as e:
            return CrudOutcome.redisplay(
                staged,
                options=await _redisplay_options(uow_factory, staged),
                field_errors=e.field_errors,
                error_kind=ErrorKind.VALIDATION_FAILED,
            )
        except PersistenceError as e:
            return await _redisplay_failure(uow_factory, staged, e)

        logger.info("Song created", song_id=saved.id)
        return CrudOutcome.saved(saved)


class EditSongUseCase:
    """Update allow-listed song fields and reconcile its performers."""

    async def execute(
        self, command: EditSongCommand, uow_factory: UnitOfWorkFactory
    ) -> SongOutcome:
        if command.song_id is None:
            return CrudOutcome.not_found()

        song_id = command.song_id
        submission = SongSubmission.from_form(command.form, command.selected_options)
        service = EntityCrudService(uow_factory)
        staged = submission.submitted_song(song_id)

        logger.info("Starting song edit", song_id=song_id)

        async def edit(uow: UnitOfWorkProtocol) -> Song:
            nonlocal staged
            repo = uow.get_song_repository()
            current = await repo.get_song(song_id)
            references = await SongReferences.load(uow)
            staged, change, selection_errors = _stage_performances(
                submission.apply_to(current), submission, references
            )
            _validate(staged, submission, selection_errors, references)
            return await repo.update_song(staged, change)

        try:
            saved = await service.run(edit, "edit_song")
        except NotFoundError:
            return CrudOutcome.not_found(song_id)
        except ValidationFailedError as e:
            return CrudOutcome.redisplay(
                staged,
                options=await _redisplay_options(uow_factory, staged),
                field_errors=e.field_errors,
                error_kind=ErrorKind.VALIDATION_FAILED,
            )
        except ConcurrencyConflictError:
            async with uow_factory() as uow:
                still_exists = await uow.get_song_repository().song_exists(song_id)
            if not still_exists:
                logger.info("Song removed during edit", song_id=song_id)
                return CrudOutcome.not_found(song_id)
            logger.error("Song edit lost a concurrent update", song_id=song_id)
            raise
        except PersistenceError as e:
            return await _redisplay_failure(uow_factory, staged, e)

        logger.info("Song updated", song_id=saved.id, version=saved.version)
        return CrudOutcome.saved(saved)


class DeleteSongUseCase:
    """Delete a song together with its performances."""

    async def execute(
        self, command: DeleteSongCommand, uow_factory: UnitOfWorkFactory
    ) -> SongOutcome:
        if command.song_id is None:
            return CrudOutcome.not_found()

        song_id = command.song_id
        service = EntityCrudService(uow_factory)
        staged: Song | None = None

        logger.info("Starting song delete", song_id=song_id)

        async def delete(uow: UnitOfWorkProtocol) -> Song:
            nonlocal staged
            repo = uow.get_song_repository()
            staged = await repo.get_song(song_id)
            await repo.delete_song(song_id)
            return staged

        try:
            deleted = await service.run(delete, "delete_song")
        except NotFoundError:
            return CrudOutcome.not_found(song_id)
        except PersistenceError as e:
            return await _redisplay_failure(uow_factory, staged, e)

        logger.info("Song deleted", song_id=song_id)
        return CrudOutcome.saved(deleted, entity_id=song_id)
