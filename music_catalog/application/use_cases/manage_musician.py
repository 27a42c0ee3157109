"""Musician use cases: show, prepare form, create, edit and delete.

Mutating use cases run through ``EntityCrudService`` so each attempt opens a
fresh unit of work, reloads the aggregate and recomputes the plays change.
The in-progress musician of the latest attempt is kept so any failure can
redisplay the form with the submitted values and instrument selections.
"""

from collections.abc import Mapping, Sequence
from operator import attrgetter
from typing import Any

import attrs
from attrs import define, field

from music_catalog.application.services.crud_service import (
    DUPLICATE_SIN_MESSAGE,
    MUSICIAN_REFERENCED_MESSAGE,
    EntityCrudService,
)
from music_catalog.application.services.form_options import (
    MusicianFormOptions,
    load_musician_form_options,
)
from music_catalog.application.utilities.results import CrudOutcome, ErrorKind
from music_catalog.config import get_logger
from music_catalog.domain.catalog.reconciliation import MembershipChange, reconcile
from music_catalog.domain.entities import (
    Instrument,
    Musician,
    MusicianSubmission,
    merge_field_errors,
    musician_field_errors,
)
from music_catalog.domain.entities.submissions import SELECTED_INSTRUMENTS
from music_catalog.domain.errors import (
    ConcurrencyConflictError,
    NotFoundError,
    PersistenceError,
    UniqueConstraintViolationError,
    ValidationFailedError,
)
from music_catalog.domain.repositories.interfaces import (
    UnitOfWorkFactory,
    UnitOfWorkProtocol,
)

logger = get_logger(__name__)

ENTITY_NAME = "Musician"

# Names the SIN unique index may carry in a driver message
SIN_CONSTRAINT_MARKERS = ("musicians.sin", "ix_musicians_sin")

INVALID_SELECTION_MESSAGE = "Select instruments from the list."

MusicianOutcome = CrudOutcome[Musician, MusicianFormOptions]


@define(frozen=True, slots=True)
class ShowMusicianCommand:
    musician_id: int | None = None


@define(frozen=True, slots=True)
class PrepareMusicianFormCommand:
    """Blank create form when ``musician_id`` is None, edit form otherwise."""

    musician_id: int | None = None


@define(frozen=True, slots=True)
class CreateMusicianCommand:
    """Raw form values plus the instrument checkbox tokens.

    Keys outside the musician allow-list are ignored.
    """

    form: Mapping[str, Any] = field(factory=dict)
    selected_instruments: Sequence[str] | None = None


@define(frozen=True, slots=True)
class EditMusicianCommand:
    musician_id: int | None = None
    form: Mapping[str, Any] = field(factory=dict)
    selected_instruments: Sequence[str] | None = None


@define(frozen=True, slots=True)
class DeleteMusicianCommand:
    musician_id: int | None = None


def _stage_plays(
    musician: Musician,
    submission: MusicianSubmission,
    instruments: list[Instrument],
) -> tuple[Musician, MembershipChange[int], dict[str, str]]:
    """Reconcile the submitted instruments against the musician's plays.

    Returns the musician with plays and primary instrument resolved, the
    membership change to persist, and any selection error.
    """
    errors: dict[str, str] = {}
    try:
        requested = submission.requested_instrument_ids()
    except ValueError:
        errors[SELECTED_INSTRUMENTS] = INVALID_SELECTION_MESSAGE
        requested = musician.instrument_ids

    change = reconcile(
        musician.instrument_ids, requested, instruments, attrgetter("id")
    )
    by_id = {instrument.id: instrument for instrument in instruments}
    staged = musician.with_plays_change(change, by_id)
    staged = attrs.evolve(staged, instrument=by_id.get(staged.instrument_id))
    return staged, change, errors


def _validate(
    musician: Musician,
    submission: MusicianSubmission,
    selection_errors: dict[str, str],
    instruments: list[Instrument],
) -> None:
    errors = merge_field_errors(
        submission.conversion_errors,
        selection_errors,
        musician_field_errors(musician, {i.id for i in instruments}),
    )
    if errors:
        raise ValidationFailedError(errors, entity_name=ENTITY_NAME)


def _failure_overrides(error: PersistenceError) -> dict[ErrorKind, str]:
    if isinstance(error, UniqueConstraintViolationError) and error.involves(
        *SIN_CONSTRAINT_MARKERS
    ):
        return {ErrorKind.UNIQUE_CONSTRAINT_VIOLATION: DUPLICATE_SIN_MESSAGE}
    return {}


async def _redisplay_options(
    uow_factory: UnitOfWorkFactory, musician: Musician | None
) -> MusicianFormOptions:
    async with uow_factory() as uow:
        return await load_musician_form_options(uow, musician)


async def _redisplay_failure(
    uow_factory: UnitOfWorkFactory,
    musician: Musician | None,
    error: PersistenceError,
    overrides: Mapping[ErrorKind, str] | None = None,
) -> MusicianOutcome:
    kind, message = EntityCrudService.describe_failure(error, overrides)
    logger.warning(
        "Musician save failed",
        error_kind=kind.value,
        error=str(error),
        detail=error.detail,
    )
    return CrudOutcome.redisplay(
        musician,
        options=await _redisplay_options(uow_factory, musician),
        form_error=message,
        error_kind=kind,
    )


class ShowMusicianUseCase:
    """Load one musician for the details and delete-confirmation views."""

    async def execute(
        self, command: ShowMusicianCommand, uow_factory: UnitOfWorkFactory
    ) -> MusicianOutcome:
        if command.musician_id is None:
            return CrudOutcome.not_found()

        service = EntityCrudService(uow_factory)

        async def load(uow: UnitOfWorkProtocol) -> Musician:
            return await uow.get_musician_repository().get_musician(command.musician_id)

        try:
            musician = await service.run(load, "show_musician")
        except NotFoundError:
            return CrudOutcome.not_found(command.musician_id)
        return CrudOutcome.display(musician)


class PrepareMusicianFormUseCase:
    """Create or edit form with its picker lists."""

    async def execute(
        self, command: PrepareMusicianFormCommand, uow_factory: UnitOfWorkFactory
    ) -> MusicianOutcome:
        service = EntityCrudService(uow_factory)

        async def prepare(
            uow: UnitOfWorkProtocol,
        ) -> tuple[Musician, MusicianFormOptions]:
            if command.musician_id is None:
                musician = Musician(first_name="", last_name="")
            else:
                repo = uow.get_musician_repository()
                musician = await repo.get_musician(command.musician_id)
            return musician, await load_musician_form_options(uow, musician)

        try:
            musician, options = await service.run(prepare, "prepare_musician_form")
        except NotFoundError:
            return CrudOutcome.not_found(command.musician_id)
        return CrudOutcome.display(musician, options=options)


class CreateMusicianUseCase:
    """Create a musician with the instruments they play."""

    async def execute(
        self, command: CreateMusicianCommand, uow_factory: UnitOfWorkFactory
    ) -> MusicianOutcome:
        submission = MusicianSubmission.from_form(
            command.form, command.selected_instruments
        )
        service = EntityCrudService(uow_factory)
        staged = submission.to_musician()

        logger.info(
            "Starting musician create",
            selected_count=len(submission.selected_instruments or ()),
        )

        async def create(uow: UnitOfWorkProtocol) -> Musician:
            nonlocal staged
            instruments = await uow.get_reference_repository().list_instruments()
            staged, _, selection_errors = _stage_plays(
                submission.to_musician(), submission, instruments
            )
            _validate(staged, submission, selection_errors, instruments)
            return await uow.get_musician_repository().add_musician(staged)

        try:
            saved = await service.run(create, "create_musician")
        except ValidationFailedError as e:
            return CrudOutcome.redisplay(
                staged,
                options=await _redisplay_options(uow_factory, staged),
                field_errors=e.field_errors,
                error_kind=ErrorKind.VALIDATION_FAILED,
            )
        except PersistenceError as e:
            return await _redisplay_failure(
                uow_factory, staged, e, _failure_overrides(e)
            )

        logger.info("Musician created", musician_id=saved.id)
        return CrudOutcome.saved(saved)


class EditMusicianUseCase:
    """Update allow-listed fields and reconcile the instruments played."""

    async def execute(
        self, command: EditMusicianCommand, uow_factory: UnitOfWorkFactory
    ) -> MusicianOutcome:
        if command.musician_id is None:
            return CrudOutcome.not_found()

        musician_id = command.musician_id
        submission = MusicianSubmission.from_form(
            command.form, command.selected_instruments
        )
        service = EntityCrudService(uow_factory)
        staged = submission.submitted_musician(musician_id)

        logger.info("Starting musician edit", musician_id=musician_id)

        async def edit(uow: UnitOfWorkProtocol) -> Musician:
            nonlocal staged
            repo = uow.get_musician_repository()
            current = await repo.get_musician(musician_id)
            instruments = await uow.get_reference_repository().list_instruments()
            staged, change, selection_errors = _stage_plays(
                submission.apply_to(current), submission, instruments
            )
            _validate(staged, submission, selection_errors, instruments)
            return await repo.update_musician(staged, change)

        try:
            saved = await service.run(edit, "edit_musician")
        except NotFoundError:
            return CrudOutcome.not_found(musician_id)
        except ValidationFailedError as e:
            return CrudOutcome.redisplay(
                staged,
                options=await _redisplay_options(uow_factory, staged),
                field_errors=e.field_errors,
                error_kind=ErrorKind.VALIDATION_FAILED,
            )
        except ConcurrencyConflictError:
            async with uow_factory() as uow:
                still_exists = await uow.get_musician_repository().musician_exists(
                    musician_id
                )
            if not still_exists:
                logger.info("Musician removed during edit", musician_id=musician_id)
                return CrudOutcome.not_found(musician_id)
            logger.error("Musician edit lost a concurrent update", musician_id=musician_id)
            raise
        except PersistenceError as e:
            return await _redisplay_failure(
                uow_factory, staged, e, _failure_overrides(e)
            )

        logger.info("Musician updated", musician_id=saved.id, version=saved.version)
        return CrudOutcome.saved(saved)


class DeleteMusicianUseCase:
    """Delete a musician unless a performance still references them."""

    async def execute(
        self, command: DeleteMusicianCommand, uow_factory: UnitOfWorkFactory
    ) -> MusicianOutcome:
        if command.musician_id is None:
            return CrudOutcome.not_found()

        musician_id = command.musician_id
        service = EntityCrudService(uow_factory)
        staged: Musician | None = None

        logger.info("Starting musician delete", musician_id=musician_id)

        async def delete(uow: UnitOfWorkProtocol) -> Musician:
            nonlocal staged
            repo = uow.get_musician_repository()
            staged = await repo.get_musician(musician_id)
            await repo.delete_musician(musician_id)
            return staged

        try:
            deleted = await service.run(delete, "delete_musician")
        except NotFoundError:
            return CrudOutcome.not_found(musician_id)
        except PersistenceError as e:
            return await _redisplay_failure(
                uow_factory,
                staged,
                e,
                {ErrorKind.REFERENTIAL_INTEGRITY_VIOLATION: MUSICIAN_REFERENCED_MESSAGE},
            )

        logger.info("Musician deleted", musician_id=musician_id)
        return CrudOutcome.saved(deleted, entity_id=musician_id)
