"""Tests for the musician use cases against the in-memory catalog."""

import pytest
from sqlalchemy import select

from music_catalog.application.services.crud_service import (
    DUPLICATE_SIN_MESSAGE,
    MUSICIAN_REFERENCED_MESSAGE,
    RETRY_MESSAGE,
)
from music_catalog.application.use_cases.manage_musician import (
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
from music_catalog.application.utilities.results import ErrorKind, OutcomeStatus
from music_catalog.config import settings
from music_catalog.domain.errors import ConcurrencyConflictError, TransientStoreError
from music_catalog.infrastructure.persistence.database.db_models import DBPlays
from music_catalog.infrastructure.persistence.repositories.musician.core import (
    MusicianRepository,
)


async def plays_row_ids(session_factory, musician_id: int) -> dict[int, int]:
    """Plays row id per instrument for one musician."""
    async with session_factory() as session:
        rows = await session.execute(
            select(DBPlays.instrument_id, DBPlays.id).where(
                DBPlays.musician_id == musician_id
            )
        )
        return dict(rows.all())


def alice_form(alice) -> dict:
    return {
        "first_name": alice.first_name,
        "last_name": alice.last_name,
        "phone": alice.phone,
        "dob": alice.dob.isoformat(),
        "sin": alice.sin,
        "instrument_id": str(alice.instrument_id),
    }


class TestCreateMusician:
    """Create: reconcile against an empty set, validate, persist."""

    async def test_create_with_instruments(self, uow_factory, catalog, musician_form):
        guitar, piano = catalog["guitar"], catalog["piano"]
        command = CreateMusicianCommand(
            form={**musician_form, "instrument_id": str(piano.id)},
            selected_instruments=[str(guitar.id), str(piano.id)],
        )

        outcome = await CreateMusicianUseCase().execute(command, uow_factory)

        assert outcome.status is OutcomeStatus.SAVED
        assert outcome.entity_id is not None
        assert outcome.entity.instrument_ids == {guitar.id, piano.id}
        assert outcome.entity.instrument.name == "Piano"

    async def test_unknown_instrument_keys_are_dropped(
        self, uow_factory, catalog, musician_form
    ):
        command = CreateMusicianCommand(
            form=musician_form,
            selected_instruments=[str(catalog["drums"].id), "9999"],
        )

        outcome = await CreateMusicianUseCase().execute(command, uow_factory)

        assert outcome.status is OutcomeStatus.SAVED
        assert outcome.entity.instrument_ids == {catalog["drums"].id}

    async def test_validation_failure_redisplays_submission(
        self, uow_factory, catalog, musician_form
    ):
        guitar = catalog["guitar"]
        command = CreateMusicianCommand(
            form={**musician_form, "phone": "555-1234", "first_name": ""},
            selected_instruments=[str(guitar.id)],
        )

        outcome = await CreateMusicianUseCase().execute(command, uow_factory)

        assert outcome.status is OutcomeStatus.REDISPLAY
        assert outcome.error_kind is ErrorKind.VALIDATION_FAILED
        assert set(outcome.field_errors) == {"first_name", "phone"}
        assert outcome.entity.phone == "555-1234"
        assert outcome.entity.instrument_ids == {guitar.id}
        ticked = {o.key for o in outcome.options.instrument_checklist if o.assigned}
        assert ticked == {guitar.id}

    async def test_malformed_selection_is_a_field_error(
        self, uow_factory, catalog, musician_form
    ):
        command = CreateMusicianCommand(
            form=musician_form, selected_instruments=["guitar"]
        )

        outcome = await CreateMusicianUseCase().execute(command, uow_factory)

        assert outcome.status is OutcomeStatus.REDISPLAY
        assert "selected_instruments" in outcome.field_errors

    async def test_duplicate_sin_redisplays_with_message(
        self, uow_factory, catalog, musician_form
    ):
        command = CreateMusicianCommand(
            form={**musician_form, "sin": catalog["alice"].sin}
        )

        outcome = await CreateMusicianUseCase().execute(command, uow_factory)

        assert outcome.status is OutcomeStatus.REDISPLAY
        assert outcome.error_kind is ErrorKind.UNIQUE_CONSTRAINT_VIOLATION
        assert outcome.form_error == DUPLICATE_SIN_MESSAGE
        assert outcome.entity.first_name == musician_form["first_name"]

    async def test_duplicate_sin_leaves_first_musician_unchanged(
        self, uow_factory, catalog, musician_form
    ):
        alice = catalog["alice"]

        await CreateMusicianUseCase().execute(
            CreateMusicianCommand(
                form={**musician_form, "sin": alice.sin},
                selected_instruments=[str(catalog["piano"].id)],
            ),
            uow_factory,
        )

        async with uow_factory() as uow:
            repo = uow.get_musician_repository()
            current = await repo.get_musician(alice.id)
            everyone = await repo.list_musicians()

        assert len(everyone) == 2
        assert (current.first_name, current.phone, current.sin) == (
            alice.first_name,
            alice.phone,
            alice.sin,
        )
        assert current.version == alice.version
        assert current.instrument_ids == {catalog["guitar"].id}

    async def test_exhausted_retries_redisplay_with_retry_message(
        self, uow_factory, catalog, musician_form, monkeypatch
    ):
        monkeypatch.setattr(settings.persistence, "save_retry_base_delay", 0.0)
        monkeypatch.setattr(settings.persistence, "save_retry_max_delay", 0.0)

        async def always_busy(self, musician):
            raise TransientStoreError(detail="database is locked")

        monkeypatch.setattr(MusicianRepository, "add_musician", always_busy)

        outcome = await CreateMusicianUseCase().execute(
            CreateMusicianCommand(form=musician_form), uow_factory
        )

        assert outcome.status is OutcomeStatus.REDISPLAY
        assert outcome.error_kind is ErrorKind.RETRY_LIMIT_EXCEEDED
        assert outcome.form_error == RETRY_MESSAGE


class TestEditMusician:
    """Edit: load, reconcile, apply allow-listed fields, version-checked save."""

    async def test_adding_piano_keeps_the_guitar_row(
        self, uow_factory, session_factory, catalog
    ):
        """Alice goes from {Guitar} to {Guitar, Piano}; only Piano is inserted."""
        alice, guitar, piano = catalog["alice"], catalog["guitar"], catalog["piano"]
        before = await plays_row_ids(session_factory, alice.id)

        outcome = await EditMusicianUseCase().execute(
            EditMusicianCommand(
                musician_id=alice.id,
                form=alice_form(alice),
                selected_instruments=[str(guitar.id), str(piano.id)],
            ),
            uow_factory,
        )
        after = await plays_row_ids(session_factory, alice.id)

        assert outcome.status is OutcomeStatus.SAVED
        assert outcome.entity.instrument_ids == {guitar.id, piano.id}
        assert set(before) == {guitar.id}
        assert set(after) == {guitar.id, piano.id}
        assert after[guitar.id] == before[guitar.id]

    async def test_edit_reconciles_plays(self, uow_factory, catalog):
        alice, piano, drums = catalog["alice"], catalog["piano"], catalog["drums"]
        command = EditMusicianCommand(
            musician_id=alice.id,
            form={**alice_form(alice), "phone": "5557654321"},
            selected_instruments=[str(piano.id), str(drums.id)],
        )

        outcome = await EditMusicianUseCase().execute(command, uow_factory)

        assert outcome.status is OutcomeStatus.SAVED
        assert outcome.entity.instrument_ids == {piano.id, drums.id}
        assert outcome.entity.phone == "5557654321"
        assert outcome.entity.version == alice.version + 1

    async def test_empty_selection_clears_plays(self, uow_factory, catalog):
        alice = catalog["alice"]
        command = EditMusicianCommand(
            musician_id=alice.id, form=alice_form(alice), selected_instruments=[]
        )

        outcome = await EditMusicianUseCase().execute(command, uow_factory)

        assert outcome.status is OutcomeStatus.SAVED
        assert outcome.entity.instrument_ids == frozenset()

    async def test_overposted_fields_are_ignored(self, uow_factory, catalog):
        alice = catalog["alice"]
        command = EditMusicianCommand(
            musician_id=alice.id,
            form={**alice_form(alice), "id": "999", "version": "42", "first_name": "Ali"},
            selected_instruments=[str(alice.instrument_id)],
        )

        outcome = await EditMusicianUseCase().execute(command, uow_factory)

        assert outcome.status is OutcomeStatus.SAVED
        assert outcome.entity.id == alice.id
        assert outcome.entity.first_name == "Ali"
        assert outcome.entity.version == alice.version + 1

    async def test_missing_musician_is_not_found(self, uow_factory, catalog):
        outcome = await EditMusicianUseCase().execute(
            EditMusicianCommand(musician_id=9999, form={}), uow_factory
        )

        assert outcome.status is OutcomeStatus.NOT_FOUND

    async def test_conflict_on_vanished_row_is_not_found(
        self, uow_factory, catalog, monkeypatch
    ):
        alice = catalog["alice"]

        async def conflicting_update(self, musician, plays_change):
            raise ConcurrencyConflictError("Musician", musician.id, musician.version)

        async def vanished(self, musician_id):
            return False

        monkeypatch.setattr(MusicianRepository, "update_musician", conflicting_update)
        monkeypatch.setattr(MusicianRepository, "musician_exists", vanished)

        outcome = await EditMusicianUseCase().execute(
            EditMusicianCommand(musician_id=alice.id, form=alice_form(alice)),
            uow_factory,
        )

        assert outcome.status is OutcomeStatus.NOT_FOUND

    async def test_conflict_on_existing_row_propagates(
        self, uow_factory, catalog, monkeypatch
    ):
        alice = catalog["alice"]

        async def conflicting_update(self, musician, plays_change):
            raise ConcurrencyConflictError("Musician", musician.id, musician.version)

        monkeypatch.setattr(MusicianRepository, "update_musician", conflicting_update)

        with pytest.raises(ConcurrencyConflictError):
            await EditMusicianUseCase().execute(
                EditMusicianCommand(musician_id=alice.id, form=alice_form(alice)),
                uow_factory,
            )

    async def test_musician_deleted_after_read_is_not_found(
        self, uow_factory, catalog, monkeypatch
    ):
        """A plays change for a vanished musician reports NOT_FOUND."""
        alice, guitar, piano = catalog["alice"], catalog["guitar"], catalog["piano"]
        async with uow_factory() as uow:
            await uow.get_musician_repository().delete_musician(alice.id)

        async def stale_read(self, musician_id):
            return alice

        monkeypatch.setattr(MusicianRepository, "get_musician", stale_read)

        outcome = await EditMusicianUseCase().execute(
            EditMusicianCommand(
                musician_id=alice.id,
                form=alice_form(alice),
                selected_instruments=[str(guitar.id), str(piano.id)],
            ),
            uow_factory,
        )

        assert outcome.status is OutcomeStatus.NOT_FOUND
        assert outcome.entity_id == alice.id

    async def test_exhausted_retries_before_load_keep_submission(
        self, uow_factory, catalog, monkeypatch
    ):
        alice, piano = catalog["alice"], catalog["piano"]
        monkeypatch.setattr(settings.persistence, "save_retry_base_delay", 0.0)
        monkeypatch.setattr(settings.persistence, "save_retry_max_delay", 0.0)

        async def always_busy(self, musician_id):
            raise TransientStoreError(detail="database is locked")

        monkeypatch.setattr(MusicianRepository, "get_musician", always_busy)

        outcome = await EditMusicianUseCase().execute(
            EditMusicianCommand(
                musician_id=alice.id,
                form={**alice_form(alice), "first_name": "Alicia"},
                selected_instruments=[str(piano.id)],
            ),
            uow_factory,
        )

        assert outcome.status is OutcomeStatus.REDISPLAY
        assert outcome.error_kind is ErrorKind.RETRY_LIMIT_EXCEEDED
        assert outcome.form_error == RETRY_MESSAGE
        assert outcome.entity.id == alice.id
        assert outcome.entity.first_name == "Alicia"
        assert outcome.entity.instrument_ids == {piano.id}
        ticked = {o.key for o in outcome.options.instrument_checklist if o.assigned}
        assert ticked == {piano.id}


class TestDeleteMusician:
    async def test_delete_blocked_by_performance(self, uow_factory, catalog):
        bob = catalog["bob"]

        outcome = await DeleteMusicianUseCase().execute(
            DeleteMusicianCommand(bob.id), uow_factory
        )

        assert outcome.status is OutcomeStatus.REDISPLAY
        assert outcome.error_kind is ErrorKind.REFERENTIAL_INTEGRITY_VIOLATION
        assert outcome.form_error == MUSICIAN_REFERENCED_MESSAGE
        assert outcome.entity.id == bob.id

        shown = await ShowMusicianUseCase().execute(
            ShowMusicianCommand(bob.id), uow_factory
        )
        assert shown.status is OutcomeStatus.DISPLAY

    async def test_delete_then_show_is_not_found(self, uow_factory, catalog):
        alice = catalog["alice"]

        outcome = await DeleteMusicianUseCase().execute(
            DeleteMusicianCommand(alice.id), uow_factory
        )
        shown = await ShowMusicianUseCase().execute(
            ShowMusicianCommand(alice.id), uow_factory
        )

        assert outcome.status is OutcomeStatus.SAVED
        assert shown.status is OutcomeStatus.NOT_FOUND

    async def test_delete_without_id_is_not_found(self, uow_factory, catalog):
        outcome = await DeleteMusicianUseCase().execute(
            DeleteMusicianCommand(None), uow_factory
        )

        assert outcome.status is OutcomeStatus.NOT_FOUND


class TestReadMusician:
    async def test_show_loads_associations(self, uow_factory, catalog):
        bob = catalog["bob"]

        outcome = await ShowMusicianUseCase().execute(
            ShowMusicianCommand(bob.id), uow_factory
        )

        assert outcome.status is OutcomeStatus.DISPLAY
        assert outcome.entity.instrument.name == "Drums"
        assert [p.song.title for p in outcome.entity.performances] == ["Yesterday"]

    async def test_blank_form_has_options(self, uow_factory, catalog):
        outcome = await PrepareMusicianFormUseCase().execute(
            PrepareMusicianFormCommand(), uow_factory
        )

        assert outcome.status is OutcomeStatus.DISPLAY
        assert [o.label for o in outcome.options.instrument_options] == [
            "Drums",
            "Guitar",
            "Piano",
        ]
        assert not any(o.assigned for o in outcome.options.instrument_checklist)

    async def test_edit_form_marks_current_instruments(self, uow_factory, catalog):
        alice = catalog["alice"]

        outcome = await PrepareMusicianFormUseCase().execute(
            PrepareMusicianFormCommand(alice.id), uow_factory
        )

        selected = [o.label for o in outcome.options.instrument_options if o.is_selected]
        assert selected == ["Guitar"]

    async def test_unknown_id_form_is_not_found(self, uow_factory, catalog):
        outcome = await PrepareMusicianFormUseCase().execute(
            PrepareMusicianFormCommand(9999), uow_factory
        )

        assert outcome.status is OutcomeStatus.NOT_FOUND
