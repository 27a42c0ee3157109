"""Shared fixtures: in-memory catalog database and unit-of-work factory."""

from datetime import date

import pytest

from music_catalog.domain.catalog.reconciliation import MembershipChange
from music_catalog.domain.entities import Musician, Plays, Song
from music_catalog.infrastructure.persistence.database.db_connection import (
    create_db_engine,
    create_session_factory,
)
from music_catalog.infrastructure.persistence.database.db_models import init_db
from music_catalog.infrastructure.persistence.repositories.factories import (
    get_unit_of_work_factory,
)


@pytest.fixture
async def engine():
    """Fresh in-memory database with the catalog schema."""
    engine = create_db_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def uow_factory(session_factory):
    """Factory opening a session-owning unit of work per call."""
    return get_unit_of_work_factory(session_factory)


@pytest.fixture
async def catalog(uow_factory):
    """Seeded catalog.

    Instruments Guitar, Piano, Drums; genres Rock, Pop; album Abbey Road;
    musicians Alice Smith (Guitar) and Bob Jones (Drums); song Yesterday
    performed by Bob. Returns the stored entities keyed by name.
    """
    async with uow_factory() as uow:
        reference_repo = uow.get_reference_repository()
        guitar = await reference_repo.add_instrument("Guitar")
        piano = await reference_repo.add_instrument("Piano")
        drums = await reference_repo.add_instrument("Drums")
        rock = await reference_repo.add_genre("Rock")
        pop = await reference_repo.add_genre("Pop")
        abbey_road = await reference_repo.add_album("Abbey Road", 1969, rock.id)

        musician_repo = uow.get_musician_repository()
        alice = await musician_repo.add_musician(
            Musician(
                first_name="Alice",
                last_name="Smith",
                phone="5551234567",
                dob=date(1990, 5, 17),
                sin="123456789",
                instrument_id=guitar.id,
                plays=[Plays(instrument_id=guitar.id)],
            )
        )
        bob = await musician_repo.add_musician(
            Musician(
                first_name="Bob",
                last_name="Jones",
                phone="5559876543",
                dob=date(1985, 1, 2),
                sin="987654321",
                instrument_id=drums.id,
                plays=[Plays(instrument_id=drums.id)],
            )
        )

        song_repo = uow.get_song_repository()
        yesterday = await song_repo.add_song(
            Song(title="Yesterday", album_id=abbey_road.id, genre_id=pop.id)
        )

        yesterday = await song_repo.update_song(
            yesterday, MembershipChange(to_add={bob.id})
        )

    async with uow_factory() as uow:
        musician_repo = uow.get_musician_repository()
        alice = await musician_repo.get_musician(alice.id)
        bob = await musician_repo.get_musician(bob.id)

    return {
        "guitar": guitar,
        "piano": piano,
        "drums": drums,
        "rock": rock,
        "pop": pop,
        "abbey_road": abbey_road,
        "alice": alice,
        "bob": bob,
        "yesterday": yesterday,
    }


@pytest.fixture
def musician_form():
    """Valid musician form values as a request would submit them."""
    return {
        "first_name": "Carol",
        "middle_name": "",
        "last_name": "King",
        "phone": "5550001111",
        "dob": "1942-02-09",
        "sin": "111222333",
    }
