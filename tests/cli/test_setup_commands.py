"""Tests for reference data seeding."""

from music_catalog.infrastructure.cli.setup_commands import seed_reference_data


async def test_seed_adds_only_missing_rows(uow_factory, catalog):
    added = await seed_reference_data(uow_factory())

    assert added == {"instruments": 3, "genres": 3, "albums": 2}


async def test_seed_is_idempotent(uow_factory, catalog):
    await seed_reference_data(uow_factory())
    again = await seed_reference_data(uow_factory())

    async with uow_factory() as uow:
        albums = await uow.get_reference_repository().list_albums()

    assert again == {"instruments": 0, "genres": 0, "albums": 0}
    assert {a.name for a in albums} == {"Abbey Road", "Help!", "Kind of Blue"}
