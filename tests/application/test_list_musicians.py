"""Tests for the ListMusicians use case."""

from music_catalog.application.use_cases.list_musicians import (
    ListMusiciansCommand,
    ListMusiciansUseCase,
)


class TestListMusiciansCommand:
    """Parsing of list-view request parameters."""

    def test_from_params(self):
        command = ListMusiciansCommand.from_params(
            {
                "instrumentId": "3",
                "songId": "not-a-number",
                "searchString": "ali",
                "sortDirection": "desc",
                "actionButton": "Phone",
            }
        )

        assert command.instrument_id == 3
        assert command.song_id is None
        assert command.search_string == "ali"
        assert command.sort_field == "Name"
        assert command.action_button == "Phone"

    def test_empty_params_use_defaults(self):
        command = ListMusiciansCommand.from_params({})

        assert command.instrument_id is None
        assert command.sort_field == "Name"
        assert not command.filters.is_active


class TestListMusiciansUseCase:
    async def test_default_sort_by_name(self, uow_factory, catalog):
        result = await ListMusiciansUseCase().execute(
            ListMusiciansCommand(), uow_factory()
        )

        assert [m.last_name for m in result.musicians] == ["Jones", "Smith"]
        assert result.sort_field == "Name"
        assert result.sort_direction == ""
        assert result.filtering is False

    async def test_clicking_active_column_toggles_direction(self, uow_factory, catalog):
        command = ListMusiciansCommand.from_params(
            {"sortField": "Name", "sortDirection": "", "actionButton": "Name"}
        )

        result = await ListMusiciansUseCase().execute(command, uow_factory())

        assert [m.last_name for m in result.musicians] == ["Smith", "Jones"]
        assert result.sort_direction == "desc"

    async def test_filter_button_keeps_sort_and_applies_filters(
        self, uow_factory, catalog
    ):
        yesterday = catalog["yesterday"]
        command = ListMusiciansCommand.from_params(
            {
                "sortField": "Age",
                "sortDirection": "desc",
                "actionButton": "Filter",
                "songId": str(yesterday.id),
            }
        )

        result = await ListMusiciansUseCase().execute(command, uow_factory())

        assert [m.first_name for m in result.musicians] == ["Bob"]
        assert (result.sort_field, result.sort_direction) == ("Age", "desc")
        assert result.filtering is True
        assert [o.key for o in result.song_options if o.is_selected] == [yesterday.id]

    async def test_musicians_carry_associations(self, uow_factory, catalog):
        result = await ListMusiciansUseCase().execute(
            ListMusiciansCommand(), uow_factory()
        )

        bob = result.musicians[0]
        assert bob.instrument.name == "Drums"
        assert bob.song_ids == {catalog["yesterday"].id}
        assert [o.label for o in result.instrument_options] == ["Drums", "Guitar", "Piano"]
