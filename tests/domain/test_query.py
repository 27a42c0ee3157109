"""Tests for the musician list query composer."""

from datetime import date

import pytest

from music_catalog.domain.catalog.query import (
    FILTER_ACTION,
    MusicianFilters,
    SortDirection,
    SortField,
    SortState,
    compose,
)
from music_catalog.domain.entities import Instrument, Musician, Performance

GUITAR = Instrument(name="Guitar", id=1)
PIANO = Instrument(name="Piano", id=2)


def make_musician(
    musician_id: int,
    first: str,
    last: str,
    phone: str = "5550000000",
    dob: date | None = None,
    instrument: Instrument | None = None,
    song_ids: tuple[int, ...] = (),
) -> Musician:
    return Musician(
        first_name=first,
        last_name=last,
        phone=phone,
        dob=dob,
        sin=f"{musician_id:09d}",
        instrument_id=instrument.id if instrument else None,
        instrument=instrument,
        performances=[Performance(musician_id=musician_id, song_id=s) for s in song_ids],
        id=musician_id,
    )


@pytest.fixture
def musicians():
    return [
        make_musician(1, "Alice", "Smith", "5550000003", date(1990, 1, 1), GUITAR, (10,)),
        make_musician(2, "Bob", "Jones", "5550000001", date(1980, 1, 1), PIANO, (10, 11)),
        make_musician(3, "carol", "adams", "5550000002", None, None),
        make_musician(4, "Dave", "Smith", "5550000004", date(2000, 1, 1), GUITAR),
    ]


def ids(composed) -> list[int]:
    return [m.id for m in composed.musicians]


class TestSortState:
    """Sort toggle state machine."""

    def test_same_column_flips_direction(self):
        state = SortState.from_tokens("Name", "")

        assert state.toggle("Name") == SortState(SortField.NAME, SortDirection.DESCENDING)

    def test_toggle_is_an_involution(self):
        """Pressing the active column twice restores the original state."""
        state = SortState.from_tokens("Age", "desc")

        assert state.toggle("Age").toggle("Age") == state

    def test_new_column_sorts_ascending(self):
        state = SortState.from_tokens("Name", "desc")

        assert state.toggle("Phone") == SortState(SortField.PHONE, SortDirection.ASCENDING)

    @pytest.mark.parametrize("action", [FILTER_ACTION, "", None])
    def test_filter_and_empty_action_keep_sort(self, action):
        state = SortState.from_tokens("Primary Instrument", "desc")

        assert state.toggle(action) == state

    @pytest.mark.parametrize("token", ["Musician", "Unknown", "phone", "", None])
    def test_unknown_field_tokens_sort_by_name(self, token):
        assert SortField.parse(token) is SortField.NAME

    def test_field_tokens_match_exactly(self):
        assert SortField.parse("Primary Instrument") is SortField.PRIMARY_INSTRUMENT
        assert SortField.parse("primary instrument") is SortField.NAME

    def test_unrecognised_column_sorts_by_name_ascending(self):
        state = SortState.from_tokens("Name", "desc")

        assert state.toggle("name") == SortState(SortField.NAME, SortDirection.ASCENDING)
        assert state.toggle("Age ") == SortState()

    def test_direction_tokens(self):
        assert SortDirection.parse("desc") is SortDirection.DESCENDING
        assert SortDirection.parse("") is SortDirection.ASCENDING
        assert SortDirection.parse("asc") is SortDirection.ASCENDING


class TestCompose:
    """Filtering and sorting over a musician collection."""

    def test_no_filters_is_identity_on_membership(self, musicians):
        composed = compose(musicians, MusicianFilters(), SortState())

        assert sorted(ids(composed)) == [1, 2, 3, 4]
        assert composed.filtering is False

    def test_name_sort_is_last_then_first_case_insensitive(self, musicians):
        composed = compose(musicians, MusicianFilters(), SortState())

        assert ids(composed) == [3, 2, 1, 4]

    def test_name_sort_descending_reverses_both_keys(self, musicians):
        state = SortState(SortField.NAME, SortDirection.DESCENDING)

        composed = compose(musicians, MusicianFilters(), state)

        assert ids(composed) == [4, 1, 2, 3]

    def test_phone_sort(self, musicians):
        composed = compose(musicians, MusicianFilters(), SortState(SortField.PHONE))

        assert ids(composed) == [2, 3, 1, 4]

    def test_age_sort_orders_by_birth_date(self, musicians):
        """Ascending by date of birth; a missing date sorts first."""
        composed = compose(musicians, MusicianFilters(), SortState(SortField.AGE))

        assert ids(composed) == [3, 2, 1, 4]

    def test_primary_instrument_sort(self, musicians):
        state = SortState(SortField.PRIMARY_INSTRUMENT, SortDirection.DESCENDING)

        composed = compose(musicians, MusicianFilters(), state)

        assert composed.musicians[0].id == 2
        assert composed.musicians[-1].id == 3

    def test_instrument_filter_uses_primary_instrument(self, musicians):
        composed = compose(musicians, MusicianFilters(instrument_id=1), SortState())

        assert ids(composed) == [1, 4]
        assert composed.filtering is True

    def test_song_filter(self, musicians):
        composed = compose(musicians, MusicianFilters(song_id=11), SortState())

        assert ids(composed) == [2]

    def test_search_matches_first_or_last_name(self, musicians):
        composed = compose(musicians, MusicianFilters(search_string="SMI"), SortState())
        assert ids(composed) == [1, 4]

        composed = compose(musicians, MusicianFilters(search_string="car"), SortState())
        assert ids(composed) == [3]

    def test_filters_are_conjunctive(self, musicians):
        filters = MusicianFilters(instrument_id=1, song_id=10, search_string="a")

        composed = compose(musicians, filters, SortState())

        assert ids(composed) == [1]

    def test_filtered_result_is_subset(self, musicians):
        filters = MusicianFilters(search_string="o")

        composed = compose(musicians, filters, SortState(SortField.PHONE))

        assert set(ids(composed)) <= {m.id for m in musicians}
        assert all(
            "o" in m.first_name.casefold() or "o" in m.last_name.casefold()
            for m in composed.musicians
        )

    def test_empty_search_adds_no_predicate(self, musicians):
        composed = compose(musicians, MusicianFilters(search_string=""), SortState())

        assert len(composed) == 4
        assert composed.filtering is False
