"""Filtered, sorted views over the musician collection.

The list view round-trips its sort state through request parameters. A
column click toggles direction when the column is already active and
otherwise switches to that column ascending; the "Filter" button keeps the
sort as it is. Filters are optional and conjunctive: each one present adds a
predicate, none present leaves the collection untouched.

Composition mirrors a pipeline of pure transforms:

    ```python
    filters = MusicianFilters(search_string="ali")
    state = SortState.from_tokens("Name", "").toggle("Phone")
    view = compose(musicians, filters, state)
    ```
"""

from collections.abc import Callable, Sequence
from datetime import date
from enum import StrEnum
from typing import Any

from attrs import define, field
from toolz import compose_left, curry

from music_catalog.domain.entities.catalog import Musician

FILTER_ACTION = "Filter"

MusicianView = tuple[Musician, ...]
Predicate = Callable[[Musician], bool]
Transform = Callable[[MusicianView], MusicianView]


class SortField(StrEnum):
    """Sortable columns of the musician list."""

    NAME = "Name"
    PHONE = "Phone"
    AGE = "Age"
    PRIMARY_INSTRUMENT = "Primary Instrument"

    @classmethod
    def parse(cls, token: str | None) -> "SortField":
        """Map a request token to a field by exact value; others sort by name."""
        try:
            return cls(token)
        except ValueError:
            return cls.NAME


class SortDirection(StrEnum):
    """Sort direction as round-tripped in the ``sortDirection`` parameter."""

    ASCENDING = ""
    DESCENDING = "desc"

    @classmethod
    def parse(cls, token: str | None) -> "SortDirection":
        if token and token.strip().casefold() in {"desc", "descending"}:
            return cls.DESCENDING
        return cls.ASCENDING

    def flipped(self) -> "SortDirection":
        if self is SortDirection.ASCENDING:
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING


@define(frozen=True, slots=True)
class SortState:
    """Active sort column and direction."""

    field: SortField = SortField.NAME
    direction: SortDirection = SortDirection.ASCENDING

    @classmethod
    def from_tokens(
        cls, sort_field: str | None, sort_direction: str | None
    ) -> "SortState":
        return cls(SortField.parse(sort_field), SortDirection.parse(sort_direction))

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESCENDING

    def toggle(self, action_button: str | None) -> "SortState":
        """Next sort state after the user pressed ``action_button``.

        Empty tokens and the Filter button keep the state. Pressing the active
        column flips direction; pressing another column sorts by it ascending.
        A token naming no column falls back to name ascending.
        """
        if not action_button or action_button == FILTER_ACTION:
            return self
        requested = SortField.parse(action_button)
        if requested.value != action_button:
            return SortState()
        if requested is self.field:
            return SortState(self.field, self.direction.flipped())
        return SortState(requested, SortDirection.ASCENDING)


def _name_key(musician: Musician) -> tuple[str, str]:
    return (musician.last_name.casefold(), musician.first_name.casefold())


def _age_key(musician: Musician) -> date:
    return musician.dob or date.min


def _instrument_key(musician: Musician) -> str:
    return musician.instrument.name if musician.instrument else ""


# Last and first name share a direction, never split.
SORT_KEYS: dict[SortField, Callable[[Musician], Any]] = {
    SortField.NAME: _name_key,
    SortField.PHONE: lambda musician: musician.phone,
    SortField.AGE: _age_key,
    SortField.PRIMARY_INSTRUMENT: _instrument_key,
}


@define(frozen=True, slots=True)
class MusicianFilters:
    """Optional list-view filters; empty values add no predicate."""

    instrument_id: int | None = field(default=None)
    song_id: int | None = field(default=None)
    search_string: str | None = field(default=None)

    def predicates(self) -> list[Predicate]:
        """Predicates for every filter that carries a value."""
        predicates: list[Predicate] = []
        if self.instrument_id is not None:
            instrument_id = self.instrument_id
            predicates.append(lambda m: m.instrument_id == instrument_id)
        if self.song_id is not None:
            song_id = self.song_id
            predicates.append(lambda m: song_id in m.song_ids)
        if self.search_string:
            needle = self.search_string.casefold()
            predicates.append(
                lambda m: needle in m.last_name.casefold()
                or needle in m.first_name.casefold()
            )
        return predicates

    @property
    def is_active(self) -> bool:
        return bool(self.predicates())


@define(frozen=True, slots=True)
class ComposedList:
    """Ordered musicians plus the state the view echoes back."""

    musicians: MusicianView
    sort_state: SortState
    filtering: bool

    def __len__(self) -> int:
        return len(self.musicians)


@curry
def filter_by_predicate(predicate: Predicate, musicians: MusicianView) -> MusicianView:
    """Keep musicians for which ``predicate`` holds."""
    return tuple(musician for musician in musicians if predicate(musician))


@curry
def sort_by_state(state: SortState, musicians: MusicianView) -> MusicianView:
    """Order musicians by the comparator registered for the active field."""
    return tuple(sorted(musicians, key=SORT_KEYS[state.field], reverse=state.descending))


def create_pipeline(*operations: Transform) -> Transform:
    """Compose transforms left to right into a single transform."""
    return compose_left(*operations)


def compose(
    musicians: Sequence[Musician],
    filters: MusicianFilters,
    sort_state: SortState,
) -> ComposedList:
    """Filter then sort ``musicians``.

    Args:
        musicians: Base collection with associations loaded
        filters: Optional predicates, applied conjunctively
        sort_state: Effective sort after toggling

    Returns:
        ComposedList with ``filtering`` set when any predicate applied
    """
    predicates = filters.predicates()
    pipeline = create_pipeline(
        *(filter_by_predicate(predicate) for predicate in predicates),
        sort_by_state(sort_state),
    )
    return ComposedList(
        musicians=pipeline(tuple(musicians)),
        sort_state=sort_state,
        filtering=bool(predicates),
    )
