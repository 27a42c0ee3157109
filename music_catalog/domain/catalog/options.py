"""Ordered key/label option lists for form pickers."""

from collections.abc import Callable, Iterable
from collections.abc import Set as AbstractSet
from operator import attrgetter
from typing import Any

from attrs import define, field

from music_catalog.domain.entities.catalog import Album, Genre, Instrument, Musician, Song


@define(frozen=True, slots=True)
class SelectOption:
    key: int
    label: str
    is_selected: bool = False


@define(frozen=True, slots=True)
class AssignedOption:
    """Checkbox entry: a candidate and whether the owner currently has it."""

    key: int
    label: str
    assigned: bool = False


@define(frozen=True, slots=True)
class AssignmentOptions:
    """Candidates split into the owner's current members and the rest."""

    selected: list[SelectOption] = field(factory=list)
    available: list[SelectOption] = field(factory=list)


def _casefolded(name: str) -> Callable[[Any], str]:
    """Sort key reading a text attribute case-insensitively."""
    get = attrgetter(name)
    return lambda item: get(item).casefold()


def build_options[E](
    source: Iterable[E],
    selected_key: Any,
    key: Callable[[E], int] = attrgetter("id"),
    label: Callable[[E], str] = attrgetter("name"),
) -> list[SelectOption]:
    """Project ``source`` to options, keeping its order.

    At most one option is marked selected; a missing ``selected_key`` marks
    none.
    """
    return [
        SelectOption(
            key=key(item),
            label=label(item),
            is_selected=selected_key is not None and key(item) == selected_key,
        )
        for item in source
    ]


def instrument_options(
    instruments: Iterable[Instrument], selected_id: int | None = None
) -> list[SelectOption]:
    return build_options(sorted(instruments, key=_casefolded("name")), selected_id)


def genre_options(
    genres: Iterable[Genre], selected_id: int | None = None
) -> list[SelectOption]:
    return build_options(sorted(genres, key=_casefolded("name")), selected_id)


def album_options(
    albums: Iterable[Album], selected_id: int | None = None
) -> list[SelectOption]:
    """Albums ordered by name then year, labelled with their full summary."""
    ordered = sorted(albums, key=lambda a: (a.name.casefold(), a.year_produced or 0))
    return build_options(ordered, selected_id, label=attrgetter("full_summary"))


def song_options(
    songs: Iterable[Song], selected_id: int | None = None
) -> list[SelectOption]:
    ordered = sorted(songs, key=_casefolded("title"))
    return build_options(ordered, selected_id, label=attrgetter("title"))


def assignment_checklist(
    instruments: Iterable[Instrument], assigned_ids: AbstractSet[int]
) -> list[AssignedOption]:
    """One checkbox per instrument, ordered by name, ticked when assigned."""
    return [
        AssignedOption(
            key=instrument.id,
            label=instrument.name,
            assigned=instrument.id in assigned_ids,
        )
        for instrument in sorted(instruments, key=_casefolded("name"))
        if instrument.id is not None
    ]


def split_assignment(
    musicians: Iterable[Musician], assigned_ids: AbstractSet[int]
) -> AssignmentOptions:
    """Split musicians into performers of a song and everyone else.

    Both lists are ordered by formal name and labelled with it.
    """
    selected: list[SelectOption] = []
    available: list[SelectOption] = []
    for musician in sorted(musicians, key=_casefolded("formal_name")):
        if musician.id is None:
            continue
        if musician.id in assigned_ids:
            selected.append(SelectOption(musician.id, musician.formal_name, True))
        else:
            available.append(SelectOption(musician.id, musician.formal_name))
    return AssignmentOptions(selected=selected, available=available)
