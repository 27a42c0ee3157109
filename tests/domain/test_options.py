"""Tests for select-list option builders."""

from datetime import date

from music_catalog.domain.catalog.options import (
    SelectOption,
    album_options,
    assignment_checklist,
    build_options,
    genre_options,
    instrument_options,
    split_assignment,
)
from music_catalog.domain.entities import Album, Genre, Instrument, Musician

INSTRUMENTS = [
    Instrument(name="Piano", id=2),
    Instrument(name="Drums", id=3),
    Instrument(name="Guitar", id=1),
]


def test_build_options_keeps_source_order_and_marks_selection():
    options = build_options(INSTRUMENTS, 3)

    assert [o.key for o in options] == [2, 3, 1]
    assert [o.is_selected for o in options] == [False, True, False]


def test_missing_selection_marks_nothing():
    options = build_options(INSTRUMENTS, None)

    assert not any(o.is_selected for o in options)


def test_instrument_options_ordered_by_name():
    options = instrument_options(INSTRUMENTS, 1)

    assert options == [
        SelectOption(3, "Drums", False),
        SelectOption(1, "Guitar", True),
        SelectOption(2, "Piano", False),
    ]


def test_album_options_use_full_summary():
    rock = Genre(name="Rock", id=1)
    albums = [
        Album(name="Help!", year_produced=1965, id=2),
        Album(name="Abbey Road", year_produced=1969, genre=rock, genre_id=1, id=1),
    ]

    options = album_options(albums)

    assert [o.label for o in options] == ["Abbey Road - 1969 (Rock)", "Help! - 1965"]


def test_assignment_checklist_ticks_assigned_instruments():
    checklist = assignment_checklist(INSTRUMENTS, frozenset({1, 2}))

    assert [(c.label, c.assigned) for c in checklist] == [
        ("Drums", False),
        ("Guitar", True),
        ("Piano", True),
    ]


def test_split_assignment_orders_by_formal_name():
    musicians = [
        Musician(first_name="Zed", last_name="Adams", dob=date(1990, 1, 1), id=1),
        Musician(first_name="Amy", last_name="Brown", middle_name="Jo", id=2),
        Musician(first_name="Al", last_name="Adams", id=3),
    ]

    split = split_assignment(musicians, frozenset({1, 2}))

    assert [o.label for o in split.selected] == ["Adams, Zed", "Brown, Amy J."]
    assert [o.key for o in split.available] == [3]
    assert all(o.is_selected for o in split.selected)


def test_option_lists_ignore_case():
    instruments = [
        Instrument(name="banjo", id=4),
        Instrument(name="Cello", id=5),
        Instrument(name="Accordion", id=6),
    ]
    genres = [Genre(name="pop", id=1), Genre(name="Jazz", id=2)]

    assert [o.label for o in instrument_options(instruments)] == [
        "Accordion",
        "banjo",
        "Cello",
    ]
    assert [o.label for o in genre_options(genres)] == ["Jazz", "pop"]
