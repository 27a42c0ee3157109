"""Form submissions for creating and editing catalog aggregates.

A submission is built from a raw form mapping and keeps only the fields on
its entity's allow-list, so identity and concurrency columns can never be
overposted. Values that fail to convert (a malformed date, a non-numeric id)
are kept as conversion errors and reported alongside the field constraints.
"""

from collections.abc import Collection, Iterable, Mapping, Sequence
from datetime import date, datetime
import re
from typing import Any

import attrs
from attrs import define, field

from music_catalog.domain.catalog.reconciliation import parse_selected_keys
from music_catalog.domain.entities.catalog import Musician, Performance, Plays, Song

MUSICIAN_EDITABLE_FIELDS: tuple[str, ...] = (
    "sin",
    "first_name",
    "middle_name",
    "last_name",
    "dob",
    "phone",
    "instrument_id",
)
SONG_EDITABLE_FIELDS: tuple[str, ...] = ("title", "album_id", "genre_id")

SELECTED_INSTRUMENTS = "selected_instruments"
SELECTED_OPTIONS = "selected_options"

_PHONE_PATTERN = re.compile(r"^\d{10}$")
_SIN_PATTERN = re.compile(r"^\d{9}$")

FieldErrors = dict[str, list[str]]


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _optional_text(value: Any) -> str | None:
    text = _text(value)
    return text or None


def _convert_int(
    name: str, value: Any, errors: dict[str, str]
) -> int | None:
    if value is None or isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        errors[name] = f"'{text}' is not a valid selection."
        return None


def _convert_date(name: str, value: Any, errors: dict[str, str]) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if value is None or isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        errors[name] = f"'{text}' is not a valid date."
        return None


def _tokens(value: str | Iterable[str] | None) -> tuple[str, ...] | None:
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    return tuple(str(token) for token in value)


def _allowed(form: Mapping[str, Any], allow_list: Iterable[str]) -> dict[str, Any]:
    return {name: form[name] for name in allow_list if name in form}


def _add_error(errors: FieldErrors, name: str, message: str) -> None:
    errors.setdefault(name, []).append(message)


@define(frozen=True, slots=True)
class MusicianSubmission:
    """Allow-listed musician fields plus the selected instrument tokens.

    ``provided`` records which allow-listed fields the form carried, so an
    edit only overwrites what was actually submitted.
    """

    first_name: str = field(default="")
    middle_name: str | None = field(default=None)
    last_name: str = field(default="")
    phone: str = field(default="")
    dob: date | None = field(default=None)
    sin: str = field(default="")
    instrument_id: int | None = field(default=None)
    selected_instruments: tuple[str, ...] | None = field(default=None)
    provided: frozenset[str] = field(
        factory=lambda: frozenset(MUSICIAN_EDITABLE_FIELDS), converter=frozenset
    )
    conversion_errors: dict[str, str] = field(factory=dict)

    @classmethod
    def from_form(
        cls,
        form: Mapping[str, Any],
        selected_instruments: Sequence[str] | None = None,
    ) -> "MusicianSubmission":
        """Build a submission from raw form values, ignoring unlisted keys."""
        values = _allowed(form, MUSICIAN_EDITABLE_FIELDS)
        errors: dict[str, str] = {}
        if selected_instruments is None and SELECTED_INSTRUMENTS in form:
            selected_instruments = form[SELECTED_INSTRUMENTS]
        return cls(
            first_name=_text(values.get("first_name")),
            middle_name=_optional_text(values.get("middle_name")),
            last_name=_text(values.get("last_name")),
            phone=_text(values.get("phone")),
            dob=_convert_date("dob", values.get("dob"), errors),
            sin=_text(values.get("sin")),
            instrument_id=_convert_int("instrument_id", values.get("instrument_id"), errors),
            selected_instruments=_tokens(selected_instruments),
            provided=frozenset(values),
            conversion_errors=errors,
        )

    def requested_instrument_ids(self) -> frozenset[int] | None:
        """Selected instrument keys; raises ValueError on a malformed token."""
        return parse_selected_keys(self.selected_instruments)

    def to_musician(self) -> Musician:
        """Transient musician holding the submitted values."""
        return Musician(
            first_name=self.first_name,
            middle_name=self.middle_name,
            last_name=self.last_name,
            phone=self.phone,
            dob=self.dob,
            sin=self.sin,
            instrument_id=self.instrument_id,
        )

    def submitted_musician(self, musician_id: int | None = None) -> Musician:
        """Submitted values and well-formed selections, with no stored state.

        Stands in for the in-progress musician when the stored one was never
        loaded.
        """
        try:
            requested = self.requested_instrument_ids() or frozenset()
        except ValueError:
            requested = frozenset()
        return attrs.evolve(
            self.to_musician(),
            id=musician_id,
            plays=[
                Plays(instrument_id=instrument_id, musician_id=musician_id)
                for instrument_id in sorted(requested)
            ],
        )

    def apply_to(self, musician: Musician) -> Musician:
        """Overwrite the allow-listed fields present in the submission."""
        changes = {
            name: getattr(self, name)
            for name in MUSICIAN_EDITABLE_FIELDS
            if name in self.provided
        }
        if "instrument_id" in changes and changes["instrument_id"] != musician.instrument_id:
            changes["instrument"] = None
        return attrs.evolve(musician, **changes)


@define(frozen=True, slots=True)
class SongSubmission:
    """Allow-listed song fields plus the selected performer tokens."""

    title: str = field(default="")
    album_id: int | None = field(default=None)
    genre_id: int | None = field(default=None)
    selected_options: tuple[str, ...] | None = field(default=None)
    provided: frozenset[str] = field(
        factory=lambda: frozenset(SONG_EDITABLE_FIELDS), converter=frozenset
    )
    conversion_errors: dict[str, str] = field(factory=dict)

    @classmethod
    def from_form(
        cls,
        form: Mapping[str, Any],
        selected_options: Sequence[str] | None = None,
    ) -> "SongSubmission":
        values = _allowed(form, SONG_EDITABLE_FIELDS)
        errors: dict[str, str] = {}
        if selected_options is None and SELECTED_OPTIONS in form:
            selected_options = form[SELECTED_OPTIONS]
        return cls(
            title=_text(values.get("title")),
            album_id=_convert_int("album_id", values.get("album_id"), errors),
            genre_id=_convert_int("genre_id", values.get("genre_id"), errors),
            selected_options=_tokens(selected_options),
            provided=frozenset(values),
            conversion_errors=errors,
        )

    def requested_musician_ids(self) -> frozenset[int] | None:
        """Selected performer keys; raises ValueError on a malformed token."""
        return parse_selected_keys(self.selected_options)

    def to_song(self) -> Song:
        return Song(title=self.title, album_id=self.album_id, genre_id=self.genre_id)

    def submitted_song(self, song_id: int | None = None) -> Song:
        try:
            requested = self.requested_musician_ids() or frozenset()
        except ValueError:
            requested = frozenset()
        return attrs.evolve(
            self.to_song(),
            id=song_id,
            performances=[
                Performance(musician_id=musician_id, song_id=song_id)
                for musician_id in sorted(requested)
            ],
        )

    def apply_to(self, song: Song) -> Song:
        changes = {
            name: getattr(self, name)
            for name in SONG_EDITABLE_FIELDS
            if name in self.provided
        }
        if "album_id" in changes and changes["album_id"] != song.album_id:
            changes["album"] = None
        if "genre_id" in changes and changes["genre_id"] != song.genre_id:
            changes["genre"] = None
        return attrs.evolve(song, **changes)


def musician_field_errors(
    musician: Musician,
    instrument_ids: Collection[int],
    today: date | None = None,
) -> FieldErrors:
    """Field-level constraint failures for a musician about to be saved."""
    errors: FieldErrors = {}
    today = today or date.today()

    if not musician.first_name:
        _add_error(errors, "first_name", "You cannot leave the first name blank.")
    elif len(musician.first_name) > 50:
        _add_error(errors, "first_name", "First name cannot be more than 50 characters long.")

    if musician.middle_name and len(musician.middle_name) > 50:
        _add_error(errors, "middle_name", "Middle name cannot be more than 50 characters long.")

    if not musician.last_name:
        _add_error(errors, "last_name", "You cannot leave the last name blank.")
    elif len(musician.last_name) > 100:
        _add_error(errors, "last_name", "Last name cannot be more than 100 characters long.")

    if not _PHONE_PATTERN.match(musician.phone):
        _add_error(errors, "phone", "Enter a valid 10-digit phone number (no spaces).")

    if not _SIN_PATTERN.match(musician.sin):
        _add_error(errors, "sin", "The SIN must be exactly 9 numeric digits.")

    if musician.dob is None:
        _add_error(errors, "dob", "You must enter the date of birth.")
    elif musician.dob > today:
        _add_error(errors, "dob", "Date of birth cannot be in the future.")

    if musician.instrument_id is not None and musician.instrument_id not in instrument_ids:
        _add_error(errors, "instrument_id", "Select an existing primary instrument.")

    return errors


def song_field_errors(
    song: Song,
    album_ids: Collection[int],
    genre_ids: Collection[int],
) -> FieldErrors:
    """Field-level constraint failures for a song about to be saved."""
    errors: FieldErrors = {}

    if not song.title:
        _add_error(errors, "title", "You cannot leave the title blank.")
    elif len(song.title) > 80:
        _add_error(errors, "title", "Title cannot be more than 80 characters long.")

    if song.album_id is not None and song.album_id not in album_ids:
        _add_error(errors, "album_id", "Select an existing album.")

    if song.genre_id is not None and song.genre_id not in genre_ids:
        _add_error(errors, "genre_id", "Select an existing genre.")

    return errors


def merge_field_errors(*sources: Mapping[str, str | list[str]]) -> FieldErrors:
    """Combine error mappings, accepting single messages or message lists."""
    merged: FieldErrors = {}
    for source in sources:
        for name, messages in source.items():
            if isinstance(messages, str):
                messages = [messages]
            for message in messages:
                _add_error(merged, name, message)
    return merged
