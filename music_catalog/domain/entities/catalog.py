"""Catalog domain entities.

Immutable representations of musicians, songs and the reference data they
point at. Aggregates (Musician, Song) carry their join rows so a use case can
load, change and persist them as a unit.
"""

from collections.abc import Mapping
from datetime import date
from typing import TYPE_CHECKING

import attrs
from attrs import define, field, validators

if TYPE_CHECKING:
    from music_catalog.domain.catalog.reconciliation import MembershipChange


@define(frozen=True, slots=True)
class Instrument:
    """Instrument a musician can play."""

    name: str = field(validator=validators.instance_of(str))
    id: int | None = field(default=None)


@define(frozen=True, slots=True)
class Genre:
    """Musical genre shared by songs and albums."""

    name: str = field(validator=validators.instance_of(str))
    id: int | None = field(default=None)


@define(frozen=True, slots=True)
class Album:
    """Album a song can belong to."""

    name: str = field(validator=validators.instance_of(str))
    year_produced: int | None = field(default=None)
    genre_id: int | None = field(default=None)
    genre: Genre | None = field(default=None)
    id: int | None = field(default=None)

    @property
    def full_summary(self) -> str:
        """Select-list label, e.g. ``Abbey Road - 1969 (Rock)``."""
        summary = self.name
        if self.year_produced is not None:
            summary = f"{summary} - {self.year_produced}"
        if self.genre is not None:
            summary = f"{summary} ({self.genre.name})"
        return summary


@define(frozen=True, slots=True)
class Plays:
    """Join row: a musician plays an instrument."""

    instrument_id: int
    musician_id: int | None = field(default=None)
    instrument: Instrument | None = field(default=None)


@define(frozen=True, slots=True)
class Performance:
    """Join row: a musician performed on a song.

    Only the side opposite the owning aggregate is populated: a musician's
    performances carry ``song``, a song's performances carry ``musician``.
    """

    musician_id: int
    song_id: int | None = field(default=None)
    musician: "Musician | None" = field(default=None)
    song: "Song | None" = field(default=None)


@define(frozen=True, slots=True)
class Musician:
    """Musician aggregate with the instruments they play and songs they perform.

    Field values are held as submitted; constraint checks live in
    ``music_catalog.domain.entities.submissions`` so an invalid in-progress
    musician can still be redisplayed.
    """

    first_name: str = field(validator=validators.instance_of(str))
    last_name: str = field(validator=validators.instance_of(str))
    phone: str = field(default="", validator=validators.instance_of(str))
    dob: date | None = field(default=None)
    sin: str = field(default="", validator=validators.instance_of(str))
    middle_name: str | None = field(default=None)
    instrument_id: int | None = field(default=None)
    instrument: Instrument | None = field(default=None)
    plays: tuple[Plays, ...] = field(default=(), converter=tuple)
    performances: tuple[Performance, ...] = field(default=(), converter=tuple)
    id: int | None = field(default=None)
    version: int | None = field(default=None)

    @property
    def full_name(self) -> str:
        parts = [self.first_name, self.middle_name, self.last_name]
        return " ".join(part for part in parts if part)

    @property
    def formal_name(self) -> str:
        """Name as ``Last, First M.`` used for ordered selection lists."""
        name = f"{self.last_name}, {self.first_name}"
        if self.middle_name:
            name = f"{name} {self.middle_name[0]}."
        return name

    @property
    def age(self) -> int | None:
        return age_on(self.dob, date.today()) if self.dob else None

    @property
    def instrument_ids(self) -> frozenset[int]:
        return frozenset(play.instrument_id for play in self.plays)

    @property
    def song_ids(self) -> frozenset[int]:
        return frozenset(
            performance.song_id
            for performance in self.performances
            if performance.song_id is not None
        )

    def with_plays_change(
        self,
        change: "MembershipChange[int]",
        instruments: Mapping[int, Instrument],
    ) -> "Musician":
        """Apply a reconciled membership change to the Plays collection."""
        kept = tuple(p for p in self.plays if p.instrument_id not in change.to_remove)
        added = tuple(
            Plays(
                instrument_id=instrument_id,
                musician_id=self.id,
                instrument=instruments.get(instrument_id),
            )
            for instrument_id in sorted(change.to_add)
        )
        return attrs.evolve(self, plays=kept + added)


@define(frozen=True, slots=True)
class Song:
    """Song aggregate with the musicians who performed on it."""

    title: str = field(validator=validators.instance_of(str))
    album_id: int | None = field(default=None)
    genre_id: int | None = field(default=None)
    album: Album | None = field(default=None)
    genre: Genre | None = field(default=None)
    performances: tuple[Performance, ...] = field(default=(), converter=tuple)
    id: int | None = field(default=None)
    version: int | None = field(default=None)

    @property
    def musician_ids(self) -> frozenset[int]:
        return frozenset(performance.musician_id for performance in self.performances)

    def with_performances_change(
        self,
        change: "MembershipChange[int]",
        musicians: Mapping[int, Musician],
    ) -> "Song":
        """Apply a reconciled membership change to the Performance collection."""
        kept = tuple(
            p for p in self.performances if p.musician_id not in change.to_remove
        )
        added = tuple(
            Performance(
                musician_id=musician_id,
                song_id=self.id,
                musician=musicians.get(musician_id),
            )
            for musician_id in sorted(change.to_add)
        )
        return attrs.evolve(self, performances=kept + added)


def age_on(dob: date, today: date) -> int:
    """Whole years elapsed between ``dob`` and ``today``."""
    had_birthday = (today.month, today.day) >= (dob.month, dob.day)
    return today.year - dob.year - (0 if had_birthday else 1)
