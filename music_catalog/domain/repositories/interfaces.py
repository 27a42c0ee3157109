"""Domain repository interfaces.

These interfaces define the contracts for catalog data access without
depending on infrastructure implementations. Lookups of a missing identity
raise ``NotFoundError``; write failures raise the ``PersistenceError``
subclasses from ``music_catalog.domain.errors``.
"""

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol, Self

if TYPE_CHECKING:
    from music_catalog.domain.catalog.reconciliation import MembershipChange
    from music_catalog.domain.entities import Album, Genre, Instrument, Musician, Song


class MusicianRepositoryProtocol(Protocol):
    """Repository interface for the musician aggregate."""

    def get_musician(self, musician_id: int) -> Awaitable["Musician"]:
        """Load a musician with instrument, plays and performances."""
        ...

    def list_musicians(self) -> Awaitable[list["Musician"]]:
        """Load every musician with associations, in storage order."""
        ...

    def musician_exists(self, musician_id: int) -> Awaitable[bool]:
        ...

    def add_musician(self, musician: "Musician") -> Awaitable["Musician"]:
        """Insert a musician and its plays; returns the stored aggregate."""
        ...

    def update_musician(
        self, musician: "Musician", plays_change: "MembershipChange[int]"
    ) -> Awaitable["Musician"]:
        """Update scalars at ``musician.version``, then apply the plays change.

        Raises:
            ConcurrencyConflictError: If no row matches id and version
        """
        ...

    def delete_musician(self, musician_id: int) -> Awaitable[None]:
        """Delete a musician and its plays.

        Raises:
            ReferentialIntegrityViolationError: If a performance references it
        """
        ...


class SongRepositoryProtocol(Protocol):
    """Repository interface for the song aggregate."""

    def get_song(self, song_id: int) -> Awaitable["Song"]:
        """Load a song with album, genre and performing musicians."""
        ...

    def list_songs(self) -> Awaitable[list["Song"]]:
        """Load every song with associations, ordered by title."""
        ...

    def song_exists(self, song_id: int) -> Awaitable[bool]:
        ...

    def add_song(self, song: "Song") -> Awaitable["Song"]:
        ...

    def update_song(
        self, song: "Song", performances_change: "MembershipChange[int]"
    ) -> Awaitable["Song"]:
        """Update scalars at ``song.version``, then apply the performances change."""
        ...

    def delete_song(self, song_id: int) -> Awaitable[None]:
        ...


class ReferenceRepositoryProtocol(Protocol):
    """Repository interface for lookup data feeding pickers and validation."""

    def list_instruments(self) -> Awaitable[list["Instrument"]]:
        ...

    def list_genres(self) -> Awaitable[list["Genre"]]:
        ...

    def list_albums(self) -> Awaitable[list["Album"]]:
        """Albums with their genre loaded."""
        ...

    def add_instrument(self, name: str) -> Awaitable["Instrument"]:
        ...

    def add_genre(self, name: str) -> Awaitable["Genre"]:
        ...

    def add_album(
        self, name: str, year_produced: int | None, genre_id: int | None
    ) -> Awaitable["Album"]:
        ...


class UnitOfWorkProtocol(Protocol):
    """Unit of Work interface for transaction boundary management.

    Each instance manages a single database transaction and provides access
    to the repositories sharing it. Leaving the context commits unless an
    exception escaped, in which case everything staged is rolled back.
    """

    async def __aenter__(self) -> Self:
        """Enter async context manager."""
        ...

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager with automatic commit/rollback."""
        ...

    async def commit(self) -> None:
        """Explicitly commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Explicitly rollback the current transaction."""
        ...

    def get_musician_repository(self) -> MusicianRepositoryProtocol:
        """Get musician repository using this unit of work's transaction."""
        ...

    def get_song_repository(self) -> SongRepositoryProtocol:
        """Get song repository using this unit of work's transaction."""
        ...

    def get_reference_repository(self) -> ReferenceRepositoryProtocol:
        """Get reference data repository using this unit of work's transaction."""
        ...


# Opens a fresh unit of work (and session) per call
UnitOfWorkFactory = Callable[[], UnitOfWorkProtocol]
