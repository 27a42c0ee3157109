"""ListMusicians use case: filtered, sorted musician list with toggling sort.

The request carries the previous sort tokens plus the button the user
pressed. The result echoes the effective tokens back so the next request
can toggle from them, along with the option lists the filter pickers need.
"""

from collections.abc import Mapping
from typing import Any

from attrs import define, field

from music_catalog.config import get_logger
from music_catalog.domain.catalog.options import (
    SelectOption,
    instrument_options,
    song_options,
)
from music_catalog.domain.catalog.query import (
    MusicianFilters,
    SortField,
    SortState,
    compose,
)
from music_catalog.domain.entities import Musician
from music_catalog.domain.repositories.interfaces import UnitOfWorkProtocol

logger = get_logger(__name__)


def _optional_int(value: Any) -> int | None:
    """Parse an optional integer parameter; malformed values count as absent."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


@define(frozen=True, slots=True)
class ListMusiciansCommand:
    """List-view request parameters.

    ``sort_field`` and ``sort_direction`` are the tokens the previous page
    rendered; ``action_button`` is the column clicked or "Filter".
    """

    instrument_id: int | None = None
    song_id: int | None = None
    search_string: str | None = None
    sort_direction: str | None = None
    action_button: str | None = None
    sort_field: str = SortField.NAME.value

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "ListMusiciansCommand":
        """Build a command from raw query parameters (camelCase names)."""
        return cls(
            instrument_id=_optional_int(params.get("instrumentId")),
            song_id=_optional_int(params.get("songId")),
            search_string=_optional_str(params.get("searchString")),
            sort_direction=_optional_str(params.get("sortDirection")),
            action_button=_optional_str(params.get("actionButton")),
            sort_field=_optional_str(params.get("sortField")) or SortField.NAME.value,
        )

    @property
    def filters(self) -> MusicianFilters:
        return MusicianFilters(
            instrument_id=self.instrument_id,
            song_id=self.song_id,
            search_string=self.search_string,
        )


@define(frozen=True, slots=True)
class ListMusiciansResult:
    """Ordered musicians plus the state the list view renders."""

    musicians: list[Musician] = field(factory=list)
    sort_field: str = SortField.NAME.value
    sort_direction: str = ""
    filtering: bool = False
    instrument_options: list[SelectOption] = field(factory=list)
    song_options: list[SelectOption] = field(factory=list)

    @property
    def count(self) -> int:
        return len(self.musicians)


class ListMusiciansUseCase:
    """Read-only list composition over one unit of work."""

    async def execute(
        self, command: ListMusiciansCommand, uow: UnitOfWorkProtocol
    ) -> ListMusiciansResult:
        """Load musicians with associations, then filter and sort in memory.

        Args:
            command: Parsed list-view parameters
            uow: Unit of work providing repositories

        Returns:
            ListMusiciansResult with the effective sort tokens
        """
        sort_state = SortState.from_tokens(
            command.sort_field, command.sort_direction
        ).toggle(command.action_button)

        logger.info(
            "Listing musicians",
            sort_field=sort_state.field.value,
            sort_direction=sort_state.direction.value,
            action_button=command.action_button,
        )

        async with uow:
            musicians = await uow.get_musician_repository().list_musicians()
            reference_repo = uow.get_reference_repository()
            instruments = await reference_repo.list_instruments()
            songs = await uow.get_song_repository().list_songs()

        composed = compose(musicians, command.filters, sort_state)

        logger.debug(
            f"Composed musician list: {len(composed)} of {len(musicians)}",
            filtering=composed.filtering,
        )

        return ListMusiciansResult(
            musicians=list(composed.musicians),
            sort_field=sort_state.field.value,
            sort_direction=sort_state.direction.value,
            filtering=composed.filtering,
            instrument_options=instrument_options(instruments, command.instrument_id),
            song_options=song_options(songs, command.song_id),
        )
