"""Catalog browsing commands for musicians and songs."""

from typing import Annotated

from rich.console import Console
import typer

from music_catalog.application.use_cases.list_musicians import (
    ListMusiciansCommand,
    ListMusiciansResult,
    ListMusiciansUseCase,
)
from music_catalog.application.use_cases.manage_musician import (
    DeleteMusicianCommand,
    DeleteMusicianUseCase,
    ShowMusicianCommand,
    ShowMusicianUseCase,
)
from music_catalog.application.use_cases.manage_song import ListSongsUseCase
from music_catalog.application.utilities.results import CrudOutcome, OutcomeStatus
from music_catalog.config import get_logger
from music_catalog.domain.catalog.query import FILTER_ACTION
from music_catalog.domain.entities import Song
from music_catalog.infrastructure.cli.async_helpers import run_async
from music_catalog.infrastructure.cli.ui import (
    command_error_handler,
    display_musician,
    display_outcome_errors,
    musicians_table,
    songs_table,
)
from music_catalog.infrastructure.persistence.repositories.factories import (
    get_unit_of_work_factory,
)

# Initialize console and logger
console = Console()
logger = get_logger(__name__)

musicians_app = typer.Typer(help="Browse and manage musicians", no_args_is_help=True)
songs_app = typer.Typer(help="Browse songs", no_args_is_help=True)


@musicians_app.command(name="list")
@command_error_handler
def list_musicians(
    instrument_id: Annotated[
        int | None,
        typer.Option("--instrument-id", help="Only musicians with this primary instrument"),
    ] = None,
    song_id: Annotated[
        int | None,
        typer.Option("--song-id", help="Only musicians who performed this song"),
    ] = None,
    search: Annotated[
        str | None,
        typer.Option("--search", "-s", help="Match first or last name"),
    ] = None,
    sort_field: Annotated[
        str,
        typer.Option("--sort-field", help="Current sort column"),
    ] = "Name",
    sort_direction: Annotated[
        str,
        typer.Option("--sort-direction", help="Current direction ('' or 'desc')"),
    ] = "",
    action: Annotated[
        str | None,
        typer.Option(
            "--action",
            "-a",
            help=f"Column pressed (Name, Phone, Age, Primary Instrument) or {FILTER_ACTION}",
        ),
    ] = None,
) -> None:
    """List musicians with optional filters and a toggling sort."""
    command = ListMusiciansCommand(
        instrument_id=instrument_id,
        song_id=song_id,
        search_string=search,
        sort_direction=sort_direction,
        action_button=action,
        sort_field=sort_field,
    )

    async def execute() -> ListMusiciansResult:
        uow = get_unit_of_work_factory()()
        return await ListMusiciansUseCase().execute(command, uow)

    result = run_async(execute)

    direction = "descending" if result.sort_direction else "ascending"
    console.print(
        musicians_table(
            result.musicians,
            title=f"Musicians by {result.sort_field} ({direction})",
        )
    )
    if result.filtering:
        console.print(f"[dim]{result.count} musicians match the filters[/dim]")
    console.print(
        f"[dim]Next request: --sort-field '{result.sort_field}' "
        f"--sort-direction '{result.sort_direction}'[/dim]"
    )


@musicians_app.command(name="show")
@command_error_handler
def show_musician(
    musician_id: Annotated[int, typer.Argument(help="Musician ID")],
) -> None:
    """Show one musician with the instruments they play and their songs."""
    outcome: CrudOutcome = run_async(
        lambda: ShowMusicianUseCase().execute(
            ShowMusicianCommand(musician_id), get_unit_of_work_factory()
        )
    )
    if outcome.status is OutcomeStatus.NOT_FOUND:
        console.print(f"[yellow]Musician {musician_id} not found[/yellow]")
        raise typer.Exit(code=1)
    display_musician(outcome.entity)


@musicians_app.command(name="delete")
@command_error_handler
def delete_musician(
    musician_id: Annotated[int, typer.Argument(help="Musician ID")],
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip the confirmation prompt"),
    ] = False,
) -> None:
    """Delete a musician who has not performed on any songs."""
    if not yes:
        typer.confirm(f"Delete musician {musician_id}?", abort=True)

    outcome: CrudOutcome = run_async(
        lambda: DeleteMusicianUseCase().execute(
            DeleteMusicianCommand(musician_id), get_unit_of_work_factory()
        )
    )
    match outcome.status:
        case OutcomeStatus.SAVED:
            console.print(
                f"[bold green]✓ Deleted {outcome.entity.full_name}[/bold green]"
            )
        case OutcomeStatus.NOT_FOUND:
            console.print(f"[yellow]Musician {musician_id} not found[/yellow]")
            raise typer.Exit(code=1)
        case _:
            display_outcome_errors(outcome)
            raise typer.Exit(code=1)


@songs_app.command(name="list")
@command_error_handler
def list_songs() -> None:
    """List songs ordered by title with album, genre and performers."""

    async def execute() -> list[Song]:
        return await ListSongsUseCase().execute(get_unit_of_work_factory()())

    songs = run_async(execute)
    console.print(songs_table(songs))
