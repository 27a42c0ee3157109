"""UI helpers for CLI interaction.

Reusable rendering and error handling for the catalog commands, keeping
presentation separate from the use cases.
"""

from collections.abc import Callable, Sequence
import functools

from rich.console import Console
from rich.table import Table
import typer

from music_catalog.application.utilities.results import CrudOutcome
from music_catalog.config import get_logger
from music_catalog.domain.entities import Musician, Song

# Initialize console and logger
console = Console()
logger = get_logger(__name__)


def command_error_handler[**P, R](func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    Logs the failure with the command name as context, prints a short
    message and converts it to a non-zero exit code.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.replace("_", " ")

        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)

            except typer.Exit:
                raise

            except typer.Abort:
                logger.info(f"Operation {operation} aborted by user")
                raise

            except Exception as e:
                logger.exception(f"Error during {operation}")
                console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {e}")
                raise typer.Exit(code=1) from e

    return wrapper


def musicians_table(musicians: Sequence[Musician], title: str = "Musicians") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Phone")
    table.add_column("Age", justify="right")
    table.add_column("Primary Instrument", style="green")
    table.add_column("Plays")
    table.add_column("Songs", justify="right")

    for musician in musicians:
        table.add_row(
            str(musician.id),
            musician.formal_name,
            musician.phone,
            "" if musician.age is None else str(musician.age),
            musician.instrument.name if musician.instrument else "",
            ", ".join(
                sorted(play.instrument.name for play in musician.plays if play.instrument)
            ),
            str(len(musician.performances)),
        )
    return table


def songs_table(songs: Sequence[Song], title: str = "Songs") -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Album")
    table.add_column("Genre", style="green")
    table.add_column("Performers")

    for song in songs:
        table.add_row(
            str(song.id),
            song.title,
            song.album.full_summary if song.album else "",
            song.genre.name if song.genre else "",
            "; ".join(
                sorted(
                    p.musician.formal_name for p in song.performances if p.musician
                )
            ),
        )
    return table


def display_musician(musician: Musician) -> None:
    """Print the details view of one musician."""
    console.print(f"\n[bold cyan]{musician.full_name}[/bold cyan] [dim]#{musician.id}[/dim]")
    console.print(f"  SIN: {musician.sin}")
    console.print(f"  Phone: {musician.phone}")
    console.print(f"  Date of birth: {musician.dob or ''}")
    if musician.age is not None:
        console.print(f"  Age: {musician.age}")
    if musician.instrument:
        console.print(f"  Primary instrument: {musician.instrument.name}")
    plays = sorted(p.instrument.name for p in musician.plays if p.instrument)
    console.print(f"  Plays: {', '.join(plays) or '-'}")
    songs = sorted(p.song.title for p in musician.performances if p.song)
    console.print(f"  Performed on: {', '.join(songs) or '-'}")


def display_outcome_errors(outcome: CrudOutcome) -> None:
    """Print the form-level and field errors of a failed outcome."""
    for message in outcome.errors:
        console.print(f"[bold red]✗[/bold red] {message}")
