"""Music catalog CLI - main application entry point and app structure."""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated

from rich.console import Console
import typer

from music_catalog.config import (
    get_logger,
    log_startup_info,
    settings,
    setup_loguru_logger,
)
from music_catalog.infrastructure.cli.catalog_commands import musicians_app, songs_app
from music_catalog.infrastructure.cli.setup_commands import register_setup_commands

try:
    VERSION = version("music-catalog")
except PackageNotFoundError:
    VERSION = "0.0.0"

console = Console(width=80)
logger = get_logger(__name__)

app = typer.Typer(
    help=f"🎵 Music Catalog v{VERSION} - Musicians, instruments and songs",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
)

register_setup_commands(app)

app.add_typer(
    musicians_app,
    name="musicians",
    help="Browse and manage musicians",
    rich_help_panel="🎼 Catalog",
)
app.add_typer(
    songs_app,
    name="songs",
    help="Browse songs",
    rich_help_panel="🎼 Catalog",
)


@app.command(name="version", rich_help_panel="⚙️ System")
def version_command() -> None:
    """Show version information."""
    console.print(
        f"[bold bright_blue]🎵 Music Catalog[/bold bright_blue] [dim]v{VERSION}[/dim]"
    )


@app.callback()
def init_cli(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
) -> None:
    """Initialize the music catalog CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    setup_loguru_logger(verbose)
    if verbose:
        log_startup_info()

    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)


def main() -> int:
    """Application entry point."""
    try:
        return app() or 0
    except Exception:
        logger.exception("Unhandled exception")
        return 1
