"""Setup commands: schema creation and reference data seeding."""

from rich.console import Console
import typer

from music_catalog.config import get_logger
from music_catalog.domain.repositories.interfaces import UnitOfWorkProtocol
from music_catalog.infrastructure.cli.async_helpers import run_async
from music_catalog.infrastructure.cli.ui import command_error_handler
from music_catalog.infrastructure.persistence.database.db_models import init_db
from music_catalog.infrastructure.persistence.repositories.factories import (
    get_unit_of_work_factory,
)

# Initialize console and logger
console = Console()
logger = get_logger(__name__)

SEED_INSTRUMENTS = ("Bass", "Drums", "Guitar", "Piano", "Saxophone", "Violin")
SEED_GENRES = ("Blues", "Classical", "Jazz", "Pop", "Rock")
# (album name, year produced, genre name)
SEED_ALBUMS = (
    ("Abbey Road", 1969, "Rock"),
    ("Help!", 1965, "Pop"),
    ("Kind of Blue", 1959, "Jazz"),
)


def register_setup_commands(app: typer.Typer) -> None:
    """Register setup commands with the Typer app."""
    app.command(
        name="init-db",
        help="Initialize the database schema",
        rich_help_panel="⚙️ System",
    )(initialize_database)
    app.command(
        name="seed",
        help="Add the standard instruments, genres and albums",
        rich_help_panel="⚙️ System",
    )(seed_database)


async def seed_reference_data(uow: UnitOfWorkProtocol) -> dict[str, int]:
    """Add missing reference rows; existing names are left untouched.

    Returns:
        Count of rows added per kind
    """
    added = {"instruments": 0, "genres": 0, "albums": 0}

    async with uow:
        reference_repo = uow.get_reference_repository()

        known_instruments = {i.name for i in await reference_repo.list_instruments()}
        for name in SEED_INSTRUMENTS:
            if name not in known_instruments:
                await reference_repo.add_instrument(name)
                added["instruments"] += 1

        genres = {g.name: g for g in await reference_repo.list_genres()}
        for name in SEED_GENRES:
            if name not in genres:
                genres[name] = await reference_repo.add_genre(name)
                added["genres"] += 1

        known_albums = {
            (a.name, a.year_produced) for a in await reference_repo.list_albums()
        }
        for name, year, genre_name in SEED_ALBUMS:
            if (name, year) not in known_albums:
                await reference_repo.add_album(name, year, genres[genre_name].id)
                added["albums"] += 1

    logger.info("Reference data seeded", **added)
    return added


@command_error_handler
def initialize_database() -> None:
    """Initialize the database schema based on current models.

    This command creates database tables that don't yet exist.
    Existing tables are left untouched.
    """
    with console.status("[bold blue]Initializing database schema...") as status:
        run_async(init_db)

        status.update("[bold green]Database initialization complete!")
        console.print(
            "\n[bold green]✓ Database schema initialized successfully[/bold green]",
        )
        console.print("\nNext steps:")
        console.print("  • Run [cyan]music-catalog seed[/cyan] to add reference data")
        console.print("  • Run [cyan]music-catalog musicians list[/cyan] to browse")

        logger.info("Database initialization completed successfully")


@command_error_handler
def seed_database() -> None:
    """Seed instruments, genres and albums, creating the schema if needed."""

    async def seed() -> dict[str, int]:
        await init_db()
        return await seed_reference_data(get_unit_of_work_factory()())

    with console.status("[bold blue]Seeding reference data..."):
        added = run_async(seed)

    console.print(
        f"\n[bold green]✓ Seed complete[/bold green] "
        f"[dim]({added['instruments']} instruments, {added['genres']} genres, "
        f"{added['albums']} albums added)[/dim]"
    )
