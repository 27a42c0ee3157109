"""Reference data repository: instruments, genres and albums.

These lookups feed form pickers and existence checks; the catalog does not
edit them beyond seeding.
"""

from attrs import define
from sqlalchemy.ext.asyncio import AsyncSession

from music_catalog.config import get_logger
from music_catalog.domain.entities import Album, Genre, Instrument
from music_catalog.infrastructure.persistence.database.db_models import (
    DBAlbum,
    DBGenre,
    DBInstrument,
)
from music_catalog.infrastructure.persistence.repositories.base_repo import (
    BaseModelMapper,
    BaseRepository,
)
from music_catalog.infrastructure.persistence.repositories.musician.mapper import (
    instrument_to_domain,
)
from music_catalog.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)
from music_catalog.infrastructure.persistence.repositories.song.mapper import (
    album_to_domain,
    genre_to_domain,
)

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class InstrumentMapper(BaseModelMapper[DBInstrument, Instrument]):
    @staticmethod
    async def to_domain(db_model: DBInstrument) -> Instrument:
        return instrument_to_domain(db_model)

    @staticmethod
    def to_db(domain_model: Instrument) -> DBInstrument:
        return DBInstrument(name=domain_model.name)


@define(frozen=True, slots=True)
class GenreMapper(BaseModelMapper[DBGenre, Genre]):
    @staticmethod
    async def to_domain(db_model: DBGenre) -> Genre:
        return genre_to_domain(db_model)

    @staticmethod
    def to_db(domain_model: Genre) -> DBGenre:
        return DBGenre(name=domain_model.name)


@define(frozen=True, slots=True)
class AlbumMapper(BaseModelMapper[DBAlbum, Album]):
    @staticmethod
    async def to_domain(db_model: DBAlbum) -> Album:
        return await album_to_domain(db_model)

    @staticmethod
    def to_db(domain_model: Album) -> DBAlbum:
        return DBAlbum(
            name=domain_model.name,
            year_produced=domain_model.year_produced,
            genre_id=domain_model.genre_id,
        )

    @staticmethod
    def get_default_relationships() -> list[str]:
        return ["genre"]


class ReferenceRepository:
    """Lookup repository composed of one base repository per table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.instruments = BaseRepository(session, DBInstrument, InstrumentMapper())
        self.genres = BaseRepository(session, DBGenre, GenreMapper())
        self.albums = BaseRepository(session, DBAlbum, AlbumMapper())

    @db_operation("list_instruments")
    async def list_instruments(self) -> list[Instrument]:
        return await self.instruments.list_all(DBInstrument.name, DBInstrument.id)

    @db_operation("list_genres")
    async def list_genres(self) -> list[Genre]:
        return await self.genres.list_all(DBGenre.name, DBGenre.id)

    @db_operation("list_albums")
    async def list_albums(self) -> list[Album]:
        return await self.albums.list_all(
            DBAlbum.name, DBAlbum.year_produced, DBAlbum.id
        )

    async def _add(self, repository: BaseRepository, entity):
        db_entity = repository.mapper.to_db(entity)
        self.session.add(db_entity)
        await self.session.flush()
        return await repository.get_by_id(db_entity.id)

    @db_operation("add_instrument")
    async def add_instrument(self, name: str) -> Instrument:
        instrument = await self._add(self.instruments, Instrument(name=name))
        logger.debug("Added instrument", instrument_id=instrument.id)
        return instrument

    @db_operation("add_genre")
    async def add_genre(self, name: str) -> Genre:
        genre = await self._add(self.genres, Genre(name=name))
        logger.debug("Added genre", genre_id=genre.id)
        return genre

    @db_operation("add_album")
    async def add_album(
        self, name: str, year_produced: int | None, genre_id: int | None
    ) -> Album:
        album = await self._add(
            self.albums,
            Album(name=name, year_produced=year_produced, genre_id=genre_id),
        )
        logger.debug("Added album", album_id=album.id)
        return album
