"""Mapping between song rows and the Song aggregate."""

from attrs import define

from music_catalog.domain.entities import Album, Genre, Musician, Performance, Song
from music_catalog.infrastructure.persistence.database.db_models import (
    DBAlbum,
    DBGenre,
    DBMusician,
    DBSong,
)
from music_catalog.infrastructure.persistence.repositories.base_repo import (
    BaseModelMapper,
    fetch_one,
    safe_fetch_relationship,
)


def genre_to_domain(db_genre: DBGenre | None) -> Genre | None:
    if db_genre is None:
        return None
    return Genre(name=db_genre.name, id=db_genre.id)


async def album_to_domain(db_album: DBAlbum | None) -> Album | None:
    if db_album is None:
        return None
    return Album(
        name=db_album.name,
        year_produced=db_album.year_produced,
        genre_id=db_album.genre_id,
        genre=genre_to_domain(await fetch_one(db_album, "genre")),
        id=db_album.id,
    )


def performer_to_domain(db_musician: DBMusician) -> Musician:
    """Shallow musician for the performer list of a song."""
    return Musician(
        first_name=db_musician.first_name,
        middle_name=db_musician.middle_name,
        last_name=db_musician.last_name,
        phone=db_musician.phone,
        dob=db_musician.dob,
        sin=db_musician.sin,
        instrument_id=db_musician.instrument_id,
        id=db_musician.id,
        version=db_musician.version,
    )


@define(frozen=True, slots=True)
class SongMapper(BaseModelMapper[DBSong, Song]):
    """Bidirectional mapper between DB and domain songs."""

    @staticmethod
    async def to_domain(db_model: DBSong) -> Song:
        performances = []
        for db_performance in await safe_fetch_relationship(db_model, "performances"):
            db_musician = await fetch_one(db_performance, "musician")
            performances.append(
                Performance(
                    musician_id=db_performance.musician_id,
                    song_id=db_performance.song_id,
                    musician=(
                        performer_to_domain(db_musician) if db_musician is not None else None
                    ),
                )
            )

        return Song(
            title=db_model.title,
            album_id=db_model.album_id,
            genre_id=db_model.genre_id,
            album=await album_to_domain(await fetch_one(db_model, "album")),
            genre=genre_to_domain(await fetch_one(db_model, "genre")),
            performances=sorted(performances, key=lambda p: p.musician_id),
            id=db_model.id,
            version=db_model.version,
        )

    @staticmethod
    def to_db(domain_model: Song) -> DBSong:
        return DBSong(
            title=domain_model.title,
            album_id=domain_model.album_id,
            genre_id=domain_model.genre_id,
            version=1,
        )

    @staticmethod
    def get_default_relationships() -> list[str]:
        return ["album.genre", "genre", "performances.musician"]

    @staticmethod
    def to_values(domain_model: Song) -> dict:
        """Allow-listed scalar columns for an UPDATE statement."""
        return {
            "title": domain_model.title,
            "album_id": domain_model.album_id,
            "genre_id": domain_model.genre_id,
        }
