"""Mapping between musician rows and the Musician aggregate."""

from attrs import define

from music_catalog.domain.entities import Instrument, Musician, Performance, Plays, Song
from music_catalog.infrastructure.persistence.database.db_models import (
    DBInstrument,
    DBMusician,
)
from music_catalog.infrastructure.persistence.repositories.base_repo import (
    BaseModelMapper,
    fetch_one,
    safe_fetch_relationship,
)


def instrument_to_domain(db_instrument: DBInstrument | None) -> Instrument | None:
    if db_instrument is None:
        return None
    return Instrument(name=db_instrument.name, id=db_instrument.id)


@define(frozen=True, slots=True)
class MusicianMapper(BaseModelMapper[DBMusician, Musician]):
    """Bidirectional mapper between DB and domain musicians."""

    @staticmethod
    async def to_domain(db_model: DBMusician) -> Musician:
        """Convert a DB musician with its plays and performances."""
        instrument = await fetch_one(db_model, "instrument")

        plays = []
        for db_play in await safe_fetch_relationship(db_model, "plays"):
            played = await fetch_one(db_play, "instrument")
            plays.append(
                Plays(
                    instrument_id=db_play.instrument_id,
                    musician_id=db_play.musician_id,
                    instrument=instrument_to_domain(played),
                )
            )

        performances = []
        for db_performance in await safe_fetch_relationship(db_model, "performances"):
            db_song = await fetch_one(db_performance, "song")
            performances.append(
                Performance(
                    musician_id=db_performance.musician_id,
                    song_id=db_performance.song_id,
                    song=(
                        Song(
                            title=db_song.title,
                            album_id=db_song.album_id,
                            genre_id=db_song.genre_id,
                            id=db_song.id,
                            version=db_song.version,
                        )
                        if db_song is not None
                        else None
                    ),
                )
            )

        return Musician(
            first_name=db_model.first_name,
            middle_name=db_model.middle_name,
            last_name=db_model.last_name,
            phone=db_model.phone,
            dob=db_model.dob,
            sin=db_model.sin,
            instrument_id=db_model.instrument_id,
            instrument=instrument_to_domain(instrument),
            plays=sorted(plays, key=lambda p: p.instrument_id),
            performances=sorted(performances, key=lambda p: p.song_id or 0),
            id=db_model.id,
            version=db_model.version,
        )

    @staticmethod
    def to_db(domain_model: Musician) -> DBMusician:
        """Scalar columns only; join rows are written separately."""
        return DBMusician(
            first_name=domain_model.first_name,
            middle_name=domain_model.middle_name,
            last_name=domain_model.last_name,
            phone=domain_model.phone,
            dob=domain_model.dob,
            sin=domain_model.sin,
            instrument_id=domain_model.instrument_id,
            version=1,
        )

    @staticmethod
    def get_default_relationships() -> list[str]:
        return ["instrument", "plays.instrument", "performances.song"]

    @staticmethod
    def to_values(domain_model: Musician) -> dict:
        """Allow-listed scalar columns for an UPDATE statement."""
        return {
            "first_name": domain_model.first_name,
            "middle_name": domain_model.middle_name,
            "last_name": domain_model.last_name,
            "phone": domain_model.phone,
            "dob": domain_model.dob,
            "sin": domain_model.sin,
            "instrument_id": domain_model.instrument_id,
        }
