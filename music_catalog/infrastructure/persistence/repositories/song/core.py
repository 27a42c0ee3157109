"""Song aggregate repository."""

from datetime import UTC, datetime

from sqlalchemy import delete, insert, update
from sqlalchemy.ext.asyncio import AsyncSession

from music_catalog.config import get_logger
from music_catalog.domain.catalog.reconciliation import MembershipChange
from music_catalog.domain.entities import Song
from music_catalog.domain.errors import ConcurrencyConflictError, NotFoundError
from music_catalog.infrastructure.persistence.database.db_models import (
    DBPerformance,
    DBSong,
)
from music_catalog.infrastructure.persistence.repositories.base_repo import (
    BaseRepository,
)
from music_catalog.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)
from music_catalog.infrastructure.persistence.repositories.song.mapper import (
    SongMapper,
)

logger = get_logger(__name__)


class SongRepository(BaseRepository[DBSong, Song]):
    """Repository for the song aggregate and its performances."""

    entity_name = "Song"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(
            session=session,
            model_class=DBSong,
            mapper=SongMapper(),
        )

    async def _apply_performances_change(
        self, song_id: int, change: MembershipChange[int]
    ) -> None:
        if change.to_remove:
            await self.session.execute(
                delete(DBPerformance).where(
                    DBPerformance.song_id == song_id,
                    DBPerformance.musician_id.in_(sorted(change.to_remove)),
                )
            )

        if change.to_add:
            now = datetime.now(UTC)
            await self.session.execute(
                insert(DBPerformance).values([
                    {
                        "song_id": song_id,
                        "musician_id": musician_id,
                        "created_at": now,
                        "updated_at": now,
                    }
                    for musician_id in sorted(change.to_add)
                ])
            )

        logger.debug(
            "Applied performances change",
            song_id=song_id,
            added=len(change.to_add),
            removed=len(change.to_remove),
        )

    @db_operation("get_song")
    async def get_song(self, song_id: int) -> Song:
        return await self._load_domain(song_id)

    @db_operation("list_songs")
    async def list_songs(self) -> list[Song]:
        """Songs ordered by title, with album, genre and performers loaded."""
        stmt = self.with_default_relationships(self.select()).order_by(
            DBSong.title, DBSong.id
        )
        return await self.mapper.map_collection(await self._execute_query(stmt))

    @db_operation("song_exists")
    async def song_exists(self, song_id: int) -> bool:
        return await self.exists(song_id)

    @db_operation("add_song")
    async def add_song(self, song: Song) -> Song:
        db_song = self.mapper.to_db(song)
        self.session.add(db_song)
        await self.session.flush()

        await self._apply_performances_change(
            db_song.id, MembershipChange(to_add=song.musician_ids)
        )
        await self.session.flush()

        logger.info("Added song", song_id=db_song.id)
        return await self._load_domain(db_song.id)

    @db_operation("update_song")
    async def update_song(
        self, song: Song, performances_change: MembershipChange[int]
    ) -> Song:
        """Update scalars at the loaded version, then apply the performances change.

        Raises:
            ConcurrencyConflictError: If the row changed or vanished since it
                was read
        """
        if song.id is None:
            raise NotFoundError(self.entity_name, None)

        result = await self.session.execute(
            update(DBSong)
            .where(DBSong.id == song.id, DBSong.version == song.version)
            .values(
                **self.mapper.to_values(song),
                version=DBSong.version + 1,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConcurrencyConflictError(
                self.entity_name, song.id, expected_version=song.version
            )
        await self._apply_performances_change(song.id, performances_change)
        await self.session.flush()

        logger.info("Updated song", song_id=song.id)
        return await self._load_domain(song.id)

    @db_operation("delete_song")
    async def delete_song(self, song_id: int) -> None:
        """Delete a song; its performances go with it."""
        result = await self.session.execute(
            delete(DBSong)
            .where(DBSong.id == song_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(self.entity_name, song_id)
        await self.session.flush()
        logger.info("Deleted song", song_id=song_id)
