"""Musician aggregate repository."""

from datetime import UTC, datetime

from sqlalchemy import delete, insert, update
from sqlalchemy.ext.asyncio import AsyncSession

from music_catalog.config import get_logger
from music_catalog.domain.catalog.reconciliation import MembershipChange
from music_catalog.domain.entities import Musician
from music_catalog.domain.errors import ConcurrencyConflictError, NotFoundError
from music_catalog.infrastructure.persistence.database.db_models import (
    DBMusician,
    DBPlays,
)
from music_catalog.infrastructure.persistence.repositories.base_repo import (
    BaseRepository,
)
from music_catalog.infrastructure.persistence.repositories.musician.mapper import (
    MusicianMapper,
)
from music_catalog.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

logger = get_logger(__name__)


class MusicianRepository(BaseRepository[DBMusician, Musician]):
    """Repository for the musician aggregate and its plays."""

    entity_name = "Musician"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(
            session=session,
            model_class=DBMusician,
            mapper=MusicianMapper(),
        )

    # -------------------------------------------------------------------------
    # HELPER METHODS (non-decorated)
    # -------------------------------------------------------------------------

    async def _apply_plays_change(
        self, musician_id: int, change: MembershipChange[int]
    ) -> None:
        """Delete removed plays and bulk insert added ones."""
        if change.to_remove:
            await self.session.execute(
                delete(DBPlays).where(
                    DBPlays.musician_id == musician_id,
                    DBPlays.instrument_id.in_(sorted(change.to_remove)),
                )
            )

        if change.to_add:
            now = datetime.now(UTC)
            await self.session.execute(
                insert(DBPlays).values([
                    {
                        "musician_id": musician_id,
                        "instrument_id": instrument_id,
                        "created_at": now,
                        "updated_at": now,
                    }
                    for instrument_id in sorted(change.to_add)
                ])
            )

        logger.debug(
            "Applied plays change",
            musician_id=musician_id,
            added=len(change.to_add),
            removed=len(change.to_remove),
        )

    # -------------------------------------------------------------------------
    # PUBLIC API
    # -------------------------------------------------------------------------

    @db_operation("get_musician")
    async def get_musician(self, musician_id: int) -> Musician:
        """Load a musician with instrument, plays and performances.

        Raises:
            NotFoundError: If the musician does not exist
        """
        return await self._load_domain(musician_id)

    @db_operation("list_musicians")
    async def list_musicians(self) -> list[Musician]:
        """Load every musician with associations; ordering is the caller's."""
        stmt = self.with_default_relationships(self.select()).order_by(DBMusician.id)
        return await self.mapper.map_collection(await self._execute_query(stmt))

    @db_operation("musician_exists")
    async def musician_exists(self, musician_id: int) -> bool:
        return await self.exists(musician_id)

    @db_operation("add_musician")
    async def add_musician(self, musician: Musician) -> Musician:
        """Insert the musician row and one plays row per instrument."""
        db_musician = self.mapper.to_db(musician)
        self.session.add(db_musician)
        await self.session.flush()

        await self._apply_plays_change(
            db_musician.id, MembershipChange(to_add=musician.instrument_ids)
        )
        await self.session.flush()

        logger.info("Added musician", musician_id=db_musician.id)
        return await self._load_domain(db_musician.id)

    @db_operation("update_musician")
    async def update_musician(
        self, musician: Musician, plays_change: MembershipChange[int]
    ) -> Musician:
        """Update scalars at the loaded version, then apply the plays change.

        Raises:
            ConcurrencyConflictError: If the row changed or vanished since it
                was read
        """
        if musician.id is None:
            raise NotFoundError(self.entity_name, None)

        result = await self.session.execute(
            update(DBMusician)
            .where(
                DBMusician.id == musician.id,
                DBMusician.version == musician.version,
            )
            .values(
                **self.mapper.to_values(musician),
                version=DBMusician.version + 1,
                updated_at=datetime.now(UTC),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConcurrencyConflictError(
                self.entity_name, musician.id, expected_version=musician.version
            )
        await self._apply_plays_change(musician.id, plays_change)
        await self.session.flush()

        logger.info(
            "Updated musician",
            musician_id=musician.id,
            version=(musician.version or 0) + 1,
        )
        return await self._load_domain(musician.id)

    @db_operation("delete_musician")
    async def delete_musician(self, musician_id: int) -> None:
        """Delete a musician; plays go with it through the foreign key cascade.

        Raises:
            NotFoundError: If the musician does not exist
            ReferentialIntegrityViolationError: If a performance references it
        """
        result = await self.session.execute(
            delete(DBMusician)
            .where(DBMusician.id == musician_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(self.entity_name, musician_id)
        await self.session.flush()
        logger.info("Deleted musician", musician_id=musician_id)
