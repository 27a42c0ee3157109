"""Database Unit of Work implementation for transaction boundary management.

One unit of work wraps one session and one transaction. Repositories handed
out by the same unit share that transaction, so an aggregate's join rows and
scalar columns commit or roll back together.
"""

from typing import Self

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from music_catalog.config import get_logger
from music_catalog.domain.repositories.interfaces import (
    MusicianRepositoryProtocol,
    ReferenceRepositoryProtocol,
    SongRepositoryProtocol,
)
from music_catalog.infrastructure.persistence.repositories.musician.core import (
    MusicianRepository,
)
from music_catalog.infrastructure.persistence.repositories.reference import (
    ReferenceRepository,
)
from music_catalog.infrastructure.persistence.repositories.repo_decorator import (
    translate_store_error,
)
from music_catalog.infrastructure.persistence.repositories.song.core import (
    SongRepository,
)

logger = get_logger(__name__)


class DatabaseUnitOfWork:
    """Database implementation of the Unit of Work pattern.

    Commits on successful exit and rolls back when an exception escapes.
    A unit built with ``from_session_factory`` owns its session and closes it
    on exit; one built around an existing session leaves it open.
    """

    def __init__(self, session: AsyncSession, owns_session: bool = False) -> None:
        self._session = session
        self._owns_session = owns_session
        self._committed = False

    @classmethod
    def from_session_factory(
        cls, session_factory: async_sessionmaker[AsyncSession]
    ) -> "DatabaseUnitOfWork":
        """Open a fresh session owned by the new unit of work."""
        return cls(session_factory(), owns_session=True)

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def __aenter__(self) -> Self:
        """Enter async context manager."""
        self._committed = False
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager with automatic commit/rollback."""
        try:
            if exc_type is not None:
                await self.rollback()
            elif not self._committed:
                try:
                    await self.commit()
                except Exception:
                    await self.rollback()
                    raise
        finally:
            if self._owns_session:
                await self._session.close()

    async def commit(self) -> None:
        """Explicitly commit the current transaction.

        Raises:
            PersistenceError: Translated store failure raised by the commit
        """
        try:
            await self._session.commit()
        except SQLAlchemyError as e:
            translated = translate_store_error(e)
            logger.warning(
                "Commit failed",
                error_type=type(translated).__name__,
                error=str(getattr(e, "orig", e)),
            )
            raise translated from e
        self._committed = True

    async def rollback(self) -> None:
        """Explicitly rollback the current transaction."""
        await self._session.rollback()

    def get_musician_repository(self) -> MusicianRepositoryProtocol:
        """Get musician repository using this unit of work's transaction."""
        return MusicianRepository(self._session)

    def get_song_repository(self) -> SongRepositoryProtocol:
        """Get song repository using this unit of work's transaction."""
        return SongRepository(self._session)

    def get_reference_repository(self) -> ReferenceRepositoryProtocol:
        """Get reference data repository using this unit of work's transaction."""
        return ReferenceRepository(self._session)
