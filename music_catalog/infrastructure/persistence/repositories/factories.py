"""Unit-of-work factory functions.

These factories keep session management in the infrastructure layer.
Application use cases depend only on the domain protocols and receive a
``UnitOfWorkFactory`` that opens one session per call.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from music_catalog.domain.repositories.interfaces import (
    UnitOfWorkFactory,
    UnitOfWorkProtocol,
)
from music_catalog.infrastructure.persistence.database.db_connection import (
    get_session_factory,
)
from music_catalog.infrastructure.persistence.unit_of_work import DatabaseUnitOfWork


def get_unit_of_work_factory(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> UnitOfWorkFactory:
    """Get a factory opening a fresh session-owning unit of work per call.

    Args:
        session_factory: Optional factory (uses the global one if None)
    """
    factory = session_factory or get_session_factory()

    def open_unit_of_work() -> UnitOfWorkProtocol:
        return DatabaseUnitOfWork.from_session_factory(factory)

    return open_unit_of_work
