"""Domain repository interfaces.

These interfaces define the contracts for data access without depending on
infrastructure implementations, following the dependency inversion principle.
"""

from .interfaces import (
    MusicianRepositoryProtocol,
    ReferenceRepositoryProtocol,
    SongRepositoryProtocol,
    UnitOfWorkFactory,
    UnitOfWorkProtocol,
)

__all__ = [
    "MusicianRepositoryProtocol",
    "ReferenceRepositoryProtocol",
    "SongRepositoryProtocol",
    "UnitOfWorkFactory",
    "UnitOfWorkProtocol",
]
