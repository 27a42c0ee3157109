"""Repository layer for database operations with SQLAlchemy 2.0."""

from typing import Any, Protocol

from attrs import define
from sqlalchemy import Select, exists, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Load, selectinload

from music_catalog.config import get_logger
from music_catalog.domain.errors import NotFoundError
from music_catalog.infrastructure.persistence.database.db_models import CatalogDBBase
from music_catalog.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

logger = get_logger(__name__)


async def safe_fetch_relationship(db_model: Any, rel_name: str) -> list[Any]:
    """Load a relationship through ``AsyncAttrs.awaitable_attrs``.

    Returns a list for both collection and scalar relationships: scalar
    results are wrapped, missing ones come back empty.
    """
    result = await getattr(db_model.awaitable_attrs, rel_name)
    if result is None:
        return []
    if isinstance(result, list):
        return result
    return [result]


async def fetch_one(db_model: Any, rel_name: str) -> Any | None:
    """Scalar counterpart of :func:`safe_fetch_relationship`."""
    related = await safe_fetch_relationship(db_model, rel_name)
    return related[0] if related else None


def eager_load_path(model_class: type[CatalogDBBase], path: str) -> Load:
    """Chain ``selectinload`` along a dotted relationship path.

    ``"performances.song"`` loads performances, then each performance's song.
    """
    current_class: Any = model_class
    loader = None
    for name in path.split("."):
        attribute = getattr(current_class, name)
        loader = selectinload(attribute) if loader is None else loader.selectinload(attribute)
        current_class = attribute.property.mapper.class_
    return loader


class ModelMapper[TDBModel: CatalogDBBase, TDomainModel](Protocol):
    """Protocol for bidirectional mapping between models."""

    @staticmethod
    async def to_domain(db_model: TDBModel) -> TDomainModel:
        """Convert database model to domain model."""
        ...

    @staticmethod
    def to_db(domain_model: TDomainModel) -> TDBModel:
        """Convert domain model to database model."""
        ...

    @staticmethod
    def get_default_relationships() -> list[str]:
        """Relationship paths to eager load for this model."""
        ...

    @classmethod
    async def map_collection(cls, db_models: list[TDBModel]) -> list[TDomainModel]:
        """Map a collection of DB models to domain models."""
        ...


@define(frozen=True, slots=True)
class BaseModelMapper[TDBModel: CatalogDBBase, TDomainModel]:
    """Base implementation of ModelMapper with common functionality.

    Usage:
        @define(frozen=True, slots=True)
        class InstrumentMapper(BaseModelMapper[DBInstrument, Instrument]):
            @staticmethod
            async def to_domain(db_model: DBInstrument) -> Instrument:
                return Instrument(name=db_model.name, id=db_model.id)
    """

    @staticmethod
    async def to_domain(db_model: TDBModel) -> TDomainModel:
        raise NotImplementedError("Subclasses must implement to_domain")

    @staticmethod
    def to_db(domain_model: TDomainModel) -> TDBModel:
        raise NotImplementedError("Subclasses must implement to_db")

    @staticmethod
    def get_default_relationships() -> list[str]:
        return []

    @classmethod
    async def map_collection(cls, db_models: list[TDBModel]) -> list[TDomainModel]:
        """Map DB models in order using the subclass ``to_domain``."""
        return [await cls.to_domain(db_model) for db_model in db_models]


class BaseRepository[TDBModel: CatalogDBBase, TDomainModel]:
    """Base repository for database operations with SQLAlchemy 2.0."""

    entity_name: str = "Entity"

    def __init__(
        self,
        session: AsyncSession,
        model_class: type[TDBModel],
        mapper: ModelMapper[TDBModel, TDomainModel],
    ) -> None:
        """Initialize repository with session and model mappings."""
        self.session = session
        self.model_class = model_class
        self.mapper = mapper

    # -------------------------------------------------------------------------
    # SELECT STATEMENT BUILDERS
    # -------------------------------------------------------------------------

    def select(self) -> Select[tuple[TDBModel]]:
        return select(self.model_class)

    def select_by_id(self, id_: int) -> Select[tuple[TDBModel]]:
        """Create select statement for a record by ID."""
        return select(self.model_class).where(self.model_class.id == id_)

    def with_relationship(
        self,
        stmt: Select[tuple[TDBModel]],
        *relationships: str,
    ) -> Select[tuple[TDBModel]]:
        """Add eager loading for dotted relationship paths."""
        return stmt.options(
            *(eager_load_path(self.model_class, path) for path in relationships)
        )

    def with_default_relationships(
        self, stmt: Select[tuple[TDBModel]]
    ) -> Select[tuple[TDBModel]]:
        """Add default relationships and refresh rows already in the session."""
        rels = self.mapper.get_default_relationships()
        stmt = stmt.execution_options(populate_existing=True)
        if not rels:
            return stmt
        return self.with_relationship(stmt, *rels)

    # -------------------------------------------------------------------------
    # DIRECT DATABASE OPERATIONS (non-decorated helpers)
    # -------------------------------------------------------------------------

    async def _execute_query(
        self,
        stmt: Select[tuple[TDBModel]],
    ) -> list[TDBModel]:
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _execute_query_one(
        self,
        stmt: Select[tuple[TDBModel]],
    ) -> TDBModel | None:
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def _load_domain(self, id_: int) -> TDomainModel:
        """Load one hydrated aggregate or raise NotFoundError."""
        stmt = self.with_default_relationships(self.select_by_id(id_))
        db_entity = await self._execute_query_one(stmt)
        if db_entity is None:
            raise NotFoundError(self.entity_name, id_)
        return await self.mapper.to_domain(db_entity)

    # -------------------------------------------------------------------------
    # DECORATED DATABASE OPERATIONS
    # -------------------------------------------------------------------------

    @db_operation("get_by_id")
    async def get_by_id(self, id_: int) -> TDomainModel:
        """Get entity by ID with default relationships loaded.

        Raises:
            NotFoundError: If no row has this ID
        """
        return await self._load_domain(id_)

    @db_operation("list_all")
    async def list_all(self, *order_by: Any) -> list[TDomainModel]:
        """Load every entity with default relationships."""
        stmt = self.with_default_relationships(self.select())
        if order_by:
            stmt = stmt.order_by(*order_by)
        db_entities = await self._execute_query(stmt)
        return await self.mapper.map_collection(db_entities)

    @db_operation("exists")
    async def exists(self, id_: int) -> bool:
        stmt = select(exists().where(self.model_class.id == id_))
        return bool(await self.session.scalar(stmt))
