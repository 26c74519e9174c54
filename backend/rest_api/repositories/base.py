"""
Base Repository implementation.
Provides common data access patterns, including row-locking reads.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from shared.config.constants import Limits


ModelT = TypeVar("ModelT")


@dataclass
class RepositoryFilters:
    """Base filters for repository queries."""

    limit: int = Limits.DEFAULT_PAGE_SIZE
    offset: int = 0

    def __post_init__(self):
        self.limit = min(max(1, self.limit), Limits.MAX_PAGE_SIZE)
        self.offset = max(0, self.offset)


class BaseRepository(ABC, Generic[ModelT]):
    """
    Abstract base repository with common operations.

    Subclasses must implement:
    - model: the SQLAlchemy model class
    - _base_query(): base select with eager loading
    - _apply_filters(): entity-specific filters
    """

    def __init__(self, db: Session):
        self._db = db

    @property
    @abstractmethod
    def model(self) -> type[ModelT]:
        ...

    @abstractmethod
    def _base_query(self) -> Select:
        ...

    def _apply_filters(self, query: Select, filters: RepositoryFilters) -> Select:
        return query

    def find_all(self, filters: RepositoryFilters | None = None) -> Sequence[ModelT]:
        filters = filters or RepositoryFilters()
        query = self._apply_filters(self._base_query(), filters)
        query = query.offset(filters.offset).limit(filters.limit)
        return self._db.execute(query).scalars().unique().all()

    def find_by_id(self, entity_id: int) -> ModelT | None:
        return self._db.scalar(self._base_query().where(self.model.id == entity_id))

    def find_for_update(self, entity_id: int) -> ModelT | None:
        """
        Load one row with ``SELECT ... FOR UPDATE``.

        The lock is held until the surrounding transaction ends. The row is
        re-read even if it is already in the identity map.
        """
        query = (
            select(self.model)
            .where(self.model.id == entity_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self._db.scalar(query)

    def find_many_for_update(self, entity_ids: Sequence[int]) -> dict[int, ModelT]:
        """
        Lock several rows, always in ascending id order so two callers
        locking the same pair cannot deadlock.
        """
        if not entity_ids:
            return {}
        query = (
            select(self.model)
            .where(self.model.id.in_(sorted(set(entity_ids))))
            .order_by(self.model.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {row.id: row for row in self._db.execute(query).scalars().all()}
