"""
Menu Repository - menu items with their modifier options.
"""

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import Select, select
from sqlalchemy.orm import Session, selectinload

from rest_api.models import MenuItem, ModifierOption
from .base import BaseRepository, RepositoryFilters


@dataclass
class MenuFilters(RepositoryFilters):
    category: str | None = None
    available_only: bool = False


class MenuRepository(BaseRepository[MenuItem]):

    @property
    def model(self) -> type[MenuItem]:
        return MenuItem

    def _base_query(self) -> Select:
        return (
            select(MenuItem)
            .options(selectinload(MenuItem.modifier_options))
            .order_by(MenuItem.category, MenuItem.name)
        )

    def _apply_filters(self, query: Select, filters: MenuFilters) -> Select:
        if filters.category:
            query = query.where(MenuItem.category == filters.category)
        if filters.available_only:
            query = query.where(MenuItem.is_available.is_(True))
        return query

    def find_options(self, option_ids: Sequence[int]) -> dict[int, ModifierOption]:
        if not option_ids:
            return {}
        rows = self._db.execute(
            select(ModifierOption).where(ModifierOption.id.in_(set(option_ids)))
        ).scalars().all()
        return {row.id: row for row in rows}


def get_menu_repository(db: Session) -> MenuRepository:
    return MenuRepository(db)
