"""
Menu Domain Service.

Menu items are the source of snapshot prices; toggling availability is what
makes AddItem fail with item_unavailable.
"""

from __future__ import annotations

from typing import Sequence

from sqlalchemy.orm import Session

from rest_api.models import MenuItem, ModifierOption
from rest_api.repositories import MenuFilters, get_menu_repository
from shared.config.logging import get_logger
from shared.infrastructure.db import atomic, safe_commit
from shared.utils.exceptions import MenuItemNotFoundError
from shared.utils.schemas import MenuItemCreate

logger = get_logger(__name__)


class MenuService:

    def __init__(self, db: Session):
        self._db = db
        self._menu = get_menu_repository(db)

    def list_items(
        self,
        category: str | None = None,
        available_only: bool = False,
    ) -> Sequence[MenuItem]:
        return self._menu.find_all(
            MenuFilters(category=category, available_only=available_only)
        )

    def get_item(self, menu_item_id: int) -> MenuItem:
        item = self._menu.find_by_id(menu_item_id)
        if item is None:
            raise MenuItemNotFoundError(menu_item_id)
        return item

    def create_item(self, data: MenuItemCreate) -> MenuItem:
        item = MenuItem(
            name=data.name,
            category=data.category,
            description=data.description,
            price_cents=data.price_cents,
            is_available=data.is_available,
            modifier_options=[
                ModifierOption(name=opt.name, price_delta_cents=opt.price_delta_cents)
                for opt in data.modifier_options
            ],
        )
        with atomic(self._db):
            self._db.add(item)
        self._db.refresh(item)
        logger.info("Menu item created", menu_item_id=item.id, price_cents=item.price_cents)
        return item

    def set_availability(self, menu_item_id: int, is_available: bool) -> MenuItem:
        item = self.get_item(menu_item_id)
        item.is_available = is_available
        safe_commit(self._db)
        self._db.refresh(item)
        logger.info("Menu item availability changed", menu_item_id=menu_item_id, is_available=is_available)
        return item
