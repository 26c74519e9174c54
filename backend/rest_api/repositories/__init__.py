"""
Repository Pattern implementation.
Centralizes data access with guaranteed eager loading and row locks.

Usage:
    from rest_api.repositories import get_order_repository

    repo = get_order_repository(db)
    order = repo.find_for_update(order_id)
"""

from .base import BaseRepository, RepositoryFilters
from .order import OrderRepository, OrderFilters, get_order_repository
from .table import TableRepository, get_table_repository
from .menu import MenuRepository, MenuFilters, get_menu_repository

__all__ = [
    "BaseRepository",
    "RepositoryFilters",
    "OrderRepository",
    "OrderFilters",
    "get_order_repository",
    "TableRepository",
    "get_table_repository",
    "MenuRepository",
    "MenuFilters",
    "get_menu_repository",
]
