"""
Order Repository - Data access for orders and their lines.
Eager loading prevents N+1 queries when serializing orders.
"""

from dataclasses import dataclass

from sqlalchemy import Select, select
from sqlalchemy.orm import Session, selectinload

from rest_api.models import Order, OrderItem
from shared.config.constants import OrderStatus
from .base import BaseRepository, RepositoryFilters


@dataclass
class OrderFilters(RepositoryFilters):
    """Filters specific to orders."""

    status: OrderStatus | None = None
    table_id: int | None = None


class OrderRepository(BaseRepository[Order]):
    """
    Repository for Order entities.

    Guarantees eager loading of items -> modifiers.
    """

    @property
    def model(self) -> type[Order]:
        return Order

    def _base_query(self) -> Select:
        return (
            select(Order)
            .options(selectinload(Order.items).selectinload(OrderItem.modifiers))
            .order_by(Order.id.desc())
        )

    def _apply_filters(self, query: Select, filters: OrderFilters) -> Select:
        if filters.status is not None:
            query = query.where(Order.status == filters.status.value)
        if filters.table_id is not None:
            query = query.where(Order.table_id == filters.table_id)
        return query


def get_order_repository(db: Session) -> OrderRepository:
    return OrderRepository(db)
