"""
SQLAlchemy ORM Models Package.

- base: Base class, TimestampMixin, BigIntPK
- menu: MenuItem, ModifierOption
- table: Table
- order: Order, OrderItem, OrderItemModifier
- payment: Payment
"""

from .base import Base, BigIntPK, TimestampMixin
from .menu import MenuItem, ModifierOption
from .table import Table
from .order import Order, OrderItem, OrderItemModifier
from .payment import Payment

__all__ = [
    "Base",
    "BigIntPK",
    "TimestampMixin",
    "MenuItem",
    "ModifierOption",
    "Table",
    "Order",
    "OrderItem",
    "OrderItemModifier",
    "Payment",
]
