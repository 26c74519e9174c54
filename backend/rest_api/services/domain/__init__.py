"""
Domain Services - application layer.

Structure:
    Router (thin controller)
        ↓
    Service (business logic, owns the transaction)  ← YOU ARE HERE
        ↓
    Repository (data access, row locks)
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import OrderLifecycle

    lifecycle = OrderLifecycle(db, publisher)
    lifecycle.transition(order_id, OrderStatus.READY, user_id=principal.user_id)
"""

from .order_totals import LineInput, OrderTotals, recalculate
from .table_service import TableRegistry
from .order_service import OrderService
from .lifecycle import OrderLifecycle
from .payment_service import PaymentService
from .menu_service import MenuService

__all__ = [
    "LineInput",
    "OrderTotals",
    "recalculate",
    "TableRegistry",
    "OrderService",
    "OrderLifecycle",
    "PaymentService",
    "MenuService",
]
