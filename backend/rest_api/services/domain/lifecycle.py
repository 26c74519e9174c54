"""
Order Lifecycle Engine.

Validates status transitions against ORDER_TRANSITIONS and applies their
side effects (timestamps, payment settlement, table release) in the same
transaction as the status change. A rejected transition changes nothing.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.orm import Session

from rest_api.models import Order
from rest_api.repositories import get_order_repository
from rest_api.services.domain.order_service import apply_totals, serialize_order
from rest_api.services.domain.table_service import TableRegistry
from rest_api.services.events import (
    EventBatch,
    EventPublisher,
    NotificationEvent,
    NullPublisher,
)
from shared.config.constants import (
    OrderStatus,
    PaymentStatus,
    validate_order_transition,
)
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.db import atomic
from shared.utils.exceptions import InvalidTransitionError, OrderNotFoundError

logger = get_logger(__name__)


class OrderLifecycle:
    """
    Applies order status transitions.

    Usage:
        lifecycle = OrderLifecycle(db, publisher)
        order = lifecycle.transition(order_id, OrderStatus.READY, user_id=4)
    """

    def __init__(
        self,
        db: Session,
        publisher: EventPublisher | None = None,
        table_registry: TableRegistry | None = None,
        tax_rate: Decimal | None = None,
        service_charge_rate: Decimal | None = None,
    ):
        self._db = db
        self._publisher = publisher or NullPublisher()
        self._orders = get_order_repository(db)
        self._tables = table_registry or TableRegistry(db, self._publisher)
        self._tax_rate = settings.tax_rate if tax_rate is None else tax_rate
        self._service_charge_rate = (
            settings.service_charge_rate if service_charge_rate is None else service_charge_rate
        )

    def transition(
        self,
        order_id: int,
        new_status: OrderStatus,
        user_id: int | None = None,
    ) -> Order:
        """
        Move an order to ``new_status``.

        Raises:
            OrderNotFoundError: Unknown order.
            InvalidTransitionError: Same, backward, or out-of-terminal move.
        """
        events = EventBatch()

        with atomic(self._db):
            order = self._orders.find_for_update(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)

            old_status = order.status_enum
            if not validate_order_transition(old_status, new_status):
                raise InvalidTransitionError(
                    "Order",
                    old_status.value,
                    new_status.value,
                    order_id=order_id,
                    user_id=user_id,
                )

            self._apply(order, new_status, events)

        self._db.refresh(order)
        events.add(
            NotificationEvent.order_status_changed(
                serialize_order(order), old_status, new_status, user_id=user_id
            )
        )

        logger.info(
            "Order status changed",
            order_id=order_id,
            old_status=old_status.value,
            new_status=new_status.value,
            table_id=order.table_id,
            user_id=user_id,
        )
        events.flush(self._publisher)
        return order

    def _apply(self, order: Order, new_status: OrderStatus, events: EventBatch) -> None:
        now = datetime.now(timezone.utc)
        order.status = new_status.value

        if new_status == OrderStatus.CANCELLED:
            order.cancelled_at = now
            self._release_table(order, events)
            return

        # Any forward move past pending means work has started
        if order.started_at is None:
            order.started_at = now

        if new_status == OrderStatus.COMPLETED:
            apply_totals(order, self._tax_rate, self._service_charge_rate)
            order.completed_at = now
            order.paid_cents = order.total_cents
            order.remaining_cents = 0
            order.payment_status = PaymentStatus.PAID.value
            self._release_table(order, events)

    def _release_table(self, order: Order, events: EventBatch) -> None:
        if order.table_id is not None:
            self._tables.release_in_tx(order.table_id, events, order_id=order.id)
