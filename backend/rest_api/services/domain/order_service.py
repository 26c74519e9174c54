"""
Order Domain Service.

Creates orders and mutates their lines. Every mutation re-reads the order
under a row lock, applies the change, recalculates totals and commits in one
transaction; events are published only after the commit.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Sequence

from sqlalchemy.orm import Session

from rest_api.models import MenuItem, ModifierOption, Order, OrderItem, OrderItemModifier
from rest_api.repositories import (
    OrderFilters,
    get_menu_repository,
    get_order_repository,
)
from rest_api.services.domain.order_totals import recalculate
from rest_api.services.domain.table_service import TableRegistry
from rest_api.services.events import (
    EventBatch,
    EventPublisher,
    NotificationEvent,
    NullPublisher,
)
from shared.config.constants import ItemStatus, Limits, OrderStatus, PaymentStatus
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.db import atomic
from shared.utils.exceptions import (
    InvalidQuantityError,
    InvalidStateError,
    InvalidTransitionError,
    ItemNotFoundError,
    ItemUnavailableError,
    MenuItemNotFoundError,
    OrderNotFoundError,
)
from shared.utils.schemas import (
    CreateOrderRequest,
    OrderItemInput,
    OrderItemUpdate,
    OrderOutput,
)

logger = get_logger(__name__)


def generate_order_number(now: datetime | None = None) -> str:
    """Human-readable, roughly time-ordered: ORD-20260119143005-3fa9c1."""
    now = now or datetime.now(timezone.utc)
    return f"ORD-{now:%Y%m%d%H%M%S}-{secrets.token_hex(3)}"


def serialize_order(order: Order) -> dict[str, Any]:
    """JSON-ready snapshot of an order for event payloads."""
    return OrderOutput.model_validate(order).model_dump(mode="json")


def apply_totals(
    order: Order,
    tax_rate: Decimal,
    service_charge_rate: Decimal,
) -> None:
    """Recompute and store totals, remaining balance and payment status."""
    totals = recalculate(order.items, order.discount_cents, tax_rate, service_charge_rate)
    order.subtotal_cents = totals.subtotal_cents
    order.tax_cents = totals.tax_cents
    order.service_charge_cents = totals.service_charge_cents
    order.discount_cents = totals.discount_cents
    order.total_cents = totals.total_cents
    order.remaining_cents = totals.remaining_after(order.paid_cents)

    if order.payment_status == PaymentStatus.REFUNDED.value:
        return
    if order.paid_cents <= 0:
        order.payment_status = PaymentStatus.UNPAID.value
    elif order.remaining_cents == 0:
        order.payment_status = PaymentStatus.PAID.value
    else:
        order.payment_status = PaymentStatus.PARTIAL.value


class OrderService:
    """
    Domain service for the order aggregate: creation and line mutations.

    Usage:
        service = OrderService(db, publisher)
        order = service.add_item(order_id, OrderItemInput(menu_item_id=3, quantity=2))
    """

    def __init__(
        self,
        db: Session,
        publisher: EventPublisher | None = None,
        tax_rate: Decimal | None = None,
        service_charge_rate: Decimal | None = None,
    ):
        self._db = db
        self._publisher = publisher or NullPublisher()
        self._tax_rate = settings.tax_rate if tax_rate is None else tax_rate
        self._service_charge_rate = (
            settings.service_charge_rate if service_charge_rate is None else service_charge_rate
        )
        self._orders = get_order_repository(db)
        self._menu = get_menu_repository(db)
        self._tables = TableRegistry(db, self._publisher)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_order(self, order_id: int) -> Order:
        order = self._orders.find_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def list_orders(
        self,
        status: OrderStatus | None = None,
        table_id: int | None = None,
        limit: int = Limits.DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> Sequence[Order]:
        return self._orders.find_all(
            OrderFilters(status=status, table_id=table_id, limit=limit, offset=offset)
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _lock_order(self, order_id: int) -> Order:
        order = self._orders.find_for_update(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def _lock_mutable_order(self, order_id: int) -> Order:
        order = self._lock_order(order_id)
        if order.is_terminal:
            raise InvalidStateError("Order", order.status, order_id=order_id)
        return order

    def _recalculate(self, order: Order) -> None:
        apply_totals(order, self._tax_rate, self._service_charge_rate)

    def _resolve_menu_item(self, menu_item_id: int) -> MenuItem:
        menu_item = self._menu.find_by_id(menu_item_id)
        if menu_item is None:
            raise MenuItemNotFoundError(menu_item_id)
        if not menu_item.is_available:
            raise ItemUnavailableError(menu_item.name, menu_item_id=menu_item_id)
        return menu_item

    def _resolve_modifiers(
        self, menu_item: MenuItem, option_ids: Sequence[int]
    ) -> list[ModifierOption]:
        """Options must exist, belong to ``menu_item`` and be available."""
        if not option_ids:
            return []
        options = self._menu.find_options(option_ids)
        resolved = []
        for option_id in dict.fromkeys(option_ids):
            option = options.get(option_id)
            if option is None or option.menu_item_id != menu_item.id:
                raise ItemUnavailableError(
                    f"modifier {option_id} for {menu_item.name}",
                    modifier_option_id=option_id,
                    menu_item_id=menu_item.id,
                )
            if not option.is_available:
                raise ItemUnavailableError(option.name, modifier_option_id=option_id)
            resolved.append(option)
        return resolved

    @staticmethod
    def _snapshot_modifiers(options: Sequence[ModifierOption]) -> list[OrderItemModifier]:
        return [
            OrderItemModifier(
                modifier_option_id=option.id,
                name=option.name,
                price_delta_cents=option.price_delta_cents,
            )
            for option in options
        ]

    def _build_item(self, data: OrderItemInput) -> OrderItem:
        if data.quantity < Limits.MIN_QUANTITY:
            raise InvalidQuantityError(data.quantity, menu_item_id=data.menu_item_id)
        menu_item = self._resolve_menu_item(data.menu_item_id)
        options = self._resolve_modifiers(menu_item, data.modifier_option_ids)
        return OrderItem(
            menu_item_id=menu_item.id,
            menu_item_name=menu_item.name,
            unit_price_cents=menu_item.price_cents,
            quantity=data.quantity,
            status=ItemStatus.PENDING.value,
            notes=data.notes,
            modifiers=self._snapshot_modifiers(options),
        )

    @staticmethod
    def _find_item(order: Order, item_id: int) -> OrderItem:
        for item in order.items:
            if item.id == item_id:
                return item
        raise ItemNotFoundError(item_id, order_id=order.id)

    # =========================================================================
    # Commands
    # =========================================================================

    def create_order(self, data: CreateOrderRequest, user_id: int | None = None) -> Order:
        """
        Create an order, optionally seating it at a table.

        Every line is validated before anything is written; a bad line or an
        occupied table leaves no trace.
        """
        events = EventBatch()
        with atomic(self._db):
            items = [self._build_item(item) for item in data.items]
            customer = data.customer
            order = Order(
                order_number=generate_order_number(),
                user_id=user_id,
                order_type=data.order_type.value,
                priority=data.priority.value,
                status=OrderStatus.PENDING.value,
                customer_name=customer.name if customer else None,
                customer_phone=customer.phone if customer else None,
                customer_address=customer.address if customer else None,
                discount_cents=data.discount_cents,
                # column defaults only land at INSERT; totals read these first
                paid_cents=0,
                payment_status=PaymentStatus.UNPAID.value,
                notes=data.notes,
                kitchen_notes=data.kitchen_notes,
                items=items,
            )
            self._recalculate(order)
            self._db.add(order)
            self._db.flush()

            if data.table_id is not None:
                self._tables.assign_in_tx(data.table_id, order.id, events)
                order.table_id = data.table_id

        self._db.refresh(order)
        payload = serialize_order(order)
        events.add(NotificationEvent.order_created(payload, user_id=user_id))
        if order.items:
            events.add(NotificationEvent.kitchen_order(payload, user_id=user_id))
            events.add(NotificationEvent.sound_alert(order.id))

        logger.info(
            "Order created",
            order_id=order.id,
            order_number=order.order_number,
            table_id=order.table_id,
            items=len(order.items),
            total_cents=order.total_cents,
        )
        events.flush(self._publisher)
        return order

    def add_item(self, order_id: int, data: OrderItemInput, user_id: int | None = None) -> Order:
        """
        Append a line to an order.

        Raises:
            InvalidQuantityError: quantity < 1.
            ItemUnavailableError: Menu item or a modifier is inactive.
        """
        with atomic(self._db):
            order = self._lock_mutable_order(order_id)
            item = self._build_item(data)
            order.items.append(item)
            self._recalculate(order)

        self._db.refresh(order)
        logger.info(
            "Order item added",
            order_id=order_id,
            menu_item_id=data.menu_item_id,
            quantity=data.quantity,
            total_cents=order.total_cents,
            user_id=user_id,
        )
        return order

    def remove_item(self, order_id: int, item_id: int, user_id: int | None = None) -> Order:
        """Delete a line from an order."""
        with atomic(self._db):
            order = self._lock_mutable_order(order_id)
            item = self._find_item(order, item_id)
            order.items.remove(item)
            self._recalculate(order)

        self._db.refresh(order)
        logger.info(
            "Order item removed",
            order_id=order_id,
            item_id=item_id,
            total_cents=order.total_cents,
            user_id=user_id,
        )
        return order

    def update_item(
        self,
        order_id: int,
        item_id: int,
        data: OrderItemUpdate,
        user_id: int | None = None,
    ) -> Order:
        """
        Partially update a line. Only fields present in ``data`` are applied.

        A status change publishes an item_status event to the kitchen.
        Cancelled lines drop out of the subtotal and cannot be revived.
        """
        fields = data.model_dump(exclude_unset=True)
        events = EventBatch()

        with atomic(self._db):
            order = self._lock_mutable_order(order_id)
            item = self._find_item(order, item_id)
            old_status = item.status

            if "quantity" in fields:
                if data.quantity is None or data.quantity < Limits.MIN_QUANTITY:
                    raise InvalidQuantityError(data.quantity or 0, order_id=order_id, item_id=item_id)
                item.quantity = data.quantity

            if "modifier_option_ids" in fields:
                menu_item = self._resolve_menu_item(item.menu_item_id)
                options = self._resolve_modifiers(menu_item, data.modifier_option_ids or [])
                item.modifiers = self._snapshot_modifiers(options)

            if "notes" in fields:
                item.notes = data.notes

            if data.status is not None and data.status.value != old_status:
                if old_status == ItemStatus.CANCELLED.value:
                    raise InvalidTransitionError("Order item", old_status, data.status.value)
                item.status = data.status.value
                events.add(
                    NotificationEvent.item_status_changed(
                        order_id, item_id, old_status, item.status, user_id=user_id
                    )
                )

            self._recalculate(order)

        self._db.refresh(order)
        logger.info(
            "Order item updated",
            order_id=order_id,
            item_id=item_id,
            fields=sorted(fields),
            total_cents=order.total_cents,
        )
        events.flush(self._publisher)
        return order
