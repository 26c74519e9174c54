"""
Payment Domain Service.

Records payments against an order and keeps paid/remaining/payment_status
consistent with the order total.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from rest_api.models import Order, Payment
from rest_api.repositories import get_order_repository
from rest_api.services.events import (
    EventBatch,
    EventPublisher,
    NotificationEvent,
    NullPublisher,
)
from shared.config.constants import OrderStatus, PaymentMethod, PaymentStatus
from shared.config.logging import get_logger
from shared.config.settings import settings
from shared.infrastructure.db import atomic
from shared.utils.exceptions import (
    InvalidStateError,
    OrderNotFoundError,
    PaymentAmountError,
)
from shared.utils.schemas import PaymentCreate, PaymentOutput

logger = get_logger(__name__)


def _serialize_payment(payment: Payment) -> dict[str, Any]:
    return PaymentOutput.model_validate(payment).model_dump(mode="json")


class PaymentService:
    """
    Usage:
        service = PaymentService(db, publisher)
        payment, order = service.record_payment(order_id, PaymentCreate(amount_cents=1500))
    """

    def __init__(
        self,
        db: Session,
        publisher: EventPublisher | None = None,
        large_payment_threshold_cents: int | None = None,
    ):
        self._db = db
        self._publisher = publisher or NullPublisher()
        self._orders = get_order_repository(db)
        self._large_threshold = (
            settings.large_payment_threshold_cents
            if large_payment_threshold_cents is None
            else large_payment_threshold_cents
        )

    def record_payment(
        self,
        order_id: int,
        data: PaymentCreate,
        user_id: int | None = None,
    ) -> tuple[Payment, Order]:
        """
        Record a payment and update the order balance.

        Raises:
            OrderNotFoundError: Unknown order.
            InvalidStateError: Order is cancelled.
            PaymentAmountError: Non-positive amount, more than the balance,
                or cash tendered below the amount.
        """
        events = EventBatch()

        with atomic(self._db):
            order = self._orders.find_for_update(order_id)
            if order is None:
                raise OrderNotFoundError(order_id)
            if order.status == OrderStatus.CANCELLED.value:
                raise InvalidStateError("Order", order.status, order_id=order_id)

            amount = data.amount_cents
            if amount <= 0:
                raise PaymentAmountError(amount, "must be positive", order_id=order_id)
            if amount > order.remaining_cents:
                raise PaymentAmountError(
                    amount,
                    f"exceeds remaining balance of {order.remaining_cents}",
                    order_id=order_id,
                )

            change_cents = None
            if data.method == PaymentMethod.CASH and data.cash_tendered_cents is not None:
                if data.cash_tendered_cents < amount:
                    raise PaymentAmountError(
                        amount, "cash tendered is less than the amount", order_id=order_id
                    )
                change_cents = data.cash_tendered_cents - amount

            payment = Payment(
                order_id=order.id,
                user_id=user_id,
                method=data.method.value,
                amount_cents=amount,
                reference=data.reference,
                cash_tendered_cents=data.cash_tendered_cents,
                change_cents=change_cents,
            )
            self._db.add(payment)

            order.paid_cents += amount
            order.remaining_cents = max(0, order.total_cents - order.paid_cents)
            order.payment_status = (
                PaymentStatus.PAID.value
                if order.remaining_cents == 0
                else PaymentStatus.PARTIAL.value
            )
            order.payment_method = data.method.value

        self._db.refresh(payment)
        self._db.refresh(order)
        events.add(
            NotificationEvent.payment_created(
                _serialize_payment(payment),
                large_amount=amount > self._large_threshold,
                user_id=user_id,
            )
        )

        logger.info(
            "Payment recorded",
            order_id=order_id,
            payment_id=payment.id,
            amount_cents=amount,
            remaining_cents=order.remaining_cents,
            payment_status=order.payment_status,
        )
        events.flush(self._publisher)
        return payment, order
