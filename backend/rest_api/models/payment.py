"""
Payment Model.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import PaymentMethod

from .base import Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .order import Order


class Payment(TimestampMixin, Base):
    """A payment recorded against an order. Cash payments also record change."""

    __tablename__ = "payment"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("pos_order.id"), nullable=False, index=True
    )
    user_id: Mapped[Optional[int]] = mapped_column(BigInteger)
    method: Mapped[str] = mapped_column(
        Text, default=PaymentMethod.CASH.value, nullable=False
    )
    amount_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    reference: Mapped[Optional[str]] = mapped_column(Text)
    cash_tendered_cents: Mapped[Optional[int]] = mapped_column(Integer)
    change_cents: Mapped[Optional[int]] = mapped_column(Integer)

    order: Mapped["Order"] = relationship(back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount_cents > 0", name="chk_payment_amount_positive"),
    )

    def __repr__(self) -> str:
        return f"<Payment(id={self.id}, order_id={self.order_id}, amount_cents={self.amount_cents})>"
