"""
Order Models: Order, OrderItem, OrderItemModifier.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import (
    ItemStatus,
    OrderStatus,
    OrderType,
    PaymentStatus,
    Priority,
)

from .base import Base, BigIntPK, TimestampMixin

if TYPE_CHECKING:
    from .payment import Payment


class Order(TimestampMixin, Base):
    """
    A customer order.

    Money is stored as integer cents. Totals are derived from items by
    rest_api.services.domain.order_totals and written back on every change.
    """

    # "order" is a reserved SQL keyword
    __tablename__ = "pos_order"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_number: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    table_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("restaurant_table.id"), nullable=True, index=True
    )
    # Staff member who placed the order (from the JWT subject)
    user_id: Mapped[Optional[int]] = mapped_column(BigInteger, index=True)
    order_type: Mapped[str] = mapped_column(
        Text, default=OrderType.DINE_IN.value, nullable=False
    )
    priority: Mapped[str] = mapped_column(
        Text, default=Priority.NORMAL.value, nullable=False
    )
    status: Mapped[str] = mapped_column(
        Text, default=OrderStatus.PENDING.value, nullable=False, index=True
    )

    customer_name: Mapped[Optional[str]] = mapped_column(Text)
    customer_phone: Mapped[Optional[str]] = mapped_column(Text)
    customer_address: Mapped[Optional[str]] = mapped_column(Text)

    subtotal_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tax_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    service_charge_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    discount_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    paid_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    remaining_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    payment_status: Mapped[str] = mapped_column(
        Text, default=PaymentStatus.UNPAID.value, nullable=False
    )
    payment_method: Mapped[Optional[str]] = mapped_column(Text)

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    notes: Mapped[Optional[str]] = mapped_column(Text)
    kitchen_notes: Mapped[Optional[str]] = mapped_column(Text)

    # Insertion order is kitchen display order
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    payments: Mapped[list["Payment"]] = relationship(
        back_populates="order",
        order_by="Payment.id",
    )

    __table_args__ = (
        CheckConstraint(
            "subtotal_cents >= 0 AND tax_cents >= 0 AND service_charge_cents >= 0 "
            "AND discount_cents >= 0 AND total_cents >= 0 AND paid_cents >= 0 "
            "AND remaining_cents >= 0",
            name="chk_order_amounts_non_negative",
        ),
        CheckConstraint(
            "completed_at IS NULL OR cancelled_at IS NULL",
            name="chk_order_single_terminal_timestamp",
        ),
        Index("ix_order_status_created", "status", "created_at"),
    )

    @property
    def status_enum(self) -> OrderStatus:
        return OrderStatus(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.status_enum.is_terminal

    def __repr__(self) -> str:
        return (
            f"<Order(id={self.id}, number='{self.order_number}', status='{self.status}', "
            f"table_id={self.table_id}, total_cents={self.total_cents})>"
        )


class OrderItem(TimestampMixin, Base):
    """
    One line of an order.

    menu_item_name and unit_price_cents are snapshots taken when the line
    was added.
    """

    __tablename__ = "order_item"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("pos_order.id", ondelete="CASCADE"), nullable=False, index=True
    )
    menu_item_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("menu_item.id", ondelete="SET NULL"), nullable=True
    )
    menu_item_name: Mapped[str] = mapped_column(Text, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, default=ItemStatus.PENDING.value, nullable=False
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)

    order: Mapped["Order"] = relationship(back_populates="items")
    modifiers: Mapped[list["OrderItemModifier"]] = relationship(
        back_populates="order_item",
        cascade="all, delete-orphan",
        order_by="OrderItemModifier.id",
    )

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_order_item_qty_positive"),
        CheckConstraint("unit_price_cents >= 0", name="chk_order_item_price_non_negative"),
    )

    @property
    def modifier_delta_cents(self) -> int:
        return sum(m.price_delta_cents for m in self.modifiers)

    @property
    def line_total_cents(self) -> int:
        return self.quantity * (self.unit_price_cents + self.modifier_delta_cents)

    def __repr__(self) -> str:
        return (
            f"<OrderItem(id={self.id}, order_id={self.order_id}, "
            f"name='{self.menu_item_name}', qty={self.quantity}, status='{self.status}')>"
        )


class OrderItemModifier(Base):
    """Snapshot of a modifier option selected on an order line."""

    __tablename__ = "order_item_modifier"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_item_id: Mapped[int] = mapped_column(
        ForeignKey("order_item.id", ondelete="CASCADE"), nullable=False, index=True
    )
    modifier_option_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("modifier_option.id", ondelete="SET NULL"), nullable=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price_delta_cents: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    order_item: Mapped["OrderItem"] = relationship(back_populates="modifiers")
