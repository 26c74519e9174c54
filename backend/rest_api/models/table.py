"""
Table Model: physical dining table and its occupancy.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import BigInteger, CheckConstraint, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from shared.config.constants import TableStatus

from .base import Base, BigIntPK, TimestampMixin


class Table(TimestampMixin, Base):
    """
    Physical table in the restaurant.

    current_order_id is set only while status is "occupied" and the order is
    non-terminal. The unique constraint guarantees no order sits on two
    tables at once.
    """

    # "table" is a reserved SQL keyword
    __tablename__ = "restaurant_table"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    name: Mapped[Optional[str]] = mapped_column(Text)
    section: Mapped[Optional[str]] = mapped_column(Text)  # "Main", "Terrace", "VIP"
    capacity: Mapped[int] = mapped_column(Integer, default=4, nullable=False)
    status: Mapped[str] = mapped_column(
        Text, default=TableStatus.AVAILABLE.value, nullable=False, index=True
    )
    # References pos_order.id. No FK: pos_order.table_id already points here
    # and the cycle would break create_all/drop_all ordering.
    current_order_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True, unique=True
    )

    __table_args__ = (
        CheckConstraint("capacity > 0", name="chk_table_capacity_positive"),
        Index("ix_table_section_status", "section", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<Table(id={self.id}, number={self.number}, status='{self.status}', "
            f"current_order_id={self.current_order_id})>"
        )
