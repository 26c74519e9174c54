"""
Order totals computation.

Pure functions, no I/O. All amounts are integer cents.

Rounding policy: tax and service charge are computed exactly as Decimals.
The order total is rounded once, half-to-even, from the exact sum. The
stored components are rounded half-to-even too; when that leaves the stored
parts a cent away from the total, the service charge absorbs the cent. Tax
absorbs it instead when the service charge rate is zero or the service
charge is already zero, so a zero rate always stores a zero amount and
``total = subtotal + tax + service - discount`` holds for every stored row
with a positive total.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Iterable, Protocol

from shared.config.constants import ItemStatus


class PricedLine(Protocol):
    """Anything that looks like an order line. OrderItem satisfies this."""

    quantity: int
    unit_price_cents: int
    status: str

    @property
    def modifier_delta_cents(self) -> int: ...


@dataclass(frozen=True, slots=True)
class LineInput:
    """Plain line used when no ORM row exists (previews, tests)."""

    quantity: int
    unit_price_cents: int
    modifier_delta_cents: int = 0
    status: str = ItemStatus.PENDING.value


@dataclass(frozen=True, slots=True)
class OrderTotals:
    subtotal_cents: int
    tax_cents: int
    service_charge_cents: int
    discount_cents: int
    total_cents: int

    def remaining_after(self, paid_cents: int) -> int:
        return max(0, self.total_cents - paid_cents)


def _round_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_EVEN))


def line_total_cents(line: PricedLine) -> int:
    """quantity x (unit price + sum of modifier deltas)."""
    return line.quantity * (line.unit_price_cents + line.modifier_delta_cents)


def subtotal_cents(lines: Iterable[PricedLine]) -> int:
    """Sum of line totals over non-cancelled lines."""
    return sum(
        line_total_cents(line)
        for line in lines
        if line.status != ItemStatus.CANCELLED.value
    )


def recalculate(
    lines: Iterable[PricedLine],
    discount_cents: int,
    tax_rate: Decimal,
    service_charge_rate: Decimal,
) -> OrderTotals:
    """
    Derive order totals from its lines and rates.

    Deterministic: the same lines and rates always give the same totals, so
    calling it twice without changing items is a no-op.
    """
    subtotal = subtotal_cents(lines)
    discount = max(0, discount_cents)

    tax_exact = Decimal(subtotal) * tax_rate
    service_exact = Decimal(subtotal) * service_charge_rate
    total_exact = Decimal(subtotal) + tax_exact + service_exact - Decimal(discount)

    total = _round_cents(max(Decimal(0), total_exact))
    tax = _round_cents(tax_exact)
    service = _round_cents(service_exact)

    if total > 0:
        drift = total - (subtotal + tax + service - discount)
        if service_charge_rate > 0 and service + drift >= 0:
            service += drift
        else:
            # |drift| <= 1; a negative drift here means tax rounded up, so tax >= 1
            tax += drift

    return OrderTotals(
        subtotal_cents=subtotal,
        tax_cents=tax,
        service_charge_cents=service,
        discount_cents=discount,
        total_cents=total,
    )
