"""
Tests for order totals computation.

Rounding policy under test: exact Decimal arithmetic, total rounded once
half-to-even, stored parts adjusted so they always add up to the total.
"""

from decimal import Decimal

from hypothesis import given, settings, strategies as st

from rest_api.services.domain.order_totals import (
    LineInput,
    line_total_cents,
    recalculate,
    subtotal_cents,
)
from shared.config.constants import ItemStatus
from tests.conftest import SERVICE_CHARGE_RATE, TAX_RATE


def _totals(lines, discount=0, tax=TAX_RATE, service=SERVICE_CHARGE_RATE):
    return recalculate(lines, discount, tax, service)


class TestLineTotals:
    """Line and subtotal arithmetic."""

    def test_line_total_includes_modifiers(self):
        line = LineInput(quantity=3, unit_price_cents=1000, modifier_delta_cents=150)

        assert line_total_cents(line) == 3450

    def test_cancelled_lines_are_excluded(self):
        lines = [
            LineInput(quantity=2, unit_price_cents=1000),
            LineInput(quantity=1, unit_price_cents=500, status=ItemStatus.CANCELLED.value),
        ]

        assert subtotal_cents(lines) == 2000


class TestRecalculate:
    """Order-level totals."""

    def test_reference_order(self):
        """2 x 10.00 + 1 x 5.00 at 14% tax and 10% service."""
        lines = [
            LineInput(quantity=2, unit_price_cents=1000),
            LineInput(quantity=1, unit_price_cents=500),
        ]

        totals = _totals(lines)

        assert totals.subtotal_cents == 2500
        assert totals.tax_cents == 350
        assert totals.service_charge_cents == 250
        assert totals.discount_cents == 0
        assert totals.total_cents == 3100

    def test_empty_order_is_zero(self):
        totals = _totals([])

        assert totals.subtotal_cents == 0
        assert totals.total_cents == 0

    def test_discount_is_subtracted(self):
        totals = _totals([LineInput(quantity=1, unit_price_cents=1000)], discount=200)

        assert totals.total_cents == 1000 + 140 + 100 - 200

    def test_total_is_floored_at_zero(self):
        totals = _totals([LineInput(quantity=1, unit_price_cents=100)], discount=10_000)

        assert totals.total_cents == 0

    def test_half_rounds_to_even_upwards(self):
        """12.5 cents of tax on 1.25: total 137.5 rounds to 138."""
        totals = _totals(
            [LineInput(quantity=1, unit_price_cents=125)],
            tax=Decimal("0.10"),
            service=Decimal("0"),
        )

        assert totals.total_cents == 138

    def test_half_rounds_to_even_downwards(self):
        """1.5 cents of tax on 0.15: total 16.5 rounds to 16."""
        totals = _totals(
            [LineInput(quantity=1, unit_price_cents=15)],
            tax=Decimal("0.10"),
            service=Decimal("0"),
        )

        assert totals.total_cents == 16
        assert totals.subtotal_cents + totals.tax_cents + totals.service_charge_cents == 16

    def test_drift_goes_to_service_charge(self):
        """Tax 12.5 -> 12 and service 2.5 -> 2, but the exact total is 140: service takes the cent."""
        totals = _totals(
            [LineInput(quantity=1, unit_price_cents=125)],
            tax=Decimal("0.10"),
            service=Decimal("0.02"),
        )

        assert totals.total_cents == 140
        assert totals.tax_cents == 12
        assert totals.service_charge_cents == 3

    def test_zero_service_rate_never_charges_service(self):
        """Tax 10.5 rounds to 10, total 85.5 rounds to 86: tax takes the cent."""
        totals = _totals(
            [LineInput(quantity=1, unit_price_cents=75)],
            tax=Decimal("0.14"),
            service=Decimal("0"),
        )

        assert totals.total_cents == 86
        assert totals.tax_cents == 11
        assert totals.service_charge_cents == 0

    def test_zero_tax_rate_never_charges_tax(self):
        totals = _totals(
            [LineInput(quantity=1, unit_price_cents=75)],
            tax=Decimal("0"),
            service=Decimal("0.14"),
        )

        assert totals.total_cents == 86
        assert totals.tax_cents == 0
        assert totals.service_charge_cents == 11

    def test_negative_drift_with_zero_service_comes_off_tax(self):
        """Tax 1.5 rounds to 2, total 16.5 rounds to 16."""
        totals = _totals(
            [LineInput(quantity=1, unit_price_cents=15)],
            tax=Decimal("0.10"),
            service=Decimal("0"),
        )

        assert totals.tax_cents == 1
        assert totals.service_charge_cents == 0

    def test_rounding_happens_once_at_the_total(self):
        """
        Rounding each line's 0.5 cents of tax would give 0 three times and a
        total of 15; the exact order tax is 1.5, so the total is 16.5 -> 16.
        """
        lines = [LineInput(quantity=1, unit_price_cents=5) for _ in range(3)]

        totals = _totals(lines, tax=Decimal("0.10"), service=Decimal("0"))

        assert totals.subtotal_cents == 15
        assert totals.total_cents == 16

    def test_is_idempotent(self):
        lines = [
            LineInput(quantity=2, unit_price_cents=1333, modifier_delta_cents=17),
            LineInput(quantity=1, unit_price_cents=999),
        ]

        assert _totals(lines, discount=50) == _totals(lines, discount=50)


line_strategy = st.builds(
    LineInput,
    quantity=st.integers(min_value=1, max_value=20),
    unit_price_cents=st.integers(min_value=0, max_value=50_000),
    modifier_delta_cents=st.integers(min_value=0, max_value=2_000),
    status=st.sampled_from([s.value for s in ItemStatus]),
)
rate_strategy = st.decimals(min_value=0, max_value=Decimal("0.30"), places=3)


class TestTotalsProperties:
    """Property-based checks of the totals invariants."""

    @given(lines=st.lists(line_strategy, max_size=15))
    @settings(max_examples=100)
    def test_subtotal_is_sum_of_active_lines(self, lines):
        expected = sum(
            line.quantity * (line.unit_price_cents + line.modifier_delta_cents)
            for line in lines
            if line.status != ItemStatus.CANCELLED.value
        )

        assert _totals(lines).subtotal_cents == expected

    @given(
        lines=st.lists(line_strategy, max_size=15),
        discount=st.integers(min_value=0, max_value=20_000),
        tax=rate_strategy,
        service=rate_strategy,
    )
    @settings(max_examples=200)
    def test_parts_add_up_and_never_go_negative(self, lines, discount, tax, service):
        totals = recalculate(lines, discount, tax, service)

        assert totals.total_cents >= 0
        assert totals.tax_cents >= 0
        assert totals.service_charge_cents >= 0
        if totals.total_cents > 0:
            assert totals.total_cents == (
                totals.subtotal_cents
                + totals.tax_cents
                + totals.service_charge_cents
                - totals.discount_cents
            )

    @given(paid=st.integers(min_value=0, max_value=1_000_000))
    def test_remaining_is_never_negative(self, paid):
        totals = _totals([LineInput(quantity=1, unit_price_cents=1000)])

        assert totals.remaining_after(paid) == max(0, totals.total_cents - paid)

    @given(
        lines=st.lists(line_strategy, max_size=15),
        discount=st.integers(min_value=0, max_value=20_000),
        rate=rate_strategy,
    )
    @settings(max_examples=100)
    def test_zero_rate_component_stays_zero(self, lines, discount, rate):
        assert recalculate(lines, discount, rate, Decimal(0)).service_charge_cents == 0
        assert recalculate(lines, discount, Decimal(0), rate).tax_cents == 0
