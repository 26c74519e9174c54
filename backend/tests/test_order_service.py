"""
Tests for OrderService: order creation and line mutations.
"""

import re

import pytest

from rest_api.models import Order
from rest_api.services.domain import OrderService
from rest_api.services.domain.order_service import generate_order_number
from rest_api.services.events import EventType
from shared.config.constants import ItemStatus, OrderStatus, PaymentStatus, Room, TableStatus
from shared.utils.exceptions import (
    InvalidQuantityError,
    InvalidStateError,
    ItemNotFoundError,
    ItemUnavailableError,
    MenuItemNotFoundError,
    OrderNotFoundError,
    TableOccupiedError,
)
from shared.utils.schemas import CreateOrderRequest, OrderItemInput, OrderItemUpdate
from tests.conftest import SERVICE_CHARGE_RATE, TAX_RATE


@pytest.fixture
def service(db_session, recorder):
    return OrderService(db_session, recorder, TAX_RATE, SERVICE_CHARGE_RATE)


def _order_with(service, seed_menu, table_id=None):
    """Pending order: 2 burgers + 1 fries = 3100 cents."""
    return service.create_order(
        CreateOrderRequest(
            table_id=table_id,
            items=[
                OrderItemInput(menu_item_id=seed_menu["burger"].id, quantity=2),
                OrderItemInput(menu_item_id=seed_menu["fries"].id, quantity=1),
            ],
        ),
        user_id=2,
    )


class TestOrderNumber:

    def test_format(self):
        assert re.fullmatch(r"ORD-\d{14}-[0-9a-f]{6}", generate_order_number())

    def test_numbers_are_unique(self):
        assert len({generate_order_number() for _ in range(50)}) == 50


class TestCreateOrder:
    """Order creation."""

    def test_creates_pending_order_with_totals(self, service, seed_menu):
        order = _order_with(service, seed_menu)

        assert order.status == OrderStatus.PENDING.value
        assert order.order_number.startswith("ORD-")
        assert order.subtotal_cents == 2500
        assert order.tax_cents == 350
        assert order.service_charge_cents == 250
        assert order.total_cents == 3100
        assert order.paid_cents == 0
        assert order.remaining_cents == 3100
        assert order.payment_status == PaymentStatus.UNPAID.value
        assert order.user_id == 2

    def test_new_order_balance_is_set_before_insert(self, service, seed_menu, seed_tables):
        """Totals run before the INSERT, so column defaults are not there yet."""
        order = service.create_order(
            CreateOrderRequest(
                table_id=seed_tables[0].id,
                items=[OrderItemInput(menu_item_id=seed_menu["fries"].id)],
            )
        )

        assert order.total_cents == 500 + 70 + 50
        assert order.paid_cents == 0
        assert order.remaining_cents == order.total_cents
        assert order.payment_status == PaymentStatus.UNPAID.value

    def test_items_snapshot_menu_prices(self, service, seed_menu, db_session):
        order = _order_with(service, seed_menu)

        seed_menu["burger"].price_cents = 9999
        db_session.commit()
        db_session.refresh(order)

        burger_line = order.items[0]
        assert burger_line.menu_item_name == "Burger"
        assert burger_line.unit_price_cents == 1000
        assert order.total_cents == 3100

    def test_emits_order_and_kitchen_events(self, service, seed_menu, recorder):
        order = _order_with(service, seed_menu)

        types = [e.event_type for e in recorder.events]
        assert types == [EventType.ORDER, EventType.KITCHEN_ORDER, EventType.SOUND_ALERT]
        created = recorder.events[0]
        assert created.rooms == frozenset({Room.ALL})
        assert created.payload["id"] == order.id
        assert recorder.events[1].rooms == frozenset({Room.KITCHEN})

    def test_empty_order_skips_kitchen_events(self, service, recorder):
        service.create_order(CreateOrderRequest())

        assert [e.event_type for e in recorder.events] == [EventType.ORDER]

    def test_seats_order_at_table(self, service, seed_menu, seed_tables, recorder, db_session):
        table = seed_tables[0]

        order = _order_with(service, seed_menu, table_id=table.id)

        db_session.refresh(table)
        assert order.table_id == table.id
        assert table.status == TableStatus.OCCUPIED.value
        assert table.current_order_id == order.id
        table_events = recorder.of_type(EventType.TABLE_STATUS)
        assert len(table_events) == 1
        assert table_events[0].payload == {"old_status": "available", "new_status": "occupied"}

    def test_occupied_table_leaves_no_order(self, service, seed_menu, seed_tables, db_session):
        table = seed_tables[0]
        _order_with(service, seed_menu, table_id=table.id)

        with pytest.raises(TableOccupiedError):
            _order_with(service, seed_menu, table_id=table.id)

        assert db_session.query(Order).count() == 1

    def test_zero_quantity_is_rejected(self, service, seed_menu, db_session):
        with pytest.raises(InvalidQuantityError) as exc_info:
            service.create_order(
                CreateOrderRequest(
                    items=[OrderItemInput(menu_item_id=seed_menu["burger"].id, quantity=0)]
                )
            )

        assert exc_info.value.code == "invalid_quantity"
        assert exc_info.value.status_code == 400
        assert db_session.query(Order).count() == 0

    def test_unavailable_item_is_rejected(self, service, seed_menu):
        with pytest.raises(ItemUnavailableError):
            service.create_order(
                CreateOrderRequest(items=[OrderItemInput(menu_item_id=seed_menu["soup"].id)])
            )

    def test_unknown_menu_item(self, service, seed_menu):
        with pytest.raises(MenuItemNotFoundError):
            service.create_order(CreateOrderRequest(items=[OrderItemInput(menu_item_id=424242)]))


class TestAddItem:

    def test_add_item_recalculates(self, service, seed_menu):
        order = _order_with(service, seed_menu)

        order = service.add_item(
            order.id, OrderItemInput(menu_item_id=seed_menu["fries"].id, quantity=2)
        )

        assert len(order.items) == 3
        assert order.subtotal_cents == 3500
        assert order.total_cents == 4340

    def test_modifiers_add_to_line_price(self, service, seed_menu):
        order = _order_with(service, seed_menu)
        cheese = seed_menu["burger"].modifier_options[0]

        order = service.add_item(
            order.id,
            OrderItemInput(
                menu_item_id=seed_menu["burger"].id,
                quantity=1,
                modifier_option_ids=[cheese.id],
            ),
        )

        line = order.items[-1]
        assert [m.name for m in line.modifiers] == ["Extra cheese"]
        assert line.line_total_cents == 1150
        assert order.subtotal_cents == 2500 + 1150

    def test_unavailable_modifier_is_rejected(self, service, seed_menu):
        order = _order_with(service, seed_menu)
        bacon = seed_menu["burger"].modifier_options[1]

        with pytest.raises(ItemUnavailableError):
            service.add_item(
                order.id,
                OrderItemInput(
                    menu_item_id=seed_menu["burger"].id, modifier_option_ids=[bacon.id]
                ),
            )

        assert len(service.get_order(order.id).items) == 2

    def test_modifier_of_another_item_is_rejected(self, service, seed_menu):
        order = _order_with(service, seed_menu)
        cheese = seed_menu["burger"].modifier_options[0]

        with pytest.raises(ItemUnavailableError):
            service.add_item(
                order.id,
                OrderItemInput(
                    menu_item_id=seed_menu["fries"].id, modifier_option_ids=[cheese.id]
                ),
            )

    def test_negative_quantity_changes_nothing(self, service, seed_menu):
        order = _order_with(service, seed_menu)

        with pytest.raises(InvalidQuantityError):
            service.add_item(
                order.id, OrderItemInput(menu_item_id=seed_menu["fries"].id, quantity=-1)
            )

        order = service.get_order(order.id)
        assert len(order.items) == 2
        assert order.total_cents == 3100

    def test_unknown_order(self, service, seed_menu):
        with pytest.raises(OrderNotFoundError):
            service.add_item(999_999, OrderItemInput(menu_item_id=seed_menu["fries"].id))


class TestRemoveItem:

    def test_remove_item_recalculates(self, service, seed_menu):
        order = _order_with(service, seed_menu)
        fries_line = order.items[1]

        order = service.remove_item(order.id, fries_line.id)

        assert len(order.items) == 1
        assert order.subtotal_cents == 2000
        assert order.total_cents == 2480

    def test_missing_item(self, service, seed_menu):
        order = _order_with(service, seed_menu)

        with pytest.raises(ItemNotFoundError) as exc_info:
            service.remove_item(order.id, 999_999)

        assert exc_info.value.code == "item_not_found"
        assert exc_info.value.status_code == 404


class TestUpdateItem:

    def test_quantity_change_recalculates(self, service, seed_menu):
        order = _order_with(service, seed_menu)
        burger_line = order.items[0]

        order = service.update_item(order.id, burger_line.id, OrderItemUpdate(quantity=3))

        assert order.items[0].quantity == 3
        assert order.subtotal_cents == 3500

    def test_only_sent_fields_change(self, service, seed_menu):
        order = _order_with(service, seed_menu)
        burger_line = order.items[0]

        order = service.update_item(order.id, burger_line.id, OrderItemUpdate(notes="no onions"))

        assert order.items[0].notes == "no onions"
        assert order.items[0].quantity == 2

    def test_invalid_quantity(self, service, seed_menu):
        order = _order_with(service, seed_menu)

        with pytest.raises(InvalidQuantityError):
            service.update_item(order.id, order.items[0].id, OrderItemUpdate(quantity=0))

    def test_missing_item(self, service, seed_menu):
        order = _order_with(service, seed_menu)

        with pytest.raises(ItemNotFoundError):
            service.update_item(order.id, 999_999, OrderItemUpdate(quantity=2))

    def test_cancelled_line_leaves_subtotal(self, service, seed_menu):
        order = _order_with(service, seed_menu)
        fries_line = order.items[1]

        order = service.update_item(
            order.id, fries_line.id, OrderItemUpdate(status=ItemStatus.CANCELLED)
        )

        assert order.subtotal_cents == 2000
        assert len(order.items) == 2

    def test_status_change_notifies_kitchen(self, service, seed_menu, recorder):
        order = _order_with(service, seed_menu)
        recorder.clear()

        service.update_item(
            order.id, order.items[0].id, OrderItemUpdate(status=ItemStatus.PREPARING), user_id=3
        )

        [event] = recorder.events
        assert event.event_type == EventType.ITEM_STATUS
        assert event.rooms == frozenset({Room.KITCHEN})
        assert event.payload == {"old_status": "pending", "new_status": "preparing"}
        assert event.user_id == 3

    def test_same_status_emits_nothing(self, service, seed_menu, recorder):
        order = _order_with(service, seed_menu)
        recorder.clear()

        service.update_item(order.id, order.items[0].id, OrderItemUpdate(status=ItemStatus.PENDING))

        assert recorder.events == []


class TestTerminalOrders:
    """Completed and cancelled orders are read-only."""

    @pytest.fixture
    def cancelled_order(self, service, seed_menu, db_session):
        order = _order_with(service, seed_menu)
        order.status = OrderStatus.CANCELLED.value
        db_session.commit()
        return order

    def test_add_item_rejected(self, service, seed_menu, cancelled_order):
        with pytest.raises(InvalidStateError):
            service.add_item(cancelled_order.id, OrderItemInput(menu_item_id=seed_menu["fries"].id))

    def test_remove_item_rejected(self, service, cancelled_order):
        with pytest.raises(InvalidStateError):
            service.remove_item(cancelled_order.id, cancelled_order.items[0].id)

    def test_update_item_rejected(self, service, cancelled_order):
        with pytest.raises(InvalidStateError):
            service.update_item(
                cancelled_order.id, cancelled_order.items[0].id, OrderItemUpdate(quantity=5)
            )
