"""
Shared Pydantic schemas used across the application.

Quantities are plain ints on input: the domain layer owns the "at least 1"
rule and reports it as ``invalid_quantity``.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from shared.config.constants import (
    ItemStatus,
    Limits,
    OrderStatus,
    OrderType,
    PaymentMethod,
    Priority,
    TableStatus,
)


class ErrorResponse(BaseModel):
    """Body of every error response."""

    detail: str
    code: str = "error"


# =============================================================================
# Menu
# =============================================================================


class ModifierOptionInput(BaseModel):
    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    price_delta_cents: int = 0


class MenuItemCreate(BaseModel):
    name: str = Field(min_length=1, max_length=Limits.MAX_NAME_LENGTH)
    category: str | None = None
    description: str | None = None
    price_cents: int = Field(ge=Limits.MIN_PRICE_CENTS, le=Limits.MAX_PRICE_CENTS)
    is_available: bool = True
    modifier_options: list[ModifierOptionInput] = Field(default_factory=list)


class AvailabilityUpdate(BaseModel):
    is_available: bool


class ModifierOptionOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    price_delta_cents: int
    is_available: bool


class MenuItemOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str | None = None
    description: str | None = None
    price_cents: int
    is_available: bool
    modifier_options: list[ModifierOptionOutput] = Field(default_factory=list)


# =============================================================================
# Tables
# =============================================================================


class TableCreate(BaseModel):
    number: int = Field(ge=1)
    name: str | None = None
    section: str | None = None
    capacity: int = Field(default=4, ge=1)


class TableOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    number: int
    name: str | None = None
    section: str | None = None
    capacity: int
    status: TableStatus
    current_order_id: int | None = None


class TransferTableRequest(BaseModel):
    from_table_id: int
    to_table_id: int


# =============================================================================
# Orders
# =============================================================================


class OrderItemInput(BaseModel):
    """A line to add to an order."""

    menu_item_id: int
    quantity: int = 1
    modifier_option_ids: list[int] = Field(default_factory=list)
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class CustomerInfo(BaseModel):
    name: str | None = None
    phone: str | None = None
    address: str | None = None


class CreateOrderRequest(BaseModel):
    table_id: int | None = None
    order_type: OrderType = OrderType.DINE_IN
    priority: Priority = Priority.NORMAL
    items: list[OrderItemInput] = Field(default_factory=list)
    customer: CustomerInfo | None = None
    discount_cents: int = Field(default=0, ge=0)
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)
    kitchen_notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)


class OrderItemUpdate(BaseModel):
    """Partial update of an order line. Only fields that are sent are applied."""

    quantity: int | None = None
    modifier_option_ids: list[int] | None = None
    notes: str | None = Field(default=None, max_length=Limits.MAX_NOTES_LENGTH)
    status: ItemStatus | None = None


class StatusUpdateRequest(BaseModel):
    status: OrderStatus


class OrderItemModifierOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    modifier_option_id: int | None = None
    name: str
    price_delta_cents: int


class OrderItemOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    menu_item_id: int | None = None
    menu_item_name: str
    unit_price_cents: int
    quantity: int
    status: ItemStatus
    notes: str | None = None
    modifiers: list[OrderItemModifierOutput] = Field(default_factory=list)
    line_total_cents: int


class OrderOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    table_id: int | None = None
    user_id: int | None = None
    order_type: OrderType
    priority: Priority
    status: OrderStatus
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_address: str | None = None
    subtotal_cents: int
    tax_cents: int
    service_charge_cents: int
    discount_cents: int
    total_cents: int
    paid_cents: int
    remaining_cents: int
    payment_status: str
    payment_method: str | None = None
    created_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    notes: str | None = None
    kitchen_notes: str | None = None
    items: list[OrderItemOutput] = Field(default_factory=list)


# =============================================================================
# Payments
# =============================================================================


class PaymentCreate(BaseModel):
    amount_cents: int
    method: PaymentMethod = PaymentMethod.CASH
    cash_tendered_cents: int | None = None
    reference: str | None = None


class PaymentOutput(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_id: int
    user_id: int | None = None
    method: PaymentMethod
    amount_cents: int
    reference: str | None = None
    cash_tendered_cents: int | None = None
    change_cents: int | None = None
    created_at: datetime | None = None


class PaymentResult(BaseModel):
    payment: PaymentOutput
    order: OrderOutput
