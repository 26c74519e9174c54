"""
Centralized constants for the backend application.

Closed enumerations for every status/type/room field, plus the order status
transition table. Enum values are the lowercase strings stored in the database
and sent over the wire.

Usage:
    from shared.config.constants import OrderStatus, Room, validate_order_transition

    if validate_order_transition(OrderStatus.PENDING, OrderStatus.READY):
        ...
"""

from enum import Enum
from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """Staff role constants (carried in the JWT ``role`` claim)."""

    ADMIN: Final[str] = "ADMIN"
    MANAGER: Final[str] = "MANAGER"
    CASHIER: Final[str] = "CASHIER"
    WAITER: Final[str] = "WAITER"
    KITCHEN: Final[str] = "KITCHEN"

    ALL: Final[list[str]] = [ADMIN, MANAGER, CASHIER, WAITER, KITCHEN]


MANAGEMENT_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.MANAGER})
FRONT_OF_HOUSE_ROLES: Final[frozenset[str]] = frozenset(
    {Roles.ADMIN, Roles.MANAGER, Roles.CASHIER, Roles.WAITER}
)
ALL_STAFF_ROLES: Final[frozenset[str]] = frozenset(Roles.ALL)


# =============================================================================
# Order enumerations
# =============================================================================


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_ORDER_STATUSES


class OrderType(str, Enum):
    DINE_IN = "dine_in"
    TAKEAWAY = "takeaway"
    DELIVERY = "delivery"
    ONLINE = "online"


class Priority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"
    REFUNDED = "refunded"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    WALLET = "wallet"


class ItemStatus(str, Enum):
    """Per-line status; a subset of the order status values."""

    PENDING = "pending"
    PREPARING = "preparing"
    READY = "ready"
    SERVED = "served"
    CANCELLED = "cancelled"


class TableStatus(str, Enum):
    AVAILABLE = "available"
    OCCUPIED = "occupied"
    RESERVED = "reserved"
    DIRTY = "dirty"
    MAINTENANCE = "maintenance"


# =============================================================================
# Notification rooms
# =============================================================================


class Room(str, Enum):
    """
    Named broadcast channels for live notifications.
    ALL is implicit: every live connection is a member.
    """

    KITCHEN = "kitchen"
    POS = "pos"
    WAITERS = "waiters"
    DASHBOARD = "dashboard"
    MANAGERS = "managers"
    TABLES = "tables"
    STAFF = "staff"
    INVENTORY = "inventory"
    CUSTOMERS = "customers"
    ALL = "all"


# Rooms a connection joins on connect, by JWT role
DEFAULT_ROOMS_BY_ROLE: Final[dict[str, frozenset[Room]]] = {
    Roles.KITCHEN: frozenset({Room.KITCHEN}),
    Roles.WAITER: frozenset({Room.WAITERS, Room.TABLES}),
    Roles.CASHIER: frozenset({Room.POS}),
    Roles.MANAGER: frozenset({Room.MANAGERS, Room.DASHBOARD}),
    Roles.ADMIN: frozenset({Room.MANAGERS, Room.DASHBOARD}),
}


# =============================================================================
# Status Transitions
# =============================================================================

# Forward order of the non-cancel path
ORDER_STATUS_SEQUENCE: Final[tuple[OrderStatus, ...]] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY,
    OrderStatus.SERVED,
    OrderStatus.COMPLETED,
)

TERMINAL_ORDER_STATUSES: Final[frozenset[OrderStatus]] = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
)


def _build_order_transitions() -> dict[OrderStatus, frozenset[OrderStatus]]:
    transitions: dict[OrderStatus, frozenset[OrderStatus]] = {}
    for status in OrderStatus:
        if status in TERMINAL_ORDER_STATUSES:
            transitions[status] = frozenset()
            continue
        position = ORDER_STATUS_SEQUENCE.index(status)
        forward = set(ORDER_STATUS_SEQUENCE[position + 1:])
        forward.add(OrderStatus.CANCELLED)
        transitions[status] = frozenset(forward)
    return transitions


# Valid order status transitions (from -> allowed targets).
# Any forward move along ORDER_STATUS_SEQUENCE is legal, skips included.
ORDER_TRANSITIONS: Final[dict[OrderStatus, frozenset[OrderStatus]]] = _build_order_transitions()

# Kitchen staff only move orders through the cooking stages
ORDER_TRANSITION_ROLES: Final[dict[OrderStatus, frozenset[str]]] = {
    OrderStatus.CONFIRMED: FRONT_OF_HOUSE_ROLES,
    OrderStatus.PREPARING: ALL_STAFF_ROLES,
    OrderStatus.READY: ALL_STAFF_ROLES,
    OrderStatus.SERVED: FRONT_OF_HOUSE_ROLES,
    OrderStatus.COMPLETED: FRONT_OF_HOUSE_ROLES,
    OrderStatus.CANCELLED: FRONT_OF_HOUSE_ROLES,
}


def validate_order_transition(current_status: OrderStatus, new_status: OrderStatus) -> bool:
    """
    Validate that an order status transition is allowed.

    Returns True if transition is valid, False otherwise.
    """
    return new_status in ORDER_TRANSITIONS[current_status]


def can_role_transition(role: str, new_status: OrderStatus) -> bool:
    """True if ``role`` may move an order into ``new_status``."""
    return role in ORDER_TRANSITION_ROLES.get(new_status, frozenset())


# =============================================================================
# Validation Constants
# =============================================================================


class Limits:
    """Validation limits."""

    MIN_QUANTITY: Final[int] = 1
    MAX_QUANTITY: Final[int] = 99

    # Price limits (in cents)
    MIN_PRICE_CENTS: Final[int] = 0
    MAX_PRICE_CENTS: Final[int] = 100_000_00

    MAX_NAME_LENGTH: Final[int] = 200
    MAX_NOTES_LENGTH: Final[int] = 500

    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200
