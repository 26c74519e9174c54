"""
Centralized HTTP exceptions for consistent error handling.

Every exception logs itself on construction and carries a stable ``code``
so clients can branch on the kind of failure, not on the message text.

Usage:
    from shared.utils.exceptions import OrderNotFoundError, TableOccupiedError

    raise OrderNotFoundError(order_id)
    raise TableOccupiedError(table_id, current_order_id=7)
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions inherit from this class to get consistent logging
    and response format: ``{"detail": ..., "code": ...}``.
    """

    code: str = "error"

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        code: str | None = None,
        **log_context: Any,
    ):
        if code is not None:
            self.code = code

        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, code=self.code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 401 / 403
# =============================================================================


class UnauthorizedError(AppException):
    """Missing or invalid credentials (401)."""

    code = "unauthenticated"

    def __init__(self, detail: str = "Not authenticated", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
            **log_context,
        )


class ForbiddenError(AppException):
    """
    Authorization/permission error (403).

    Usage:
        raise ForbiddenError("cancel orders", role="KITCHEN")
    """

    code = "forbidden"

    def __init__(self, action: str | None = None, **log_context: Any):
        detail = f"Not allowed to {action}" if action else "Access denied"
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            action=action,
            **log_context,
        )


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Order", 123)
    """

    code = "not_found"

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} with ID {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: int | None = None, **log_context: Any):
        super().__init__("Order", order_id, **log_context)


class ItemNotFoundError(NotFoundError):
    """Order line not found on the given order."""

    code = "item_not_found"

    def __init__(self, item_id: int | None = None, **log_context: Any):
        super().__init__("Order item", item_id, **log_context)


class TableNotFoundError(NotFoundError):
    def __init__(self, table_id: int | None = None, **log_context: Any):
        super().__init__("Table", table_id, **log_context)


class MenuItemNotFoundError(NotFoundError):
    def __init__(self, menu_item_id: int | None = None, **log_context: Any):
        super().__init__("Menu item", menu_item_id, **log_context)


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("Amount must be positive", field="amount_cents")
    """

    code = "validation_error"

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            **log_context,
        )


class InvalidQuantityError(ValidationError):
    code = "invalid_quantity"

    def __init__(self, quantity: int, **log_context: Any):
        super().__init__(
            f"Quantity must be at least 1 (got {quantity})",
            quantity=quantity,
            **log_context,
        )


class ItemUnavailableError(ValidationError):
    """Menu item or modifier option is inactive."""

    code = "item_unavailable"

    def __init__(self, name: str, **log_context: Any):
        super().__init__(f"'{name}' is not available", name=name, **log_context)


class InvalidStateError(ValidationError):
    """Entity is in an invalid state for the operation."""

    code = "invalid_state"

    def __init__(self, entity: str, current_state: str, **log_context: Any):
        detail = f"{entity} cannot be modified while '{current_state}'"
        super().__init__(detail, entity=entity, current_state=current_state, **log_context)


class InvalidTransitionError(ValidationError):
    """Invalid status transition."""

    code = "invalid_transition"

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        detail = f"Invalid transition from '{from_status}' to '{to_status}' for {entity}"
        super().__init__(
            detail,
            entity=entity,
            from_status=from_status,
            to_status=to_status,
            **log_context,
        )


class PaymentAmountError(ValidationError):
    code = "invalid_amount"

    def __init__(self, amount_cents: int, reason: str, **log_context: Any):
        detail = f"Invalid payment amount ({amount_cents}): {reason}"
        super().__init__(detail, amount_cents=amount_cents, **log_context)


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConflictError(AppException):
    """
    Resource conflict error (409). The caller may retry.

    Usage:
        raise ConflictError("Order is no longer on table 3")
    """

    code = "conflict"

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            **log_context,
        )


class TableOccupiedError(ConflictError):
    code = "table_occupied"

    def __init__(self, table_id: int, **log_context: Any):
        super().__init__(
            f"Table {table_id} already holds another active order",
            table_id=table_id,
            **log_context,
        )


class TargetOccupiedError(ConflictError):
    """Transfer destination already holds a different active order."""

    code = "target_occupied"

    def __init__(self, table_id: int, **log_context: Any):
        super().__init__(
            f"Destination table {table_id} already holds another active order",
            table_id=table_id,
            **log_context,
        )


class DuplicateEntityError(ConflictError):
    code = "duplicate"

    def __init__(self, entity: str, identifier: str | int, **log_context: Any):
        super().__init__(
            f"{entity} '{identifier}' already exists",
            entity=entity,
            identifier=identifier,
            **log_context,
        )
