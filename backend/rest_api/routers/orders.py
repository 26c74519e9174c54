"""
Orders router.
Order creation, line edits, status transitions and table transfer.
"""

from fastapi import APIRouter, Depends, Query, status

from rest_api.core.dependencies import (
    get_order_lifecycle,
    get_order_service,
    get_table_registry,
)
from rest_api.routers._common import Pagination, get_pagination
from rest_api.services.domain import OrderLifecycle, OrderService, TableRegistry
from shared.config.constants import (
    ALL_STAFF_ROLES,
    FRONT_OF_HOUSE_ROLES,
    OrderStatus,
    Roles,
    can_role_transition,
)
from shared.security.auth import Principal, roles_dependency
from shared.utils.exceptions import ForbiddenError
from shared.utils.schemas import (
    CreateOrderRequest,
    OrderItemInput,
    OrderItemUpdate,
    OrderOutput,
    StatusUpdateRequest,
    TransferTableRequest,
)

router = APIRouter(tags=["orders"])

front_of_house = roles_dependency(*FRONT_OF_HOUSE_ROLES)
any_staff = roles_dependency(*ALL_STAFF_ROLES)


@router.post("/api/orders", response_model=OrderOutput, status_code=status.HTTP_201_CREATED)
def create_order(
    body: CreateOrderRequest,
    service: OrderService = Depends(get_order_service),
    principal: Principal = Depends(front_of_house),
):
    """
    Create an order. With ``table_id`` the table is occupied in the same
    transaction; an occupied table rejects the whole order.
    """
    return service.create_order(body, user_id=principal.user_id)


@router.get("/api/orders", response_model=list[OrderOutput])
def list_orders(
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
    table_id: int | None = Query(default=None),
    pagination: Pagination = Depends(get_pagination),
    service: OrderService = Depends(get_order_service),
    principal: Principal = Depends(any_staff),
):
    return service.list_orders(
        status=status_filter,
        table_id=table_id,
        limit=pagination.limit,
        offset=pagination.offset,
    )


@router.get("/api/orders/{order_id}", response_model=OrderOutput)
def get_order(
    order_id: int,
    service: OrderService = Depends(get_order_service),
    principal: Principal = Depends(any_staff),
):
    return service.get_order(order_id)


# =============================================================================
# Line items
# =============================================================================


@router.post(
    "/api/orders/{order_id}/items",
    response_model=OrderOutput,
    status_code=status.HTTP_201_CREATED,
)
def add_item(
    order_id: int,
    body: OrderItemInput,
    service: OrderService = Depends(get_order_service),
    principal: Principal = Depends(front_of_house),
):
    return service.add_item(order_id, body, user_id=principal.user_id)


@router.patch("/api/orders/{order_id}/items/{item_id}", response_model=OrderOutput)
def update_item(
    order_id: int,
    item_id: int,
    body: OrderItemUpdate,
    service: OrderService = Depends(get_order_service),
    principal: Principal = Depends(any_staff),
):
    """
    Partial line update. Kitchen staff may only change the line status.
    """
    if principal.role == Roles.KITCHEN and body.model_fields_set - {"status"}:
        raise ForbiddenError(
            "edit order lines other than their status",
            user_id=principal.user_id,
            order_id=order_id,
        )
    return service.update_item(order_id, item_id, body, user_id=principal.user_id)


@router.delete("/api/orders/{order_id}/items/{item_id}", response_model=OrderOutput)
def remove_item(
    order_id: int,
    item_id: int,
    service: OrderService = Depends(get_order_service),
    principal: Principal = Depends(front_of_house),
):
    return service.remove_item(order_id, item_id, user_id=principal.user_id)


# =============================================================================
# Lifecycle
# =============================================================================


@router.patch("/api/orders/{order_id}/status", response_model=OrderOutput)
def update_status(
    order_id: int,
    body: StatusUpdateRequest,
    lifecycle: OrderLifecycle = Depends(get_order_lifecycle),
    principal: Principal = Depends(any_staff),
):
    """
    Move an order through its lifecycle.

    Returns 400 for a same, backward or post-terminal transition and 403
    when the caller's role may not set the requested status.
    """
    if not can_role_transition(principal.role, body.status):
        raise ForbiddenError(
            f"move orders to {body.status.value}",
            user_id=principal.user_id,
            role=principal.role,
            order_id=order_id,
        )
    return lifecycle.transition(order_id, body.status, user_id=principal.user_id)


@router.post("/api/orders/{order_id}/transfer", response_model=OrderOutput)
def transfer_table(
    order_id: int,
    body: TransferTableRequest,
    registry: TableRegistry = Depends(get_table_registry),
    principal: Principal = Depends(front_of_house),
):
    """Move an active order to another table atomically."""
    return registry.transfer(order_id, body.from_table_id, body.to_table_id)
