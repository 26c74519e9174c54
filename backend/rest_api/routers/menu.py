"""
Menu router.
Menu items with their modifier options, and availability toggling.
"""

from fastapi import APIRouter, Depends, Query, status

from rest_api.core.dependencies import get_menu_service
from rest_api.services.domain import MenuService
from shared.config.constants import ALL_STAFF_ROLES, MANAGEMENT_ROLES, Roles
from shared.security.auth import Principal, roles_dependency
from shared.utils.schemas import AvailabilityUpdate, MenuItemCreate, MenuItemOutput

router = APIRouter(tags=["menu"])


@router.get("/api/menu/items", response_model=list[MenuItemOutput])
def list_menu_items(
    category: str | None = Query(default=None),
    available_only: bool = Query(default=False),
    service: MenuService = Depends(get_menu_service),
    principal: Principal = Depends(roles_dependency(*ALL_STAFF_ROLES)),
):
    return service.list_items(category=category, available_only=available_only)


@router.post(
    "/api/menu/items",
    response_model=MenuItemOutput,
    status_code=status.HTTP_201_CREATED,
)
def create_menu_item(
    body: MenuItemCreate,
    service: MenuService = Depends(get_menu_service),
    principal: Principal = Depends(roles_dependency(*MANAGEMENT_ROLES)),
):
    return service.create_item(body)


@router.patch("/api/menu/items/{menu_item_id}/availability", response_model=MenuItemOutput)
def set_availability(
    menu_item_id: int,
    body: AvailabilityUpdate,
    service: MenuService = Depends(get_menu_service),
    principal: Principal = Depends(roles_dependency(Roles.KITCHEN, *MANAGEMENT_ROLES)),
):
    """Mark an item sold out (or back in stock). New lines for it are rejected."""
    return service.set_availability(menu_item_id, body.is_available)
