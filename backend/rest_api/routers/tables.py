"""
Tables router.
Table registry administration and occupancy.
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from rest_api.core.dependencies import get_table_registry
from rest_api.services.domain import TableRegistry
from shared.config.constants import ALL_STAFF_ROLES, FRONT_OF_HOUSE_ROLES, MANAGEMENT_ROLES
from shared.security.auth import Principal, roles_dependency
from shared.utils.schemas import TableCreate, TableOutput

router = APIRouter(tags=["tables"])

front_of_house = roles_dependency(*FRONT_OF_HOUSE_ROLES)


class AssignTableRequest(BaseModel):
    order_id: int


@router.get("/api/tables", response_model=list[TableOutput])
def list_tables(
    registry: TableRegistry = Depends(get_table_registry),
    principal: Principal = Depends(roles_dependency(*ALL_STAFF_ROLES)),
):
    return registry.list_tables()


@router.post("/api/tables", response_model=TableOutput, status_code=status.HTTP_201_CREATED)
def create_table(
    body: TableCreate,
    registry: TableRegistry = Depends(get_table_registry),
    principal: Principal = Depends(roles_dependency(*MANAGEMENT_ROLES)),
):
    return registry.create_table(body)


@router.get("/api/tables/{table_id}", response_model=TableOutput)
def get_table(
    table_id: int,
    registry: TableRegistry = Depends(get_table_registry),
    principal: Principal = Depends(roles_dependency(*ALL_STAFF_ROLES)),
):
    return registry.get_table(table_id)


@router.post("/api/tables/{table_id}/assign", response_model=TableOutput)
def assign_table(
    table_id: int,
    body: AssignTableRequest,
    registry: TableRegistry = Depends(get_table_registry),
    principal: Principal = Depends(front_of_house),
):
    """Seat an order that has no table yet. 409 if the table is taken."""
    return registry.assign(table_id, body.order_id)


@router.post("/api/tables/{table_id}/release", response_model=TableOutput)
def release_table(
    table_id: int,
    registry: TableRegistry = Depends(get_table_registry),
    principal: Principal = Depends(front_of_house),
):
    """Free a table. Releasing a free table is not an error."""
    return registry.release(table_id)
