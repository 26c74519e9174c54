"""
Payments router.
"""

from fastapi import APIRouter, Depends, status

from rest_api.core.dependencies import get_payment_service
from rest_api.services.domain import PaymentService
from shared.config.constants import MANAGEMENT_ROLES, Roles
from shared.security.auth import Principal, roles_dependency
from shared.utils.schemas import OrderOutput, PaymentCreate, PaymentOutput, PaymentResult

router = APIRouter(tags=["payments"])

cashiers = roles_dependency(Roles.CASHIER, *MANAGEMENT_ROLES)


@router.post(
    "/api/orders/{order_id}/payments",
    response_model=PaymentResult,
    status_code=status.HTTP_201_CREATED,
)
def record_payment(
    order_id: int,
    body: PaymentCreate,
    service: PaymentService = Depends(get_payment_service),
    principal: Principal = Depends(cashiers),
):
    """
    Record a payment against an order.

    Payments above the large-payment threshold are also pushed to managers.
    """
    payment, order = service.record_payment(order_id, body, user_id=principal.user_id)
    return PaymentResult(
        payment=PaymentOutput.model_validate(payment),
        order=OrderOutput.model_validate(order),
    )
