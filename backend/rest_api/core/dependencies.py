"""
FastAPI dependencies that build domain services per request.

Services get the request's session and the application's hub; nothing is
cached between requests.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from rest_api.services.domain import (
    MenuService,
    OrderLifecycle,
    OrderService,
    PaymentService,
    TableRegistry,
)
from rest_api.services.events import EventPublisher, NullPublisher
from shared.infrastructure.db import get_db


def get_publisher(request: Request) -> EventPublisher:
    """The notification hub started by the lifespan, or a no-op publisher."""
    hub = getattr(request.app.state, "hub", None)
    return hub if hub is not None else NullPublisher()


def get_order_service(
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_publisher),
) -> OrderService:
    return OrderService(db, publisher)


def get_table_registry(
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_publisher),
) -> TableRegistry:
    return TableRegistry(db, publisher)


def get_order_lifecycle(
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_publisher),
) -> OrderLifecycle:
    return OrderLifecycle(db, publisher)


def get_payment_service(
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_publisher),
) -> PaymentService:
    return PaymentService(db, publisher)


def get_menu_service(db: Session = Depends(get_db)) -> MenuService:
    return MenuService(db)
