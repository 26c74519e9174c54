"""
Pytest configuration and fixtures for backend tests.
"""

import os

# Settings are read at import time; keep the app off PostgreSQL in tests
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import itertools
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from rest_api.core.dependencies import get_publisher
from rest_api.main import app
from rest_api.models import Base, MenuItem, ModifierOption, Table
from rest_api.services.events import EventType, NotificationEvent
from shared.config.constants import Roles, Room, TableStatus
from shared.infrastructure.db import get_db
from shared.security.auth import sign_jwt


_id_counter = itertools.count(1000)

TAX_RATE = Decimal("0.14")
SERVICE_CHARGE_RATE = Decimal("0.10")


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def next_id():
    """Generate a unique ID for seeded rows."""
    return next(_id_counter)


class RecordingPublisher:
    """Publisher that keeps every event it is handed, in order."""

    def __init__(self):
        self.events: list[NotificationEvent] = []

    def publish(self, event: NotificationEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> list[NotificationEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def for_room(self, room: Room) -> list[NotificationEvent]:
        return [e for e in self.events if room in e.rooms or Room.ALL in e.rooms]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def recorder():
    return RecordingPublisher()


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
    Events go to the real hub started by the lifespan.
    """

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def recording_client(client, recorder):
    """Test client whose routes publish into ``recorder`` instead of the hub."""
    app.dependency_overrides[get_publisher] = lambda: recorder
    return client


# =============================================================================
# Auth
# =============================================================================


def make_token(role: str, user_id: int = 1) -> str:
    return sign_jwt({"sub": str(user_id), "role": role})


def headers_for(role: str, user_id: int = 1) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(role, user_id)}"}


@pytest.fixture
def waiter_headers():
    return headers_for(Roles.WAITER, user_id=2)


@pytest.fixture
def kitchen_headers():
    return headers_for(Roles.KITCHEN, user_id=3)


@pytest.fixture
def cashier_headers():
    return headers_for(Roles.CASHIER, user_id=4)


@pytest.fixture
def manager_headers():
    return headers_for(Roles.MANAGER, user_id=5)


# =============================================================================
# Seed data
# =============================================================================


@pytest.fixture
def seed_menu(db_session):
    """
    Menu used across tests.

    burger 10.00 (+1.50 cheese, +2.00 bacon which is sold out),
    fries 5.00, soup 7.00 (sold out).
    """
    burger = MenuItem(id=next_id(), name="Burger", category="mains", price_cents=1000)
    burger.modifier_options = [
        ModifierOption(id=next_id(), name="Extra cheese", price_delta_cents=150),
        ModifierOption(id=next_id(), name="Bacon", price_delta_cents=200, is_available=False),
    ]
    fries = MenuItem(id=next_id(), name="Fries", category="sides", price_cents=500)
    soup = MenuItem(
        id=next_id(), name="Soup", category="starters", price_cents=700, is_available=False
    )
    db_session.add_all([burger, fries, soup])
    db_session.commit()
    for item in (burger, fries, soup):
        db_session.refresh(item)
    return {"burger": burger, "fries": fries, "soup": soup}


@pytest.fixture
def seed_tables(db_session):
    """Three free tables numbered 1-3."""
    tables = [
        Table(
            id=next_id(),
            number=number,
            name=f"Table {number}",
            section="Main",
            capacity=4,
            status=TableStatus.AVAILABLE.value,
        )
        for number in (1, 2, 3)
    ]
    db_session.add_all(tables)
    db_session.commit()
    for table in tables:
        db_session.refresh(table)
    return tables
