"""
Pytest configuration and fixtures for backend tests.
"""

import asyncio
import os

# Settings are read once at import; keep startup side effects out of tests
os.environ.setdefault("DB_BOOTSTRAP_ON_STARTUP", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("HITPAY_SALT", "")
os.environ.setdefault("HITPAY_WEBHOOK_URL", "")

from contextlib import contextmanager
from datetime import date, time, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tablebook_api.main import app
from tablebook_api.models import (
    AdminUser,
    Base,
    Customer,
    MenuCategory,
    MenuItem,
    Reservation,
    Restaurant,
    Staff,
    Table,
)
from tablebook_api.services.payments import hitpay_breaker
from tablebook_shared.config.constants import ReservationStatus, StaffRoles
from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import (
    sign_admin_token,
    sign_customer_token,
    sign_staff_token,
)
from tablebook_shared.security.password import hash_password
from tablebook_shared.utils.exceptions import TransientError


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_PASSWORD = "testpass123"
# Low bcrypt cost keeps the suite fast
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD, rounds=4)

BOOKING_DATE = date.today() + timedelta(days=7)


@contextmanager
def fresh_session():
    """
    Session on an empty schema, for tests that need a clean database per
    example (hypothesis) instead of per test.
    """
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    with fresh_session() as session:
        yield session


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with database session override.
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


@pytest.fixture(autouse=True)
def reset_gateway_breaker():
    """The gateway breaker is module state; every test starts closed."""
    asyncio.run(hitpay_breaker.reset())
    yield
    asyncio.run(hitpay_breaker.reset())


# =============================================================================
# Builders
# =============================================================================


def make_restaurant(db, name="Test Bistro", is_active=True) -> Restaurant:
    restaurant = Restaurant(
        name=name,
        cuisine_type="Malaysian",
        opening_time="10:00",
        closing_time="22:00",
        is_active=is_active,
    )
    db.add(restaurant)
    db.commit()
    db.refresh(restaurant)
    return restaurant


def make_table(db, restaurant, number="T1", capacity=4) -> Table:
    table = Table(restaurant_id=restaurant.id, table_number=number, capacity=capacity, is_available=True)
    db.add(table)
    db.commit()
    db.refresh(table)
    return table


def make_customer(db, email="diner@test.com", name="Dina Diner") -> Customer:
    customer = Customer(name=name, email=email, password_hash=TEST_PASSWORD_HASH)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


def make_reservation(
    db,
    restaurant,
    table=None,
    customer=None,
    at=time(19, 0),
    on=None,
    status=ReservationStatus.PENDING,
    party_size=2,
) -> Reservation:
    """Insert a reservation directly, bypassing admission."""
    reservation = Reservation(
        customer_id=customer.id if customer is not None else None,
        restaurant_id=restaurant.id,
        table_id=table.id if table is not None else None,
        reservation_date=on or BOOKING_DATE,
        reservation_time=at,
        party_size=party_size,
        status=status,
    )
    db.add(reservation)
    db.commit()
    db.refresh(reservation)
    return reservation


def make_menu_item(db, restaurant, name="Nasi Lemak", price="12.50", category=None, is_available=True) -> MenuItem:
    item = MenuItem(
        restaurant_id=restaurant.id,
        category_id=category.id if category is not None else None,
        name=name,
        price=Decimal(price),
        is_available=is_available,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class FakeGateway:
    """Stands in for HitPayClient."""

    def __init__(self, status="pending", fail_status_check=False):
        self.created = []
        self.status = status
        self.fail_status_check = fail_status_check

    async def create_payment_request(self, *, order_id, amount, email, name=None, **kwargs):
        self.created.append({"order_id": order_id, "amount": amount, "email": email})
        return {
            "id": f"pr-{order_id}",
            "url": f"https://checkout.test/pr-{order_id}",
            "reference_number": f"ORD-{order_id}-1700000000000",
            "currency": "MYR",
        }

    async def get_payment_request(self, payment_id):
        if self.fail_status_check:
            raise TransientError("payment gateway call", retry_after=5)
        return {"id": payment_id, "status": self.status}


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def seed_restaurant(db_session):
    return make_restaurant(db_session)


@pytest.fixture
def other_restaurant(db_session):
    return make_restaurant(db_session, name="Other Place")


@pytest.fixture
def seed_table(db_session, seed_restaurant):
    return make_table(db_session, seed_restaurant)


@pytest.fixture
def seed_customer(db_session):
    return make_customer(db_session)


@pytest.fixture
def other_customer(db_session):
    return make_customer(db_session, email="other@test.com", name="Oscar Other")


@pytest.fixture
def seed_category(db_session, seed_restaurant):
    category = MenuCategory(restaurant_id=seed_restaurant.id, name="Mains", display_order=1)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def seed_menu_item(db_session, seed_restaurant, seed_category):
    return make_menu_item(db_session, seed_restaurant, category=seed_category)


@pytest.fixture
def seed_staff(db_session, seed_restaurant):
    staff = Staff(
        restaurant_id=seed_restaurant.id,
        name="Sam Staff",
        email="staff@test.com",
        password_hash=TEST_PASSWORD_HASH,
        role=StaffRoles.MANAGER,
    )
    db_session.add(staff)
    db_session.commit()
    db_session.refresh(staff)
    return staff


@pytest.fixture
def seed_admin(db_session):
    admin = AdminUser(name="Ada Admin", email="admin@test.com", password_hash=TEST_PASSWORD_HASH)
    db_session.add(admin)
    db_session.commit()
    db_session.refresh(admin)
    return admin


@pytest.fixture
def customer_headers(seed_customer):
    return bearer(sign_customer_token(seed_customer.id, seed_customer.email, seed_customer.name))


@pytest.fixture
def other_customer_headers(other_customer):
    return bearer(sign_customer_token(other_customer.id, other_customer.email, other_customer.name))


@pytest.fixture
def staff_headers(seed_staff):
    return bearer(sign_staff_token(seed_staff.id, seed_staff.restaurant_id, seed_staff.email, seed_staff.role))


@pytest.fixture
def other_staff_headers(db_session, other_restaurant):
    staff = Staff(
        restaurant_id=other_restaurant.id,
        name="Olga Other",
        email="staff@other.com",
        password_hash=TEST_PASSWORD_HASH,
        role=StaffRoles.STAFF,
    )
    db_session.add(staff)
    db_session.commit()
    return bearer(sign_staff_token(staff.id, other_restaurant.id, staff.email, staff.role))


@pytest.fixture
def admin_headers(seed_admin):
    return bearer(sign_admin_token(seed_admin.id, seed_admin.email))
