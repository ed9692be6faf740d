"""
Seed data for development.
Creates an admin, two restaurants with tables, menus and staff, and a demo customer.
"""

from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from tablebook_shared.config.constants import StaffRoles
from tablebook_shared.config.logging import get_logger
from tablebook_shared.infrastructure.db import safe_commit
from tablebook_shared.security.password import hash_password
from tablebook_api.models import (
    AdminUser,
    Customer,
    MenuCategory,
    MenuItem,
    Restaurant,
    Staff,
    Table,
)

logger = get_logger(__name__)

DEMO_PASSWORD = "password123"

RESTAURANTS = [
    {
        "name": "Nasi Lemak House",
        "description": "Malaysian comfort food",
        "cuisine_type": "Malaysian",
        "address": "12 Jalan Bukit Bintang, Kuala Lumpur",
        "phone": "+60312345678",
        "email": "hello@nasilemak.example",
        "opening_time": "10:00",
        "closing_time": "22:00",
        "slug": "nasilemak",
        "tables": [("T1", 2, "window"), ("T2", 4, "indoor"), ("T3", 4, "indoor"), ("T4", 8, "private")],
        "menu": {
            "Mains": [
                ("Nasi Lemak Ayam", "Coconut rice with fried chicken", "14.90", False, True),
                ("Mee Goreng", "Fried yellow noodles", "11.50", False, True),
            ],
            "Drinks": [
                ("Teh Tarik", "Pulled milk tea", "4.50", True, False),
            ],
        },
    },
    {
        "name": "Trattoria Verde",
        "description": "Wood-fired pizza and pasta",
        "cuisine_type": "Italian",
        "address": "5 Lorong Kurau, Bangsar",
        "phone": "+60322223333",
        "email": "ciao@verde.example",
        "opening_time": "12:00",
        "closing_time": "23:00",
        "slug": "verde",
        "tables": [("A1", 2, "patio"), ("A2", 2, "patio"), ("B1", 6, "indoor")],
        "menu": {
            "Pizza": [
                ("Margherita", "Tomato, mozzarella, basil", "32.00", True, False),
                ("Diavola", "Spicy salami", "38.00", False, True),
            ],
            "Pasta": [
                ("Carbonara", "Egg, pecorino, guanciale", "36.00", False, False),
            ],
        },
    },
]


def _seed_restaurant(db: Session, spec: dict, password_hash: str) -> None:
    restaurant = Restaurant(
        name=spec["name"],
        description=spec["description"],
        cuisine_type=spec["cuisine_type"],
        address=spec["address"],
        phone=spec["phone"],
        email=spec["email"],
        opening_time=spec["opening_time"],
        closing_time=spec["closing_time"],
        is_active=True,
    )
    db.add(restaurant)
    db.flush()

    for number, capacity, location in spec["tables"]:
        db.add(Table(
            restaurant_id=restaurant.id,
            table_number=number,
            capacity=capacity,
            location=location,
            is_available=True,
        ))

    for order, (category_name, items) in enumerate(spec["menu"].items(), start=1):
        category = MenuCategory(restaurant_id=restaurant.id, name=category_name, display_order=order)
        db.add(category)
        db.flush()
        for name, description, price, vegetarian, spicy in items:
            db.add(MenuItem(
                restaurant_id=restaurant.id,
                category_id=category.id,
                name=name,
                description=description,
                price=Decimal(price),
                is_available=True,
                is_vegetarian=vegetarian,
                is_spicy=spicy,
            ))

    slug = spec["slug"]
    db.add(Staff(
        restaurant_id=restaurant.id,
        name=f"{spec['name']} Manager",
        email=f"manager@{slug}.example",
        password_hash=password_hash,
        role=StaffRoles.MANAGER,
    ))
    db.add(Staff(
        restaurant_id=restaurant.id,
        name=f"{spec['name']} Host",
        email=f"host@{slug}.example",
        password_hash=password_hash,
        role=StaffRoles.STAFF,
    ))


def seed(db: Session) -> None:
    """
    Seed demo data. Idempotent: does nothing once any restaurant exists.
    """
    if db.scalar(select(Restaurant.id).limit(1)) is not None:
        logger.info("Database already seeded, skipping")
        return

    password_hash = hash_password(DEMO_PASSWORD)

    db.add(AdminUser(name="Platform Admin", email="admin@tablebook.example", password_hash=password_hash))
    db.add(Customer(
        name="Demo Customer",
        email="customer@tablebook.example",
        password_hash=password_hash,
        phone="+60123456789",
    ))
    for spec in RESTAURANTS:
        _seed_restaurant(db, spec, password_hash)

    safe_commit(db)
    logger.info("Seed data created", restaurants=len(RESTAURANTS))
