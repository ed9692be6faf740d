"""
Venue Domain Service.

Tables, floor plan and menu of one restaurant. Staff writes are scoped to
their restaurant; the public side only sees active restaurants.
"""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tablebook_shared.config.logging import get_logger
from tablebook_shared.infrastructure.db import safe_commit
from tablebook_shared.utils.exceptions import ConflictError, DuplicateEntityError, NotFoundError, ValidationError
from tablebook_shared.utils.schemas import (
    FloorPlanResponse,
    FloorPlanTable,
    MenuCategoryCreate,
    MenuCategoryOutput,
    MenuCategoryUpdate,
    MenuCategoryWithItems,
    MenuItemCreate,
    MenuItemOutput,
    MenuItemUpdate,
    MenuOutput,
    TableCreate,
    TableUpdate,
)
from tablebook_api.models import MenuCategory, MenuItem, Reservation, Restaurant, Table
from tablebook_api.services.domain.availability_service import AvailabilityService

logger = get_logger(__name__)


class VenueService:
    """Service for a restaurant's tables and menu."""

    def __init__(self, db: Session, availability: AvailabilityService | None = None):
        self._db = db
        self._availability = availability or AvailabilityService(db)

    # =========================================================================
    # Restaurants (public)
    # =========================================================================

    def list_restaurants(self, cuisine_type: str | None = None) -> list[Restaurant]:
        query = select(Restaurant).where(Restaurant.is_active.is_(True))
        if cuisine_type:
            query = query.where(Restaurant.cuisine_type == cuisine_type)
        return list(self._db.scalars(query.order_by(Restaurant.name)).all())

    def get_restaurant(self, restaurant_id: int) -> Restaurant:
        restaurant = self._db.scalar(
            select(Restaurant).where(
                Restaurant.id == restaurant_id,
                Restaurant.is_active.is_(True),
            )
        )
        if restaurant is None:
            raise NotFoundError("Restaurant", restaurant_id)
        return restaurant

    # =========================================================================
    # Tables
    # =========================================================================

    def list_tables(self, venue_id: int) -> list[Table]:
        return list(self._db.scalars(
            select(Table).where(Table.restaurant_id == venue_id).order_by(Table.table_number)
        ).all())

    def get_table(self, venue_id: int, table_id: int) -> Table:
        table = self._db.scalar(
            select(Table).where(Table.id == table_id, Table.restaurant_id == venue_id)
        )
        if table is None:
            raise NotFoundError("Table", table_id, restaurant_id=venue_id)
        return table

    def floor_plan(
        self,
        restaurant_id: int,
        on_date: date | None = None,
        at_time: time | None = None,
    ) -> FloorPlanResponse:
        """All tables with is_booked computed for the slot (no slot: nothing booked)."""
        restaurant = self.get_restaurant(restaurant_id)
        booked: set[int] = set()
        if on_date is not None and at_time is not None:
            booked = self._availability.booked_table_ids(restaurant.id, on_date, at_time)

        tables = [
            FloorPlanTable(
                id=table.id,
                restaurant_id=table.restaurant_id,
                table_number=table.table_number,
                capacity=table.capacity,
                location=table.location,
                is_available=table.is_available,
                is_booked=table.id in booked,
            )
            for table in self.list_tables(restaurant.id)
        ]
        return FloorPlanResponse(
            restaurant_id=restaurant.id,
            reservation_date=on_date,
            reservation_time=at_time,
            tables=tables,
        )

    def create_table(self, venue_id: int, data: TableCreate) -> Table:
        self._ensure_table_number_free(venue_id, data.table_number)
        table = Table(restaurant_id=venue_id, **data.model_dump())
        self._db.add(table)
        self._commit_unique("Table", data.table_number)
        logger.info("Table created", table_id=table.id, restaurant_id=venue_id)
        return table

    def update_table(self, venue_id: int, table_id: int, data: TableUpdate) -> Table:
        table = self.get_table(venue_id, table_id)
        changes = data.model_dump(exclude_unset=True)
        new_number = changes.get("table_number")
        if new_number and new_number != table.table_number:
            self._ensure_table_number_free(venue_id, new_number)
        for key, value in changes.items():
            setattr(table, key, value)
        self._commit_unique("Table", new_number)
        return table

    def delete_table(self, venue_id: int, table_id: int) -> None:
        """409 while any reservation, past or upcoming, still points at the table."""
        table = self.get_table(venue_id, table_id)
        referenced = self._db.scalar(
            select(Reservation.id).where(Reservation.table_id == table_id).limit(1)
        )
        if referenced is not None:
            raise ConflictError(
                "Table has reservations and cannot be deleted; mark it unavailable instead",
                table_id=table_id,
                restaurant_id=venue_id,
            )
        self._db.delete(table)
        safe_commit(self._db)
        logger.info("Table deleted", table_id=table_id, restaurant_id=venue_id)

    def _ensure_table_number_free(self, venue_id: int, table_number: str) -> None:
        exists = self._db.scalar(
            select(Table.id).where(
                Table.restaurant_id == venue_id,
                Table.table_number == table_number,
            )
        )
        if exists is not None:
            raise DuplicateEntityError("Table", table_number, restaurant_id=venue_id)

    def _commit_unique(self, entity: str, identifier: str | None) -> None:
        try:
            safe_commit(self._db)
        except IntegrityError as exc:
            raise DuplicateEntityError(entity, identifier) from exc

    # =========================================================================
    # Menu
    # =========================================================================

    def menu(self, restaurant_id: int, available_only: bool = True) -> MenuOutput:
        """Menu grouped by category, categories in display order."""
        restaurant = self.get_restaurant(restaurant_id)
        categories = self.list_categories(restaurant.id)
        items = self.list_items(restaurant.id, available_only=available_only)

        by_category: dict[int | None, list[MenuItemOutput]] = {}
        for item in items:
            by_category.setdefault(item.category_id, []).append(MenuItemOutput.model_validate(item))

        return MenuOutput(
            restaurant_id=restaurant.id,
            categories=[
                MenuCategoryWithItems(
                    **MenuCategoryOutput.model_validate(category).model_dump(),
                    items=by_category.get(category.id, []),
                )
                for category in categories
            ],
            uncategorized=by_category.get(None, []),
        )

    def list_categories(self, venue_id: int) -> list[MenuCategory]:
        return list(self._db.scalars(
            select(MenuCategory)
            .where(MenuCategory.restaurant_id == venue_id)
            .order_by(MenuCategory.display_order, MenuCategory.name)
        ).all())

    def get_category(self, venue_id: int, category_id: int) -> MenuCategory:
        category = self._db.scalar(
            select(MenuCategory).where(
                MenuCategory.id == category_id,
                MenuCategory.restaurant_id == venue_id,
            )
        )
        if category is None:
            raise NotFoundError("Menu category", category_id, restaurant_id=venue_id)
        return category

    def create_category(self, venue_id: int, data: MenuCategoryCreate) -> MenuCategory:
        category = MenuCategory(restaurant_id=venue_id, **data.model_dump())
        self._db.add(category)
        safe_commit(self._db)
        return category

    def update_category(self, venue_id: int, category_id: int, data: MenuCategoryUpdate) -> MenuCategory:
        category = self.get_category(venue_id, category_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(category, key, value)
        safe_commit(self._db)
        return category

    def delete_category(self, venue_id: int, category_id: int) -> None:
        """Delete a category; its items stay on the menu uncategorized."""
        category = self.get_category(venue_id, category_id)
        for item in self._db.scalars(
            select(MenuItem).where(MenuItem.category_id == category.id)
        ).all():
            item.category_id = None
        self._db.delete(category)
        safe_commit(self._db)

    def list_items(self, venue_id: int, available_only: bool = False) -> list[MenuItem]:
        query = select(MenuItem).where(MenuItem.restaurant_id == venue_id)
        if available_only:
            query = query.where(MenuItem.is_available.is_(True))
        return list(self._db.scalars(query.order_by(MenuItem.name)).all())

    def get_item(self, venue_id: int, item_id: int) -> MenuItem:
        item = self._db.scalar(
            select(MenuItem).where(MenuItem.id == item_id, MenuItem.restaurant_id == venue_id)
        )
        if item is None:
            raise NotFoundError("Menu item", item_id, restaurant_id=venue_id)
        return item

    def create_item(self, venue_id: int, data: MenuItemCreate) -> MenuItem:
        values = data.model_dump()
        self._check_category(venue_id, values.get("category_id"))
        values["price"] = Decimal(str(values["price"]))
        item = MenuItem(restaurant_id=venue_id, **values)
        self._db.add(item)
        safe_commit(self._db)
        logger.info("Menu item created", menu_item_id=item.id, restaurant_id=venue_id)
        return item

    def update_item(self, venue_id: int, item_id: int, data: MenuItemUpdate) -> MenuItem:
        item = self.get_item(venue_id, item_id)
        changes = data.model_dump(exclude_unset=True)
        if "category_id" in changes:
            self._check_category(venue_id, changes["category_id"])
        if changes.get("price") is not None:
            changes["price"] = Decimal(str(changes["price"]))
        for key, value in changes.items():
            setattr(item, key, value)
        safe_commit(self._db)
        return item

    def delete_item(self, venue_id: int, item_id: int) -> None:
        item = self.get_item(venue_id, item_id)
        self._db.delete(item)
        safe_commit(self._db)

    def _check_category(self, venue_id: int, category_id: int | None) -> None:
        if category_id is None:
            return
        exists = self._db.scalar(
            select(MenuCategory.id).where(
                MenuCategory.id == category_id,
                MenuCategory.restaurant_id == venue_id,
            )
        )
        if exists is None:
            raise ValidationError("Invalid category_id", field="category_id", value=category_id)
