"""
Admin Domain Service.

Platform administration of restaurants and staff accounts.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tablebook_shared.config.logging import get_logger, mask_email
from tablebook_shared.infrastructure.db import safe_commit
from tablebook_shared.security.password import hash_password
from tablebook_shared.utils.exceptions import DuplicateEntityError, NotFoundError
from tablebook_shared.utils.schemas import (
    RestaurantCreate,
    RestaurantUpdate,
    StaffCreate,
    StaffUpdate,
)
from tablebook_api.models import Restaurant, Staff

logger = get_logger(__name__)


class RestaurantAdminService:
    """CRUD over all restaurants, active or not."""

    def __init__(self, db: Session):
        self._db = db

    def list_all(self) -> list[Restaurant]:
        return list(self._db.scalars(select(Restaurant).order_by(Restaurant.id)).all())

    def get(self, restaurant_id: int) -> Restaurant:
        restaurant = self._db.get(Restaurant, restaurant_id)
        if restaurant is None:
            raise NotFoundError("Restaurant", restaurant_id)
        return restaurant

    def create(self, data: RestaurantCreate) -> Restaurant:
        restaurant = Restaurant(**data.model_dump(), is_active=True)
        self._db.add(restaurant)
        safe_commit(self._db)
        logger.info("Restaurant created", restaurant_id=restaurant.id, name=restaurant.name)
        return restaurant

    def update(self, restaurant_id: int, data: RestaurantUpdate) -> Restaurant:
        restaurant = self.get(restaurant_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(restaurant, key, value)
        safe_commit(self._db)
        logger.info("Restaurant updated", restaurant_id=restaurant.id)
        return restaurant

    def delete(self, restaurant_id: int) -> None:
        """Hard delete; tables, menu, staff and reservations go with it."""
        restaurant = self.get(restaurant_id)
        self._db.delete(restaurant)
        safe_commit(self._db)
        logger.info("Restaurant deleted", restaurant_id=restaurant_id)


class StaffAdminService:
    """CRUD over staff accounts of every restaurant."""

    def __init__(self, db: Session):
        self._db = db

    def list_all(self, restaurant_id: int | None = None) -> list[Staff]:
        query = select(Staff)
        if restaurant_id is not None:
            query = query.where(Staff.restaurant_id == restaurant_id)
        return list(self._db.scalars(query.order_by(Staff.restaurant_id, Staff.name)).all())

    def get(self, staff_id: int) -> Staff:
        staff = self._db.get(Staff, staff_id)
        if staff is None:
            raise NotFoundError("Staff", staff_id)
        return staff

    def create(self, data: StaffCreate) -> Staff:
        if self._db.get(Restaurant, data.restaurant_id) is None:
            raise NotFoundError("Restaurant", data.restaurant_id)

        email = data.email.strip().lower()
        self._ensure_email_free(email)
        staff = Staff(
            restaurant_id=data.restaurant_id,
            name=data.name,
            email=email,
            password_hash=hash_password(data.password),
            role=data.role,
            is_active=True,
        )
        self._db.add(staff)
        self._commit(email)
        logger.info("Staff created", staff_id=staff.id, restaurant_id=staff.restaurant_id)
        return staff

    def update(self, staff_id: int, data: StaffUpdate) -> Staff:
        staff = self.get(staff_id)
        changes = data.model_dump(exclude_unset=True)

        password = changes.pop("password", None)
        if password:
            staff.password_hash = hash_password(password)

        email = changes.pop("email", None)
        if email:
            email = email.strip().lower()
            if email != staff.email:
                self._ensure_email_free(email)
                staff.email = email

        for key, value in changes.items():
            setattr(staff, key, value)
        self._commit(staff.email)
        return staff

    def delete(self, staff_id: int) -> None:
        staff = self.get(staff_id)
        self._db.delete(staff)
        safe_commit(self._db)
        logger.info("Staff deleted", staff_id=staff_id)

    def _ensure_email_free(self, email: str) -> None:
        if self._db.scalar(select(Staff.id).where(Staff.email == email)) is not None:
            raise DuplicateEntityError("Staff", mask_email(email))

    def _commit(self, email: str) -> None:
        try:
            safe_commit(self._db)
        except IntegrityError as exc:
            raise DuplicateEntityError("Staff", mask_email(email)) from exc
