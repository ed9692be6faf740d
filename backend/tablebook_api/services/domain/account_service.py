"""
Account Domain Service.

Registration and credential checks for the three principal kinds.
Login failures never reveal whether the email exists.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tablebook_shared.config.constants import Roles
from tablebook_shared.config.logging import auth_logger as logger, mask_email
from tablebook_shared.config.settings import settings
from tablebook_shared.infrastructure.db import safe_commit
from tablebook_shared.security.auth import (
    sign_admin_token,
    sign_customer_token,
    sign_staff_token,
)
from tablebook_shared.security.password import hash_password, verify_password
from tablebook_shared.utils.exceptions import AuthenticationError, DuplicateEntityError, NotFoundError
from tablebook_shared.utils.schemas import LoginResponse, PrincipalInfo, RegisterRequest
from tablebook_api.models import AdminUser, Customer, Restaurant, Staff

INVALID_CREDENTIALS = "Invalid email or password"


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _login_response(token: str, user: PrincipalInfo) -> LoginResponse:
    return LoginResponse(
        access_token=token,
        token_type="Bearer",
        expires_in=settings.jwt_access_token_expire_minutes * 60,
        user=user,
    )


class AccountService:
    """Service for principal registration and login."""

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Customers
    # =========================================================================

    def register_customer(self, request: RegisterRequest) -> LoginResponse:
        """
        Create a customer account and log it in.

        Raises:
            DuplicateEntityError: email already registered
        """
        email = _normalize_email(request.email)
        if self._db.scalar(select(Customer.id).where(Customer.email == email)) is not None:
            raise DuplicateEntityError("Account", mask_email(email))

        customer = Customer(
            name=request.name,
            email=email,
            password_hash=hash_password(request.password),
            phone=request.phone,
        )
        self._db.add(customer)
        try:
            safe_commit(self._db)
        except IntegrityError as exc:
            raise DuplicateEntityError("Account", mask_email(email)) from exc

        logger.info("REGISTER_SUCCESS", email=mask_email(email), customer_id=customer.id)
        return self._customer_login(customer)

    def login_customer(self, email: str, password: str) -> LoginResponse:
        email = _normalize_email(email)
        customer = self._db.scalar(select(Customer).where(Customer.email == email))
        if customer is None or not verify_password(password, customer.password_hash):
            logger.warning("LOGIN_FAILED", email=mask_email(email), role=Roles.CUSTOMER)
            raise AuthenticationError(INVALID_CREDENTIALS)
        logger.info("LOGIN_SUCCESS", email=mask_email(email), customer_id=customer.id)
        return self._customer_login(customer)

    def _customer_login(self, customer: Customer) -> LoginResponse:
        return _login_response(
            sign_customer_token(customer.id, customer.email, customer.name),
            PrincipalInfo(id=customer.id, name=customer.name, email=customer.email, role=Roles.CUSTOMER),
        )

    def get_customer(self, customer_id: int) -> Customer:
        customer = self._db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)
        return customer

    # =========================================================================
    # Staff and admins
    # =========================================================================

    def login_staff(self, email: str, password: str) -> LoginResponse:
        """Staff login; inactive accounts and inactive restaurants are refused."""
        email = _normalize_email(email)
        staff = self._db.scalar(
            select(Staff)
            .join(Restaurant, Staff.restaurant_id == Restaurant.id)
            .where(
                Staff.email == email,
                Staff.is_active.is_(True),
                Restaurant.is_active.is_(True),
            )
        )
        if staff is None or not verify_password(password, staff.password_hash):
            logger.warning("LOGIN_FAILED", email=mask_email(email), role=Roles.STAFF)
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info(
            "LOGIN_SUCCESS",
            email=mask_email(email),
            staff_id=staff.id,
            restaurant_id=staff.restaurant_id,
        )
        return _login_response(
            sign_staff_token(staff.id, staff.restaurant_id, staff.email, staff.role),
            PrincipalInfo(
                id=staff.id,
                name=staff.name,
                email=staff.email,
                role=Roles.STAFF,
                restaurant_id=staff.restaurant_id,
                staff_role=staff.role,
            ),
        )

    def login_admin(self, email: str, password: str) -> LoginResponse:
        email = _normalize_email(email)
        admin = self._db.scalar(select(AdminUser).where(AdminUser.email == email))
        if admin is None or not verify_password(password, admin.password_hash):
            logger.warning("LOGIN_FAILED", email=mask_email(email), role=Roles.ADMIN)
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info("LOGIN_SUCCESS", email=mask_email(email), admin_id=admin.id)
        return _login_response(
            sign_admin_token(admin.id, admin.email),
            PrincipalInfo(id=admin.id, name=admin.name, email=admin.email, role=Roles.ADMIN),
        )
