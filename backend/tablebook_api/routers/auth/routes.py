"""
Authentication router.
Customer registration and login, plus the customer profile.
Staff and admin logins live with their own routers.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_customer, get_subject_id
from tablebook_shared.security.rate_limit import limiter
from tablebook_shared.utils.schemas import (
    CustomerOutput,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
)
from tablebook_api.services.domain import AccountService


router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=LoginResponse, status_code=201)
@limiter.limit("10/minute")
def register(request: Request, body: RegisterRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """
    Create a customer account and return an access token.
    Returns 409 if the email is already registered.
    """
    return AccountService(db).register_customer(body)


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
def login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    return AccountService(db).login_customer(body.email, body.password)


@router.get("/profile", response_model=CustomerOutput)
def profile(
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> CustomerOutput:
    customer = AccountService(db).get_customer(get_subject_id(ctx))
    return CustomerOutput.model_validate(customer)
