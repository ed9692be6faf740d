"""
Customer reservations router.

Customers book tables, edit special requests and ask for cancellation.
Confirmation, completion and resolving cancellation requests are staff
operations (see routers/staff/reservations.py).
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_customer, get_subject_id
from tablebook_shared.utils.schemas import (
    CancellationRequest,
    ReservationCreate,
    ReservationOutput,
    ReservationUpdate,
)
from tablebook_api.services.domain import ReservationService


router = APIRouter(prefix="/api/reservations", tags=["reservations"])


@router.post("", response_model=ReservationOutput, status_code=status.HTTP_201_CREATED)
def create_reservation(
    body: ReservationCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> ReservationOutput:
    """
    Book a table.

    Returns 409 if the table already has an active reservation whose
    service window overlaps the requested time.
    """
    reservation = ReservationService(db).create(get_subject_id(ctx), body)
    return ReservationOutput.model_validate(reservation)


@router.get("", response_model=list[ReservationOutput])
def list_reservations(
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> list[ReservationOutput]:
    reservations = ReservationService(db).list_for_customer(get_subject_id(ctx))
    return [ReservationOutput.model_validate(r) for r in reservations]


@router.get("/{reservation_id}", response_model=ReservationOutput)
def get_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> ReservationOutput:
    reservation = ReservationService(db).get_for_customer(get_subject_id(ctx), reservation_id)
    return ReservationOutput.model_validate(reservation)


@router.patch("/{reservation_id}", response_model=ReservationOutput)
def update_reservation(
    reservation_id: int,
    body: ReservationUpdate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> ReservationOutput:
    reservation = ReservationService(db).update_special_requests(
        get_subject_id(ctx), reservation_id, body.special_requests,
    )
    return ReservationOutput.model_validate(reservation)


@router.post("/{reservation_id}/request-cancellation", response_model=ReservationOutput)
def request_cancellation(
    reservation_id: int,
    body: CancellationRequest,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> ReservationOutput:
    reservation = ReservationService(db).request_cancellation(
        get_subject_id(ctx), reservation_id, body.reason,
    )
    return ReservationOutput.model_validate(reservation)
