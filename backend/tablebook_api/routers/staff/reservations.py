"""
Staff reservation management, scoped to the staff member's restaurant.

Reservations of other restaurants are reported as not found.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_staff, get_venue_id
from tablebook_shared.utils.schemas import (
    ReservationOutput,
    ReservationStatusLiteral,
    ReservationStatusUpdate,
)
from tablebook_api.services.domain import ReservationService


router = APIRouter(tags=["staff-reservations"])


@router.get("/reservations", response_model=list[ReservationOutput])
def list_reservations(
    status: ReservationStatusLiteral | None = None,
    on_date: date | None = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> list[ReservationOutput]:
    reservations = ReservationService(db).list_for_venue(get_venue_id(ctx), status, on_date)
    return [ReservationOutput.model_validate(r) for r in reservations]


@router.get("/reservations/{reservation_id}", response_model=ReservationOutput)
def get_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> ReservationOutput:
    return ReservationOutput.model_validate(
        ReservationService(db).get_for_venue(get_venue_id(ctx), reservation_id)
    )


@router.patch("/reservations/{reservation_id}/status", response_model=ReservationOutput)
def set_reservation_status(
    reservation_id: int,
    body: ReservationStatusUpdate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> ReservationOutput:
    """
    Set a reservation's status directly.
    Moving into confirmed notifies the customer; terminal statuses are final.
    """
    reservation = ReservationService(db).set_status(get_venue_id(ctx), reservation_id, body.status)
    return ReservationOutput.model_validate(reservation)


@router.post("/reservations/{reservation_id}/approve-cancellation", response_model=ReservationOutput)
def approve_cancellation(
    reservation_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> ReservationOutput:
    reservation = ReservationService(db).approve_cancellation(get_venue_id(ctx), reservation_id)
    return ReservationOutput.model_validate(reservation)


@router.post("/reservations/{reservation_id}/reject-cancellation", response_model=ReservationOutput)
def reject_cancellation(
    reservation_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> ReservationOutput:
    """Keep the booking: the reservation returns to confirmed."""
    reservation = ReservationService(db).reject_cancellation(get_venue_id(ctx), reservation_id)
    return ReservationOutput.model_validate(reservation)
