"""
Staff login, dashboard stats and the restaurant's notification inbox.
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_staff, get_venue_id
from tablebook_shared.security.rate_limit import limiter
from tablebook_shared.utils.schemas import (
    AffectedRows,
    LoginRequest,
    LoginResponse,
    NotificationOutput,
    UnreadCount,
    VenueStats,
)
from tablebook_api.services.domain import AccountService, StatsService
from tablebook_api.services.events import NotificationInbox


router = APIRouter(tags=["staff"])


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
def staff_login(request: Request, body: LoginRequest, db: Session = Depends(get_db)) -> LoginResponse:
    """
    Staff login. The token is bound to the staff member's restaurant.
    Inactive staff and staff of inactive restaurants cannot log in.
    """
    return AccountService(db).login_staff(body.email, body.password)


@router.get("/stats", response_model=VenueStats)
def venue_stats(db: Session = Depends(get_db), ctx: dict = Depends(require_staff)) -> VenueStats:
    return StatsService(db).venue_stats(get_venue_id(ctx))


def _inbox(db: Session, ctx: dict) -> NotificationInbox:
    return NotificationInbox(db, restaurant_id=get_venue_id(ctx))


@router.get("/notifications", response_model=list[NotificationOutput])
def list_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> list[NotificationOutput]:
    return [NotificationOutput.model_validate(n) for n in _inbox(db, ctx).recent(unread_only=unread_only)]


@router.get("/notifications/unread-count", response_model=UnreadCount)
def unread_count(db: Session = Depends(get_db), ctx: dict = Depends(require_staff)) -> UnreadCount:
    return UnreadCount(count=_inbox(db, ctx).unread_count())


@router.patch("/notifications/read-all", response_model=AffectedRows)
def mark_all_read(db: Session = Depends(get_db), ctx: dict = Depends(require_staff)) -> AffectedRows:
    return AffectedRows(updated=_inbox(db, ctx).mark_all_read())


@router.patch("/notifications/{notification_id}/read", response_model=NotificationOutput)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> NotificationOutput:
    return NotificationOutput.model_validate(_inbox(db, ctx).mark_read(notification_id))


@router.delete("/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> None:
    _inbox(db, ctx).delete(notification_id)
