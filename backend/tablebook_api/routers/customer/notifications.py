"""
Customer notifications inbox.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_customer, get_subject_id
from tablebook_shared.utils.schemas import AffectedRows, NotificationOutput, UnreadCount
from tablebook_api.services.events import NotificationInbox


router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _inbox(db: Session, ctx: dict) -> NotificationInbox:
    return NotificationInbox(db, customer_id=get_subject_id(ctx))


@router.get("", response_model=list[NotificationOutput])
def list_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> list[NotificationOutput]:
    return [NotificationOutput.model_validate(n) for n in _inbox(db, ctx).recent(unread_only=unread_only)]


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(db: Session = Depends(get_db), ctx: dict = Depends(require_customer)) -> UnreadCount:
    return UnreadCount(count=_inbox(db, ctx).unread_count())


@router.patch("/read-all", response_model=AffectedRows)
def mark_all_read(db: Session = Depends(get_db), ctx: dict = Depends(require_customer)) -> AffectedRows:
    return AffectedRows(updated=_inbox(db, ctx).mark_all_read())


@router.patch("/{notification_id}/read", response_model=NotificationOutput)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> NotificationOutput:
    return NotificationOutput.model_validate(_inbox(db, ctx).mark_read(notification_id))


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_customer),
) -> None:
    _inbox(db, ctx).delete(notification_id)
