"""
Notification emitter.

Writes inbox rows for a restaurant (staff) or a customer. Emission is
fire-and-forget and runs after the triggering transaction has committed:
each notification commits on its own, and a failure is logged and rolled
back without reaching the caller.

Usage:
    safe_commit(db)  # primary state change first
    NotificationEmitter(db).emit_to_customer(
        customer_id, NotificationType.CANCELLATION_APPROVED, "Cancellation Approved", message,
        reservation_id=reservation.id,
    )
"""

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from tablebook_shared.config.constants import Limits
from tablebook_shared.config.logging import get_logger
from tablebook_shared.infrastructure.db import safe_commit
from tablebook_shared.utils.exceptions import NotFoundError
from tablebook_api.models import Notification

logger = get_logger(__name__)


class NotificationEmitter:
    """Best-effort producer of inbox rows."""

    def __init__(self, db: Session):
        self._db = db

    def emit_to_venue(
        self,
        venue_id: int,
        notification_type: str,
        title: str,
        message: str,
        reservation_id: int | None = None,
    ) -> bool:
        """Record a notification for the restaurant's staff inbox. Never raises."""
        return self._emit(
            notification_type,
            title,
            message,
            reservation_id,
            restaurant_id=venue_id,
        )

    def emit_to_customer(
        self,
        customer_id: int,
        notification_type: str,
        title: str,
        message: str,
        reservation_id: int | None = None,
    ) -> bool:
        """Record a notification for the customer's inbox. Never raises."""
        return self._emit(
            notification_type,
            title,
            message,
            reservation_id,
            customer_id=customer_id,
        )

    def _emit(
        self,
        notification_type: str,
        title: str,
        message: str,
        reservation_id: int | None,
        restaurant_id: int | None = None,
        customer_id: int | None = None,
    ) -> bool:
        try:
            notification = Notification(
                restaurant_id=restaurant_id,
                customer_id=customer_id,
                type=notification_type,
                title=title,
                message=message,
                reservation_id=reservation_id,
                is_read=False,
            )
            self._db.add(notification)
            self._db.commit()
            logger.info(
                "Notification emitted",
                notification_id=notification.id,
                notification_type=notification_type,
                restaurant_id=restaurant_id,
                customer_id=customer_id,
            )
            return True
        except Exception as e:
            logger.error(
                "Notification emission failed",
                notification_type=notification_type,
                restaurant_id=restaurant_id,
                customer_id=customer_id,
                reservation_id=reservation_id,
                error=str(e),
                exc_info=True,
            )
            try:
                self._db.rollback()
            except Exception as rollback_error:
                logger.error("Rollback after notification failure failed", error=str(rollback_error))
            return False


class NotificationInbox:
    """
    Read side of notifications for one owner.

    Exactly one of restaurant_id / customer_id is set; every query filters
    on it, so rows of other owners are reported as not found.
    """

    def __init__(self, db: Session, restaurant_id: int | None = None, customer_id: int | None = None):
        if (restaurant_id is None) == (customer_id is None):
            raise ValueError("NotificationInbox needs exactly one of restaurant_id or customer_id")
        self._db = db
        self._restaurant_id = restaurant_id
        self._customer_id = customer_id

    def _owner_filter(self):
        if self._restaurant_id is not None:
            return Notification.restaurant_id == self._restaurant_id
        return Notification.customer_id == self._customer_id

    def recent(self, unread_only: bool = False, limit: int = Limits.NOTIFICATION_PAGE_SIZE) -> list[Notification]:
        query = select(Notification).where(self._owner_filter())
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        return list(self._db.scalars(query).all())

    def unread_count(self) -> int:
        return self._db.scalar(
            select(func.count(Notification.id)).where(
                self._owner_filter(),
                Notification.is_read.is_(False),
            )
        ) or 0

    def mark_read(self, notification_id: int) -> Notification:
        notification = self._db.scalar(
            select(Notification).where(Notification.id == notification_id, self._owner_filter())
        )
        if notification is None:
            raise NotFoundError("Notification", notification_id)
        notification.is_read = True
        safe_commit(self._db)
        return notification

    def mark_all_read(self) -> int:
        result = self._db.execute(
            update(Notification)
            .where(self._owner_filter(), Notification.is_read.is_(False))
            .values(is_read=True)
        )
        safe_commit(self._db)
        return result.rowcount or 0

    def delete(self, notification_id: int) -> None:
        result = self._db.execute(
            delete(Notification).where(Notification.id == notification_id, self._owner_filter())
        )
        if not result.rowcount:
            self._db.rollback()
            raise NotFoundError("Notification", notification_id)
        safe_commit(self._db)
