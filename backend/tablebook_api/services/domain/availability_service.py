"""
Availability Domain Service.

Decides whether a table is free for a reservation slot. Every reservation
occupies its table for a fixed service window starting at its time; two
windows on the same table and date conflict when they overlap. Windows
that only touch at the boundary do not conflict.
"""

from datetime import date, time, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from tablebook_shared.config.constants import ReservationStatus, UnassignedTablePolicy
from tablebook_shared.config.logging import get_logger
from tablebook_shared.config.settings import settings
from tablebook_shared.utils.exceptions import NotFoundError
from tablebook_api.models import Reservation, Table

logger = get_logger(__name__)

SERVICE_WINDOW = timedelta(minutes=settings.service_window_minutes)


def _seconds(value: time) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


def windows_overlap(existing: time, requested: time, window: timedelta = SERVICE_WINDOW) -> bool:
    """
    True when [existing, existing + window) and [requested, requested + window) overlap.

        (existing >= requested AND existing < requested + window)
        OR (existing < requested AND existing + window > requested)
    """
    e = _seconds(existing)
    r = _seconds(requested)
    w = int(window.total_seconds())
    return (e >= r and e < r + w) or (e < r and e + w > r)


class AvailabilityService:
    """
    Table admission control.

    Reads go through the caller's session so the check can run inside the
    same transaction as the insert that depends on it.
    """

    def __init__(
        self,
        db: Session,
        window: timedelta = SERVICE_WINDOW,
        unassigned_table_policy: str | None = None,
    ):
        self._db = db
        self._window = window
        self._unassigned_policy = unassigned_table_policy or settings.unassigned_table_policy

    @property
    def unassigned_table_policy(self) -> str:
        return self._unassigned_policy

    def lock_table(self, venue_id: int, table_id: int) -> Table:
        """
        Lock the table row for the rest of the transaction.

        Concurrent admissions for the same table queue behind this lock,
        so check-then-insert cannot double-book.

        Raises NotFoundError if the table does not belong to the venue.
        """
        table = self._db.scalar(
            select(Table)
            .where(Table.id == table_id, Table.restaurant_id == venue_id)
            .with_for_update()
        )
        if table is None:
            raise NotFoundError("Table", table_id, restaurant_id=venue_id)
        return table

    def active_reservations(
        self,
        venue_id: int,
        table_id: int,
        on_date: date,
        exclude_reservation_id: int | None = None,
    ) -> list[Reservation]:
        """Reservations on the table and date that still occupy it."""
        query = select(Reservation).where(
            Reservation.restaurant_id == venue_id,
            Reservation.table_id == table_id,
            Reservation.reservation_date == on_date,
            Reservation.status.notin_(ReservationStatus.INACTIVE),
        )
        if exclude_reservation_id is not None:
            query = query.where(Reservation.id != exclude_reservation_id)
        return list(self._db.scalars(query).all())

    def is_available(
        self,
        venue_id: int,
        table_id: int | None,
        on_date: date,
        at_time: time,
        exclude_reservation_id: int | None = None,
    ) -> bool:
        """
        Whether a reservation at ``at_time`` on ``on_date`` may take the table.

        With no table the unassigned-table policy decides.
        """
        if table_id is None:
            return self._unassigned_policy == UnassignedTablePolicy.ACCEPT

        for existing in self.active_reservations(venue_id, table_id, on_date, exclude_reservation_id):
            if windows_overlap(existing.reservation_time, at_time, self._window):
                logger.debug(
                    "Table slot conflict",
                    table_id=table_id,
                    date=str(on_date),
                    requested=str(at_time),
                    existing_reservation_id=existing.id,
                    existing_time=str(existing.reservation_time),
                )
                return False
        return True

    def booked_table_ids(self, venue_id: int, on_date: date, at_time: time) -> set[int]:
        """Tables of the venue with an active reservation overlapping the slot."""
        rows = self._db.execute(
            select(Reservation.table_id, Reservation.reservation_time).where(
                Reservation.restaurant_id == venue_id,
                Reservation.reservation_date == on_date,
                Reservation.table_id.is_not(None),
                Reservation.status.notin_(ReservationStatus.INACTIVE),
            )
        ).all()
        return {
            table_id
            for table_id, reserved_at in rows
            if windows_overlap(reserved_at, at_time, self._window)
        }
