"""
Reservation Domain Service.

Owns the reservation lifecycle:

    pending -> confirmed -> completed
    pending | confirmed -> cancellation_requested -> cancelled | confirmed
    pending | confirmed -> cancelled | no-show   (staff)

Customer operations are scoped to the customer's own reservations, staff
operations to the staff member's restaurant. Anything outside the scope
is reported as not found. Notifications are emitted after commit.
"""

from datetime import date, time

from sqlalchemy import select
from sqlalchemy.orm import Session

from tablebook_shared.config.constants import (
    NotificationType,
    ReservationStatus,
    UnassignedTablePolicy,
    validate_reservation_transition,
)
from tablebook_shared.config.logging import reservation_logger as logger
from tablebook_shared.config.settings import settings
from tablebook_shared.infrastructure.db import run_with_db_retry, safe_commit
from tablebook_shared.utils.exceptions import (
    InvalidTransitionError,
    InvariantViolation,
    NotFoundError,
    ReservationNotFoundError,
    TableUnavailableError,
    ValidationError,
)
from tablebook_shared.utils.schemas import ReservationCreate
from tablebook_api.models import Customer, Reservation, Restaurant
from tablebook_api.services.domain.availability_service import AvailabilityService
from tablebook_api.services.events.notification_service import NotificationEmitter


NO_REASON_PROVIDED = "No reason provided"


def truncate_reason(reason: str | None, max_length: int | None = None) -> str | None:
    """Cancellation reason capped at the configured length; blank becomes None."""
    if not reason:
        return None
    limit = max_length if max_length is not None else settings.cancellation_reason_max_length
    return reason[:limit]


def _fmt_date(value: date) -> str:
    return value.isoformat()


def _fmt_time(value: time) -> str:
    return value.strftime("%H:%M")


class ReservationService:
    """
    Domain service for reservation operations.
    """

    def __init__(
        self,
        db: Session,
        availability: AvailabilityService | None = None,
        notifier: NotificationEmitter | None = None,
    ):
        self._db = db
        self._availability = availability or AvailabilityService(db)
        self._notifier = notifier or NotificationEmitter(db)

    # =========================================================================
    # Lookups
    # =========================================================================

    def _for_customer(self, customer_id: int, reservation_id: int, lock: bool = False) -> Reservation:
        query = select(Reservation).where(
            Reservation.id == reservation_id,
            Reservation.customer_id == customer_id,
        )
        if lock:
            query = query.with_for_update()
        reservation = self._db.scalar(query)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id, customer_id=customer_id)
        return reservation

    def _for_venue(self, venue_id: int, reservation_id: int, lock: bool = False) -> Reservation:
        query = select(Reservation).where(
            Reservation.id == reservation_id,
            Reservation.restaurant_id == venue_id,
        )
        if lock:
            query = query.with_for_update()
        reservation = self._db.scalar(query)
        if reservation is None:
            raise ReservationNotFoundError(reservation_id, restaurant_id=venue_id)
        return reservation

    def get_for_customer(self, customer_id: int, reservation_id: int) -> Reservation:
        return self._for_customer(customer_id, reservation_id)

    def get_for_venue(self, venue_id: int, reservation_id: int) -> Reservation:
        return self._for_venue(venue_id, reservation_id)

    def list_for_customer(self, customer_id: int) -> list[Reservation]:
        return list(self._db.scalars(
            select(Reservation)
            .where(Reservation.customer_id == customer_id)
            .order_by(Reservation.reservation_date.desc(), Reservation.reservation_time.desc())
        ).all())

    def list_for_venue(
        self,
        venue_id: int,
        status: str | None = None,
        on_date: date | None = None,
    ) -> list[Reservation]:
        query = select(Reservation).where(Reservation.restaurant_id == venue_id)
        if status:
            query = query.where(Reservation.status == status)
        if on_date:
            query = query.where(Reservation.reservation_date == on_date)
        query = query.order_by(Reservation.reservation_date.desc(), Reservation.reservation_time.desc())
        return list(self._db.scalars(query).all())

    def list_all(self, status: str | None = None, limit: int = 200) -> list[Reservation]:
        """Platform-wide listing for administrators."""
        query = select(Reservation)
        if status:
            query = query.where(Reservation.status == status)
        return list(self._db.scalars(
            query.order_by(Reservation.created_at.desc(), Reservation.id.desc()).limit(limit)
        ).all())

    # =========================================================================
    # Customer operations
    # =========================================================================

    def create(self, customer_id: int, request: ReservationCreate) -> Reservation:
        """
        Admit a new reservation.

        The table row is locked and the overlap check and insert commit in
        one transaction.

        Raises:
            NotFoundError: restaurant, customer or table unknown
            ValidationError: no table while the unassigned-table policy is "reject"
            TableUnavailableError: overlapping active reservation on the table
        """
        restaurant = self._db.scalar(
            select(Restaurant).where(
                Restaurant.id == request.restaurant_id,
                Restaurant.is_active.is_(True),
            )
        )
        if restaurant is None:
            raise NotFoundError("Restaurant", request.restaurant_id)

        customer = self._db.get(Customer, customer_id)
        if customer is None:
            raise NotFoundError("Customer", customer_id)

        def admit() -> Reservation:
            try:
                if request.table_id is not None:
                    self._availability.lock_table(restaurant.id, request.table_id)
                    if not self._availability.is_available(
                        restaurant.id,
                        request.table_id,
                        request.reservation_date,
                        request.reservation_time,
                    ):
                        raise TableUnavailableError(
                            request.table_id,
                            request.reservation_date,
                            request.reservation_time,
                        )
                elif self._availability.unassigned_table_policy == UnassignedTablePolicy.REJECT:
                    raise ValidationError("A table must be selected for this reservation")

                reservation = Reservation(
                    customer_id=customer.id,
                    restaurant_id=restaurant.id,
                    table_id=request.table_id,
                    reservation_date=request.reservation_date,
                    reservation_time=request.reservation_time,
                    party_size=request.party_size,
                    status=ReservationStatus.PENDING,
                    special_requests=request.special_requests,
                )
                self._db.add(reservation)
                self._db.flush()
            except Exception:
                # Releases the table lock
                self._db.rollback()
                raise
            safe_commit(self._db)
            return reservation

        reservation = run_with_db_retry(self._db, "create reservation", admit)

        logger.info(
            "Reservation created",
            reservation_id=reservation.id,
            restaurant_id=restaurant.id,
            table_id=reservation.table_id,
            date=_fmt_date(reservation.reservation_date),
            time=_fmt_time(reservation.reservation_time),
            party_size=reservation.party_size,
        )

        self._notifier.emit_to_venue(
            restaurant.id,
            NotificationType.RESERVATION_NEW,
            "New Reservation",
            f"{customer.name} made a reservation for {reservation.party_size} guest(s) "
            f"on {_fmt_date(reservation.reservation_date)} at {_fmt_time(reservation.reservation_time)}",
            reservation_id=reservation.id,
        )
        return reservation

    def update_special_requests(
        self,
        customer_id: int,
        reservation_id: int,
        special_requests: str | None,
    ) -> Reservation:
        reservation = self._for_customer(customer_id, reservation_id, lock=True)
        if reservation.status in ReservationStatus.TERMINAL:
            self._db.rollback()
            raise InvalidTransitionError("Reservation", reservation.status, reservation.status)
        reservation.special_requests = special_requests
        safe_commit(self._db)
        return reservation

    def request_cancellation(
        self,
        customer_id: int,
        reservation_id: int,
        reason: str | None,
    ) -> Reservation:
        """
        Customer asks the restaurant to cancel.

        Only from pending or confirmed. The reason is truncated to the
        configured maximum length.
        """
        reservation = self._for_customer(customer_id, reservation_id, lock=True)
        target = ReservationStatus.CANCELLATION_REQUESTED

        if reservation.status not in ReservationStatus.CANCELLABLE:
            current = reservation.status
            self._db.rollback()
            raise InvalidTransitionError("Reservation", current, target, reservation_id=reservation_id)

        self._apply_transition(reservation, target)
        reservation.cancellation_reason = truncate_reason(reason)
        safe_commit(self._db)

        logger.info(
            "Cancellation requested",
            reservation_id=reservation.id,
            restaurant_id=reservation.restaurant_id,
        )

        customer_name = reservation.customer.name if reservation.customer else "A customer"
        message = (
            f"{customer_name} requested to cancel the reservation on "
            f"{_fmt_date(reservation.reservation_date)} at {_fmt_time(reservation.reservation_time)}"
            f". Reason: {reservation.cancellation_reason or NO_REASON_PROVIDED}"
        )

        self._notifier.emit_to_venue(
            reservation.restaurant_id,
            NotificationType.CANCELLATION_REQUEST,
            "Cancellation Request",
            message,
            reservation_id=reservation.id,
        )
        return reservation

    # =========================================================================
    # Staff operations
    # =========================================================================

    def approve_cancellation(self, venue_id: int, reservation_id: int) -> Reservation:
        """cancellation_requested -> cancelled, reason cleared, customer notified."""
        reservation = self._resolve_cancellation(
            venue_id, reservation_id, ReservationStatus.CANCELLED
        )
        self._notifier.emit_to_customer(
            reservation.customer_id,
            NotificationType.CANCELLATION_APPROVED,
            "Cancellation Approved",
            f"Your reservation at {reservation.restaurant.name} on "
            f"{_fmt_date(reservation.reservation_date)} at {_fmt_time(reservation.reservation_time)} "
            "has been cancelled as requested.",
            reservation_id=reservation.id,
        )
        return reservation

    def reject_cancellation(self, venue_id: int, reservation_id: int) -> Reservation:
        """cancellation_requested -> confirmed, reason cleared, customer notified."""
        reservation = self._resolve_cancellation(
            venue_id, reservation_id, ReservationStatus.CONFIRMED
        )
        self._notifier.emit_to_customer(
            reservation.customer_id,
            NotificationType.CANCELLATION_REJECTED,
            "Cancellation Rejected",
            f"Your cancellation request for {reservation.restaurant.name} on "
            f"{_fmt_date(reservation.reservation_date)} at {_fmt_time(reservation.reservation_time)} "
            "has been rejected. Your reservation remains confirmed.",
            reservation_id=reservation.id,
        )
        return reservation

    def set_status(self, venue_id: int, reservation_id: int, new_status: str) -> Reservation:
        """
        Staff direct status set.

        Skips the workflow table, but a terminal reservation stays terminal.
        Entering confirmed from another status notifies the customer.
        """
        if new_status not in ReservationStatus.ALL:
            raise ValidationError(f"Unknown reservation status '{new_status}'", status=new_status)

        reservation = self._for_venue(venue_id, reservation_id, lock=True)
        previous = reservation.status

        if previous == new_status:
            self._db.rollback()
            return reservation

        if previous in ReservationStatus.TERMINAL:
            self._db.rollback()
            raise InvalidTransitionError("Reservation", previous, new_status, reservation_id=reservation_id)

        notify_confirmed = new_status == ReservationStatus.CONFIRMED
        if notify_confirmed:
            self._require_customer(reservation)

        reservation.status = new_status
        if previous == ReservationStatus.CANCELLATION_REQUESTED:
            reservation.cancellation_reason = None
        safe_commit(self._db)

        logger.info(
            "Reservation status set",
            reservation_id=reservation.id,
            restaurant_id=venue_id,
            from_status=previous,
            to_status=new_status,
        )

        if notify_confirmed:
            self._notifier.emit_to_customer(
                reservation.customer_id,
                NotificationType.RESERVATION_CONFIRMED,
                "Reservation Confirmed",
                f"Your reservation at {reservation.restaurant.name} on "
                f"{_fmt_date(reservation.reservation_date)} at {_fmt_time(reservation.reservation_time)} "
                "has been confirmed!",
                reservation_id=reservation.id,
            )
        return reservation

    # =========================================================================
    # Helpers
    # =========================================================================

    def _apply_transition(self, reservation: Reservation, new_status: str) -> None:
        """Move along the workflow table or raise InvalidTransitionError."""
        if not validate_reservation_transition(reservation.status, new_status):
            current = reservation.status
            self._db.rollback()
            raise InvalidTransitionError(
                "Reservation", current, new_status, reservation_id=reservation.id
            )
        reservation.status = new_status

    def _require_customer(self, reservation: Reservation) -> None:
        if reservation.customer_id is None:
            reservation_id = reservation.id
            self._db.rollback()
            raise InvariantViolation(
                "reservation has an owning customer",
                reservation_id=reservation_id,
            )

    def _resolve_cancellation(self, venue_id: int, reservation_id: int, outcome: str) -> Reservation:
        reservation = self._for_venue(venue_id, reservation_id, lock=True)

        if reservation.status != ReservationStatus.CANCELLATION_REQUESTED:
            current = reservation.status
            self._db.rollback()
            raise InvalidTransitionError(
                "Reservation", current, outcome, reservation_id=reservation_id
            )

        self._require_customer(reservation)
        self._apply_transition(reservation, outcome)
        reservation.cancellation_reason = None
        safe_commit(self._db)

        logger.info(
            "Cancellation request resolved",
            reservation_id=reservation.id,
            restaurant_id=venue_id,
            outcome=outcome,
        )
        return reservation
