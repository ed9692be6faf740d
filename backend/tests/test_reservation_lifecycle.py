"""
Tests for ReservationService: admission, lifecycle transitions and
cancellation workflow.
"""

from datetime import time

import pytest
from hypothesis import given, strategies as st
from sqlalchemy import select

from tablebook_api.models import Notification, Reservation
from tablebook_api.services.domain import AvailabilityService, ReservationService
from tablebook_api.services.domain.reservation_service import truncate_reason
from tablebook_shared.config.constants import (
    NotificationType,
    ReservationStatus,
    UnassignedTablePolicy,
    validate_reservation_transition,
)
from tablebook_shared.utils.exceptions import (
    ConflictError,
    InvalidTransitionError,
    InvariantViolation,
    NotFoundError,
    ReservationNotFoundError,
    TableUnavailableError,
    ValidationError,
)
from tablebook_shared.utils.schemas import ReservationCreate
from tests.conftest import BOOKING_DATE, make_reservation, make_table


def _request(restaurant, table=None, at=time(19, 0), party_size=2) -> ReservationCreate:
    return ReservationCreate(
        restaurant_id=restaurant.id,
        table_id=table.id if table is not None else None,
        reservation_date=BOOKING_DATE,
        reservation_time=at,
        party_size=party_size,
    )


def _notifications(db, **filters) -> list[Notification]:
    query = select(Notification)
    for column, value in filters.items():
        query = query.where(getattr(Notification, column) == value)
    return list(db.scalars(query).all())


class TestCreateReservation:
    """Admission through the service."""

    def test_creates_pending_reservation_and_notifies_venue(
        self, db_session, seed_restaurant, seed_table, seed_customer
    ):
        reservation = ReservationService(db_session).create(
            seed_customer.id, _request(seed_restaurant, seed_table, party_size=3)
        )

        assert reservation.status == ReservationStatus.PENDING
        assert reservation.customer_id == seed_customer.id
        notes = _notifications(db_session, restaurant_id=seed_restaurant.id)
        assert len(notes) == 1
        assert notes[0].type == NotificationType.RESERVATION_NEW
        assert notes[0].message == (
            f"Dina Diner made a reservation for 3 guest(s) on {BOOKING_DATE.isoformat()} at 19:00"
        )

    def test_scenario_a_overlap_rejected_touching_accepted(
        self, db_session, seed_restaurant, seed_customer
    ):
        """Confirmed at 18:00 blocks 19:30 but not 20:00 on the same table."""
        t1 = make_table(db_session, seed_restaurant, number="T1", capacity=4)
        make_reservation(
            db_session, seed_restaurant, t1, seed_customer, at=time(18, 0),
            status=ReservationStatus.CONFIRMED,
        )
        service = ReservationService(db_session)

        with pytest.raises(TableUnavailableError) as exc_info:
            service.create(seed_customer.id, _request(seed_restaurant, t1, at=time(19, 30)))
        assert exc_info.value.status_code == 409

        accepted = service.create(seed_customer.id, _request(seed_restaurant, t1, at=time(20, 0)))
        assert accepted.status == ReservationStatus.PENDING

        active = db_session.scalars(
            select(Reservation).where(Reservation.table_id == t1.id)
        ).all()
        assert len(active) == 2

    def test_rejected_admission_emits_nothing(self, db_session, seed_restaurant, seed_table, seed_customer):
        make_reservation(db_session, seed_restaurant, seed_table, seed_customer, at=time(19, 0))

        with pytest.raises(ConflictError):
            ReservationService(db_session).create(seed_customer.id, _request(seed_restaurant, seed_table))

        assert _notifications(db_session) == []

    def test_cancelled_reservation_frees_the_slot(self, db_session, seed_restaurant, seed_table, seed_customer):
        make_reservation(
            db_session, seed_restaurant, seed_table, seed_customer, at=time(19, 0),
            status=ReservationStatus.CANCELLED,
        )

        reservation = ReservationService(db_session).create(seed_customer.id, _request(seed_restaurant, seed_table))

        assert reservation.id is not None

    def test_table_of_other_restaurant_is_not_found(
        self, db_session, seed_restaurant, other_restaurant, seed_customer
    ):
        foreign = make_table(db_session, other_restaurant)

        with pytest.raises(NotFoundError):
            ReservationService(db_session).create(seed_customer.id, _request(seed_restaurant, foreign))

    def test_unknown_restaurant_is_not_found(self, db_session, seed_restaurant, seed_customer):
        request = _request(seed_restaurant)
        request.restaurant_id = 9999

        with pytest.raises(NotFoundError):
            ReservationService(db_session).create(seed_customer.id, request)

    def test_unassigned_table_accepted_by_default_policy(self, db_session, seed_restaurant, seed_customer):
        service = ReservationService(
            db_session,
            availability=AvailabilityService(db_session, unassigned_table_policy=UnassignedTablePolicy.ACCEPT),
        )

        reservation = service.create(seed_customer.id, _request(seed_restaurant))

        assert reservation.table_id is None

    def test_unassigned_table_rejected_by_reject_policy(self, db_session, seed_restaurant, seed_customer):
        service = ReservationService(
            db_session,
            availability=AvailabilityService(db_session, unassigned_table_policy=UnassignedTablePolicy.REJECT),
        )

        with pytest.raises(ValidationError):
            service.create(seed_customer.id, _request(seed_restaurant))

    def test_party_size_not_checked_against_capacity(self, db_session, seed_restaurant, seed_customer):
        small = make_table(db_session, seed_restaurant, number="S1", capacity=2)

        reservation = ReservationService(db_session).create(
            seed_customer.id, _request(seed_restaurant, small, party_size=6)
        )

        assert reservation.party_size == 6


class TestTransitionTable:
    """The workflow graph itself."""

    @pytest.mark.parametrize("terminal", sorted(ReservationStatus.TERMINAL))
    def test_terminal_states_have_no_exits(self, terminal):
        for target in ReservationStatus.ALL:
            assert not validate_reservation_transition(terminal, target)

    def test_completed_to_pending_is_illegal(self):
        assert not validate_reservation_transition(ReservationStatus.COMPLETED, ReservationStatus.PENDING)

    def test_cancellation_requested_resolves_both_ways(self):
        assert validate_reservation_transition(
            ReservationStatus.CANCELLATION_REQUESTED, ReservationStatus.CANCELLED
        )
        assert validate_reservation_transition(
            ReservationStatus.CANCELLATION_REQUESTED, ReservationStatus.CONFIRMED
        )
        assert not validate_reservation_transition(
            ReservationStatus.CANCELLATION_REQUESTED, ReservationStatus.COMPLETED
        )


class TestCancellationRequest:
    """Customer side of the cancellation workflow."""

    def test_scenario_b_reason_truncated(self, db_session, seed_restaurant, seed_table, seed_customer):
        reservation = make_reservation(
            db_session, seed_restaurant, seed_table, seed_customer, status=ReservationStatus.CONFIRMED,
        )
        reason = ("plans changed " * 50)[:600]

        updated = ReservationService(db_session).request_cancellation(seed_customer.id, reservation.id, reason)

        assert updated.status == ReservationStatus.CANCELLATION_REQUESTED
        assert updated.cancellation_reason == reason[:500]
        assert len(updated.cancellation_reason) == 500

    def test_venue_notified_with_reason(self, db_session, seed_restaurant, seed_table, seed_customer):
        reservation = make_reservation(db_session, seed_restaurant, seed_table, seed_customer)

        ReservationService(db_session).request_cancellation(seed_customer.id, reservation.id, "sick")

        notes = _notifications(db_session, restaurant_id=seed_restaurant.id)
        assert [n.type for n in notes] == [NotificationType.CANCELLATION_REQUEST]
        assert notes[0].message.endswith(". Reason: sick")

    @pytest.mark.parametrize("reason", [None, ""])
    def test_venue_notified_without_reason(self, db_session, seed_restaurant, seed_table, seed_customer, reason):
        reservation = make_reservation(db_session, seed_restaurant, seed_table, seed_customer)

        updated = ReservationService(db_session).request_cancellation(seed_customer.id, reservation.id, reason)

        notes = _notifications(db_session, restaurant_id=seed_restaurant.id)
        assert updated.cancellation_reason is None
        assert notes[0].message.endswith(". Reason: No reason provided")

    def test_duplicate_request_is_conflict(self, db_session, seed_restaurant, seed_table, seed_customer):
        reservation = make_reservation(db_session, seed_restaurant, seed_table, seed_customer)
        service = ReservationService(db_session)
        service.request_cancellation(seed_customer.id, reservation.id, None)

        with pytest.raises(InvalidTransitionError):
            service.request_cancellation(seed_customer.id, reservation.id, None)

    def test_other_customers_reservation_is_not_found(
        self, db_session, seed_restaurant, seed_table, seed_customer, other_customer
    ):
        reservation = make_reservation(db_session, seed_restaurant, seed_table, seed_customer)

        with pytest.raises(ReservationNotFoundError):
            ReservationService(db_session).request_cancellation(other_customer.id, reservation.id, None)

    def test_special_requests_frozen_once_terminal(self, db_session, seed_restaurant, seed_table, seed_customer):
        reservation = make_reservation(
            db_session, seed_restaurant, seed_table, seed_customer, status=ReservationStatus.COMPLETED,
        )

        with pytest.raises(InvalidTransitionError):
            ReservationService(db_session).update_special_requests(seed_customer.id, reservation.id, "window")

    @given(reason=st.text(max_size=2000))
    def test_truncate_reason_never_exceeds_limit(self, reason):
        """Property: stored reasons are a prefix of the input, at most 500 characters."""
        stored = truncate_reason(reason, max_length=500)
        if not reason:
            assert stored is None
        else:
            assert len(stored) <= 500
            assert reason.startswith(stored)


class TestCancellationDecision:
    """Staff side of the cancellation workflow."""

    def test_scenario_c_approve(self, db_session, seed_restaurant, seed_table, seed_customer):
        reservation = make_reservation(
            db_session, seed_restaurant, seed_table, seed_customer,
            status=ReservationStatus.CANCELLATION_REQUESTED,
        )
        reservation.cancellation_reason = "plans changed"
        db_session.commit()

        updated = ReservationService(db_session).approve_cancellation(seed_restaurant.id, reservation.id)

        assert updated.status == ReservationStatus.CANCELLED
        assert updated.cancellation_reason is None
        notes = _notifications(db_session, customer_id=seed_customer.id)
        assert len(notes) == 1
        assert notes[0].type == NotificationType.CANCELLATION_APPROVED

    def test_reject_restores_confirmed(self, db_session, seed_restaurant, seed_table, seed_customer):
        reservation = make_reservation(
            db_session, seed_restaurant, seed_table, seed_customer,
            status=ReservationStatus.CANCELLATION_REQUESTED,
        )

        updated = ReservationService(db_session).reject_cancellation(seed_restaurant.id, reservation.id)

        assert updated.status == ReservationStatus.CONFIRMED
        notes = _notifications(db_session, customer_id=seed_customer.id)
        assert [n.type for n in notes] == [NotificationType.CANCELLATION_REJECTED]
        assert "remains confirmed" in notes[0].message

    @pytest.mark.parametrize("decision", ["approve_cancellation", "reject_cancellation"])
    def test_scenario_d_decision_from_pending_is_conflict(
        self, db_session, seed_restaurant, seed_table, seed_customer, decision
    ):
        reservation = make_reservation(db_session, seed_restaurant, seed_table, seed_customer)
        service = ReservationService(db_session)

        with pytest.raises(ConflictError):
            getattr(service, decision)(seed_restaurant.id, reservation.id)

        db_session.refresh(reservation)
        assert reservation.status == ReservationStatus.PENDING
        assert _notifications(db_session) == []

    def test_other_venue_cannot_decide(
        self, db_session, seed_restaurant, other_restaurant, seed_table, seed_customer
    ):
        reservation = make_reservation(
            db_session, seed_restaurant, seed_table, seed_customer,
            status=ReservationStatus.CANCELLATION_REQUESTED,
        )

        with pytest.raises(ReservationNotFoundError):
            ReservationService(db_session).approve_cancellation(other_restaurant.id, reservation.id)

    def test_missing_customer_is_invariant_violation(self, db_session, seed_restaurant, seed_table):
        reservation = make_reservation(
            db_session, seed_restaurant, seed_table, None,
            status=ReservationStatus.CANCELLATION_REQUESTED,
        )

        with pytest.raises(InvariantViolation) as exc_info:
            ReservationService(db_session).approve_cancellation(seed_restaurant.id, reservation.id)

        assert exc_info.value.status_code == 500
        db_session.refresh(reservation)
        assert reservation.status == ReservationStatus.CANCELLATION_REQUESTED


class TestStaffStatusSet:
    """Direct status changes by staff."""

    def test_confirm_notifies_customer(self, db_session, seed_restaurant, seed_table, seed_customer):
        reservation = make_reservation(db_session, seed_restaurant, seed_table, seed_customer)

        updated = ReservationService(db_session).set_status(
            seed_restaurant.id, reservation.id, ReservationStatus.CONFIRMED
        )

        assert updated.status == ReservationStatus.CONFIRMED
        notes = _notifications(db_session, customer_id=seed_customer.id)
        assert [n.type for n in notes] == [NotificationType.RESERVATION_CONFIRMED]
        assert notes[0].message.endswith("has been confirmed!")

    def test_same_status_is_a_no_op(self, db_session, seed_restaurant, seed_table, seed_customer):
        reservation = make_reservation(
            db_session, seed_restaurant, seed_table, seed_customer, status=ReservationStatus.CONFIRMED,
        )

        ReservationService(db_session).set_status(seed_restaurant.id, reservation.id, ReservationStatus.CONFIRMED)

        assert _notifications(db_session) == []

    @pytest.mark.parametrize("target", [ReservationStatus.CANCELLED, ReservationStatus.NO_SHOW])
    def test_staff_may_cancel_or_mark_no_show(self, db_session, seed_restaurant, seed_table, seed_customer, target):
        reservation = make_reservation(db_session, seed_restaurant, seed_table, seed_customer)

        updated = ReservationService(db_session).set_status(seed_restaurant.id, reservation.id, target)

        assert updated.status == target
        assert _notifications(db_session) == []

    def test_leaving_terminal_status_is_rejected(self, db_session, seed_restaurant, seed_table, seed_customer):
        reservation = make_reservation(
            db_session, seed_restaurant, seed_table, seed_customer, status=ReservationStatus.COMPLETED,
        )

        with pytest.raises(InvalidTransitionError):
            ReservationService(db_session).set_status(
                seed_restaurant.id, reservation.id, ReservationStatus.PENDING
            )

    def test_unknown_status_is_validation_error(self, db_session, seed_restaurant, seed_table, seed_customer):
        reservation = make_reservation(db_session, seed_restaurant, seed_table, seed_customer)

        with pytest.raises(ValidationError):
            ReservationService(db_session).set_status(seed_restaurant.id, reservation.id, "seated")

    def test_confirming_cancellation_request_clears_reason(
        self, db_session, seed_restaurant, seed_table, seed_customer
    ):
        reservation = make_reservation(
            db_session, seed_restaurant, seed_table, seed_customer,
            status=ReservationStatus.CANCELLATION_REQUESTED,
        )
        reservation.cancellation_reason = "maybe"
        db_session.commit()

        updated = ReservationService(db_session).set_status(
            seed_restaurant.id, reservation.id, ReservationStatus.CONFIRMED
        )

        assert updated.cancellation_reason is None

    def test_venue_listing_is_scoped(self, db_session, seed_restaurant, other_restaurant, seed_table, seed_customer):
        make_reservation(db_session, seed_restaurant, seed_table, seed_customer)
        foreign_table = make_table(db_session, other_restaurant)
        make_reservation(db_session, other_restaurant, foreign_table, seed_customer)
        service = ReservationService(db_session)

        assert len(service.list_for_venue(seed_restaurant.id)) == 1
        assert service.list_for_venue(seed_restaurant.id, status=ReservationStatus.CONFIRMED) == []
        assert len(service.list_for_customer(seed_customer.id)) == 2
