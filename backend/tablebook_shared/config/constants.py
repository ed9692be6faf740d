"""
Centralized constants for the backend application.

Usage:
    from tablebook_shared.config.constants import ReservationStatus, RESERVATION_TRANSITIONS

    if status == ReservationStatus.PENDING:
        ...
"""

from typing import Final


# =============================================================================
# Roles (JWT "role" claim)
# =============================================================================


class Roles:
    """Principal role constants."""

    CUSTOMER: Final[str] = "customer"
    STAFF: Final[str] = "staff"
    ADMIN: Final[str] = "admin"

    ALL: Final[list[str]] = [CUSTOMER, STAFF, ADMIN]


class StaffRoles:
    """Role of a staff member inside their venue."""

    MANAGER: Final[str] = "manager"
    STAFF: Final[str] = "staff"

    ALL: Final[list[str]] = [MANAGER, STAFF]


# =============================================================================
# Entity Status Constants
# =============================================================================


class ReservationStatus:
    """Reservation status constants."""

    PENDING: Final[str] = "pending"
    CONFIRMED: Final[str] = "confirmed"
    CANCELLATION_REQUESTED: Final[str] = "cancellation_requested"
    COMPLETED: Final[str] = "completed"
    CANCELLED: Final[str] = "cancelled"
    NO_SHOW: Final[str] = "no-show"

    ALL: Final[list[str]] = [
        PENDING, CONFIRMED, CANCELLATION_REQUESTED, COMPLETED, CANCELLED, NO_SHOW,
    ]
    TERMINAL: Final[frozenset[str]] = frozenset({COMPLETED, CANCELLED, NO_SHOW})
    # Statuses that never occupy a table
    INACTIVE: Final[frozenset[str]] = frozenset({CANCELLED, NO_SHOW})
    CANCELLABLE: Final[frozenset[str]] = frozenset({PENDING, CONFIRMED})


class OrderStatus:
    """Order fulfillment status constants."""

    PENDING: Final[str] = "pending"
    CONFIRMED: Final[str] = "confirmed"
    PREPARING: Final[str] = "preparing"
    SERVED: Final[str] = "served"
    READY: Final[str] = "ready"
    COMPLETED: Final[str] = "completed"
    CANCELLED: Final[str] = "cancelled"

    ALL: Final[list[str]] = [PENDING, CONFIRMED, PREPARING, SERVED, READY, COMPLETED, CANCELLED]
    TERMINAL: Final[frozenset[str]] = frozenset({COMPLETED, CANCELLED})


class PaymentStatus:
    """Order payment status constants (independent of fulfillment)."""

    UNPAID: Final[str] = "unpaid"
    PENDING: Final[str] = "pending"
    PAID: Final[str] = "paid"
    REFUNDED: Final[str] = "refunded"
    FAILED: Final[str] = "failed"
    EXPIRED: Final[str] = "expired"

    ALL: Final[list[str]] = [UNPAID, PENDING, PAID, REFUNDED, FAILED, EXPIRED]


class TransactionStatus:
    """Gateway transaction status constants."""

    PENDING: Final[str] = "pending"
    COMPLETED: Final[str] = "completed"
    FAILED: Final[str] = "failed"
    EXPIRED: Final[str] = "expired"
    REFUNDED: Final[str] = "refunded"

    ALL: Final[list[str]] = [PENDING, COMPLETED, FAILED, EXPIRED, REFUNDED]


class PaymentMethod:
    """Payment method constants."""

    CASH: Final[str] = "cash"
    CARD: Final[str] = "card"
    ONLINE_BANKING: Final[str] = "online_banking"
    EWALLET: Final[str] = "ewallet"
    HITPAY: Final[str] = "hitpay"

    ALL: Final[list[str]] = [CASH, CARD, ONLINE_BANKING, EWALLET, HITPAY]


class NotificationType:
    """Notification type tags."""

    RESERVATION_NEW: Final[str] = "reservation_new"
    RESERVATION_CANCELLED: Final[str] = "reservation_cancelled"
    CANCELLATION_REQUEST: Final[str] = "cancellation_request"
    CANCELLATION_APPROVED: Final[str] = "cancellation_approved"
    CANCELLATION_REJECTED: Final[str] = "cancellation_rejected"
    RESERVATION_CONFIRMED: Final[str] = "reservation_confirmed"
    ORDER_NEW: Final[str] = "order_new"
    PAYMENT_RECEIVED: Final[str] = "payment_received"

    ALL: Final[list[str]] = [
        RESERVATION_NEW,
        RESERVATION_CANCELLED,
        CANCELLATION_REQUEST,
        CANCELLATION_APPROVED,
        CANCELLATION_REJECTED,
        RESERVATION_CONFIRMED,
        ORDER_NEW,
        PAYMENT_RECEIVED,
    ]


class UnassignedTablePolicy:
    """What to do with a reservation that names no table."""

    ACCEPT: Final[str] = "accept"  # admitted without an availability check
    REJECT: Final[str] = "reject"  # a table is mandatory

    ALL: Final[list[str]] = [ACCEPT, REJECT]


# =============================================================================
# Status Transitions
# =============================================================================

# Workflow edges for reservations (from -> [allowed to states]).
# Staff direct status set bypasses this table.
RESERVATION_TRANSITIONS: Final[dict[str, list[str]]] = {
    ReservationStatus.PENDING: [
        ReservationStatus.CONFIRMED,
        ReservationStatus.CANCELLATION_REQUESTED,
        ReservationStatus.CANCELLED,
        ReservationStatus.NO_SHOW,
    ],
    ReservationStatus.CONFIRMED: [
        ReservationStatus.COMPLETED,
        ReservationStatus.CANCELLATION_REQUESTED,
        ReservationStatus.CANCELLED,
        ReservationStatus.NO_SHOW,
    ],
    ReservationStatus.CANCELLATION_REQUESTED: [
        ReservationStatus.CANCELLED,
        ReservationStatus.CONFIRMED,
    ],
    ReservationStatus.COMPLETED: [],  # Terminal state
    ReservationStatus.CANCELLED: [],  # Terminal state
    ReservationStatus.NO_SHOW: [],  # Terminal state
}

TRANSACTION_TRANSITIONS: Final[dict[str, list[str]]] = {
    TransactionStatus.PENDING: [
        TransactionStatus.COMPLETED,
        TransactionStatus.FAILED,
        TransactionStatus.EXPIRED,
    ],
    TransactionStatus.COMPLETED: [TransactionStatus.REFUNDED],
    TransactionStatus.FAILED: [],
    TransactionStatus.EXPIRED: [],
    TransactionStatus.REFUNDED: [],
}

# Gateway status string -> TransactionStatus; unknown strings map to pending
GATEWAY_STATUS_MAP: Final[dict[str, str]] = {
    "completed": TransactionStatus.COMPLETED,
    "success": TransactionStatus.COMPLETED,
    "succeeded": TransactionStatus.COMPLETED,
    "pending": TransactionStatus.PENDING,
    "failed": TransactionStatus.FAILED,
    "expired": TransactionStatus.EXPIRED,
    "refunded": TransactionStatus.REFUNDED,
}

# Order payment status implied by a transaction status
TRANSACTION_TO_PAYMENT_STATUS: Final[dict[str, str]] = {
    TransactionStatus.PENDING: PaymentStatus.PENDING,
    TransactionStatus.COMPLETED: PaymentStatus.PAID,
    TransactionStatus.FAILED: PaymentStatus.FAILED,
    TransactionStatus.EXPIRED: PaymentStatus.EXPIRED,
    TransactionStatus.REFUNDED: PaymentStatus.REFUNDED,
}


# =============================================================================
# Validation Constants
# =============================================================================


class Limits:
    """Validation limits."""

    MIN_QUANTITY: Final[int] = 1
    MAX_QUANTITY: Final[int] = 99

    MIN_TABLE_CAPACITY: Final[int] = 1
    MAX_TABLE_CAPACITY: Final[int] = 8

    MIN_PARTY_SIZE: Final[int] = 1
    MAX_PARTY_SIZE: Final[int] = 50

    MAX_NAME_LENGTH: Final[int] = 255
    MAX_DESCRIPTION_LENGTH: Final[int] = 2000
    MAX_SPECIAL_REQUESTS_LENGTH: Final[int] = 1000

    NOTIFICATION_PAGE_SIZE: Final[int] = 50
    DEFAULT_PAGE_SIZE: Final[int] = 50
    MAX_PAGE_SIZE: Final[int] = 200


# =============================================================================
# Validation Functions
# =============================================================================


def validate_reservation_transition(current_status: str, new_status: str) -> bool:
    """
    Validate that a reservation workflow transition is allowed.

    Returns True if transition is valid, False otherwise.
    """
    allowed = RESERVATION_TRANSITIONS.get(current_status, [])
    return new_status in allowed


def validate_transaction_transition(current_status: str, new_status: str) -> bool:
    """Whether a gateway transaction may move from current_status to new_status."""
    return new_status in TRANSACTION_TRANSITIONS.get(current_status, [])


def map_gateway_status(raw_status: str | None) -> str:
    """Map a gateway status string to a TransactionStatus value."""
    if not raw_status:
        return TransactionStatus.PENDING
    return GATEWAY_STATUS_MAP.get(raw_status.strip().lower(), TransactionStatus.PENDING)
