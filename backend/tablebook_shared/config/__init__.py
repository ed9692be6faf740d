"""
Configuration module: Settings, logging, constants.
"""

from tablebook_shared.config.settings import settings, DATABASE_URL
from tablebook_shared.config.logging import get_logger, setup_logging
from tablebook_shared.config.constants import (
    Roles,
    ReservationStatus,
    OrderStatus,
    PaymentStatus,
    TransactionStatus,
    NotificationType,
    Limits,
)

__all__ = [
    # settings
    "settings",
    "DATABASE_URL",
    # logging
    "get_logger",
    "setup_logging",
    # constants
    "Roles",
    "ReservationStatus",
    "OrderStatus",
    "PaymentStatus",
    "TransactionStatus",
    "NotificationType",
    "Limits",
]
