"""
Payment processing and the hosted checkout gateway.
"""

from .circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerError,
    CircuitState,
    get_all_breaker_stats,
    hitpay_breaker,
)
from .hitpay_client import HitPayClient, sign_message, verify_signature
from .payment_service import PaymentService, verify_webhook_signature, webhook_identifiers

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitState",
    "get_all_breaker_stats",
    "hitpay_breaker",
    "HitPayClient",
    "sign_message",
    "verify_signature",
    "PaymentService",
    "verify_webhook_signature",
    "webhook_identifiers",
]
