"""
HitPay payment gateway client.

Requests are signed with HMAC-SHA256 over the exact request body (or the
payment id for lookups) using the account salt, and carry the business
API key and a millisecond timestamp:

    X-BUSINESS-API-KEY, X-REQUEST-SIGNATURE, X-REQUEST-TIMESTAMP

Every call goes through the gateway circuit breaker and a bounded retry
on connection errors and 5xx responses. Failures surface as:
- TransientError (503): gateway unreachable, 5xx after retries, breaker open
- ExternalServiceError (502): gateway rejected the request (4xx) or answered garbage
"""

import asyncio
import hashlib
import hmac
import json
import math
import time
from collections.abc import Awaitable, Callable
from decimal import Decimal
from typing import Any

import httpx

from tablebook_shared.config.logging import payment_logger as logger
from tablebook_shared.config.settings import settings
from tablebook_shared.utils.exceptions import ExternalServiceError, TransientError
from tablebook_shared.utils.retry import (
    RetryConfig,
    RetryExhaustedError,
    create_gateway_retry_config,
    retry_call_async,
)

from .circuit_breaker import CircuitBreaker, CircuitBreakerError, hitpay_breaker

GATEWAY_NAME = "HitPay"
DEFAULT_PAYMENT_METHODS = ["card", "fpx"]


class GatewayUnavailable(Exception):
    """Gateway answered with a 5xx status."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"{GATEWAY_NAME} returned HTTP {status_code}")


def sign_message(message: str | bytes, salt: str) -> str:
    """Hex HMAC-SHA256 of ``message`` keyed with ``salt``."""
    if isinstance(message, str):
        message = message.encode("utf-8")
    return hmac.new(salt.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify_signature(message: str | bytes, signature: str | None, salt: str) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(sign_message(message, salt), signature.strip().lower())


class HitPayClient:
    """
    Async client for HitPay payment requests.

    ``transport`` lets tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        salt: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        breaker: CircuitBreaker = hitpay_breaker,
        retry_config: RetryConfig | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._api_key = api_key if api_key is not None else settings.hitpay_api_key
        self._salt = salt if salt is not None else settings.hitpay_salt
        self._base_url = (base_url or settings.hitpay_base_url).rstrip("/")
        self._timeout = timeout or settings.gateway_timeout_seconds
        self._transport = transport
        self._breaker = breaker
        self._retry_config = retry_config or create_gateway_retry_config(settings.gateway_retry_attempts)
        self._sleep = sleep

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key and self._salt)

    def _headers(self, signed_over: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "X-BUSINESS-API-KEY": self._api_key,
            "X-REQUEST-SIGNATURE": sign_message(signed_over, self._salt),
            "X-REQUEST-TIMESTAMP": str(int(time.time() * 1000)),
        }

    async def create_payment_request(
        self,
        *,
        order_id: int,
        amount: Decimal,
        email: str,
        name: str | None = None,
        description: str | None = None,
        reference_number: str | None = None,
        currency: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a hosted checkout. Returns the gateway payload (``id``, ``url``, ...).
        """
        payload: dict[str, Any] = {
            "email": email,
            "name": name or "Customer",
            "amount": f"{Decimal(amount):.2f}",
            "currency": currency or settings.hitpay_currency,
            "reference_number": reference_number or f"ORD-{order_id}-{int(time.time() * 1000)}",
            "description": (description or "").strip() or f"Order #{order_id}",
            "redirect_url": f"{settings.hitpay_redirect_url}?order_id={order_id}",
            "payment_methods": DEFAULT_PAYMENT_METHODS,
        }
        if settings.hitpay_webhook_url:
            payload["webhook"] = settings.hitpay_webhook_url

        body = json.dumps(payload, separators=(",", ":"))
        data = await self._request("POST", "/payment-requests", body=body, signed_over=body)
        if not data.get("id"):
            raise ExternalServiceError(GATEWAY_NAME, reason="missing payment id", order_id=order_id)

        logger.info(
            "Gateway checkout created",
            order_id=order_id,
            payment_id=data["id"],
            reference_number=payload["reference_number"],
        )
        return data

    async def get_payment_request(self, payment_id: str) -> dict[str, Any]:
        """Current state of a payment request at the gateway."""
        return await self._request("GET", f"/payment-requests/{payment_id}", body=None, signed_over=payment_id)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: str | None,
        signed_over: str,
    ) -> dict[str, Any]:
        if not self.is_configured:
            raise ExternalServiceError(GATEWAY_NAME, is_unavailable=True, reason="not configured")

        url = f"{self._base_url}{path}"

        async def attempt() -> httpx.Response:
            async with self._breaker.call():
                async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                    response = await client.request(
                        method, url, content=body, headers=self._headers(signed_over)
                    )
                if response.status_code >= 500:
                    raise GatewayUnavailable(response.status_code)
                return response

        try:
            response = await retry_call_async(
                attempt,
                operation=f"{GATEWAY_NAME} {method} {path}",
                retry_on=(httpx.TransportError, GatewayUnavailable),
                config=self._retry_config,
                sleep=self._sleep,
            )
        except CircuitBreakerError as exc:
            raise TransientError(
                "payment gateway call",
                retry_after=max(1, math.ceil(exc.retry_after)),
                breaker=exc.breaker_name,
            ) from exc
        except RetryExhaustedError as exc:
            raise TransientError(
                "payment gateway call",
                retry_after=5,
                attempts=exc.attempts,
                error=str(exc.last_error),
            ) from exc

        if response.status_code >= 400:
            raise ExternalServiceError(
                GATEWAY_NAME,
                status=response.status_code,
                response=response.text[:500],
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ExternalServiceError(GATEWAY_NAME, reason="invalid JSON") from exc
