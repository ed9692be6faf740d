"""
Tests for the HitPay gateway client and its circuit breaker.
Uses httpx.MockTransport so no network is touched.
"""

import json

import httpx
import pytest

from tablebook_api.services.payments import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerError,
    CircuitState,
    HitPayClient,
    sign_message,
    verify_signature,
    verify_webhook_signature,
)
from tablebook_shared.utils.exceptions import ExternalServiceError, TransientError
from tablebook_shared.utils.retry import RetryConfig


API_KEY = "test-api-key"
SALT = "test-salt"
BASE_URL = "https://gateway.test/v1"


async def no_sleep(_delay: float) -> None:
    return None


class FrozenClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _client(handler, breaker=None, attempts=3, **kwargs) -> HitPayClient:
    return HitPayClient(
        api_key=API_KEY,
        salt=SALT,
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
        breaker=breaker or CircuitBreaker(CircuitBreakerConfig(name="test")),
        retry_config=RetryConfig(max_attempts=attempts),
        sleep=no_sleep,
        **kwargs,
    )


def _created(request: httpx.Request) -> httpx.Response:
    return httpx.Response(201, json={"id": "pr-123", "url": "https://checkout.test/pr-123", "status": "pending"})


class TestSignatures:

    def test_sign_message_is_hex_hmac_sha256(self):
        signature = sign_message('{"amount":"10.00"}', SALT)

        assert len(signature) == 64
        assert verify_signature('{"amount":"10.00"}', signature, SALT)

    def test_verify_rejects_tampered_body_and_missing_signature(self):
        signature = sign_message(b"body", SALT)

        assert not verify_signature(b"body!", signature, SALT)
        assert not verify_signature(b"body", None, SALT)

    def test_webhook_signature_skipped_without_salt(self):
        assert verify_webhook_signature(b"{}", None, salt="")

    def test_webhook_signature_checked_with_salt(self):
        body = b'{"id":"pr-1","status":"completed"}'

        assert verify_webhook_signature(body, sign_message(body, SALT), salt=SALT)
        assert not verify_webhook_signature(body, "deadbeef", salt=SALT)
        assert not verify_webhook_signature(body, None, salt=SALT)


class TestCreatePaymentRequest:

    @pytest.mark.asyncio
    async def test_request_is_signed_over_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return _created(request)

        data = await _client(handler).create_payment_request(
            order_id=42, amount="25.5", email="dina@test.com", name="Dina"
        )

        assert data["id"] == "pr-123"
        request = seen["request"]
        assert request.url == f"{BASE_URL}/payment-requests"
        assert request.headers["X-BUSINESS-API-KEY"] == API_KEY
        assert request.headers["X-REQUEST-SIGNATURE"] == sign_message(request.content, SALT)
        assert request.headers["X-REQUEST-TIMESTAMP"].isdigit()

        payload = json.loads(request.content)
        assert payload["amount"] == "25.50"
        assert payload["currency"] == "MYR"
        assert payload["reference_number"].startswith("ORD-42-")
        assert payload["description"] == "Order #42"
        assert payload["redirect_url"].endswith("?order_id=42")

    @pytest.mark.asyncio
    async def test_retries_5xx_then_succeeds(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) < 3:
                return httpx.Response(503)
            return _created(request)

        data = await _client(handler, attempts=3).create_payment_request(
            order_id=1, amount="10", email="a@test.com"
        )

        assert data["id"] == "pr-123"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_connection_errors_exhaust_to_transient(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(TransientError) as exc_info:
            await _client(handler, attempts=2).create_payment_request(order_id=1, amount="10", email="a@test.com")

        assert exc_info.value.status_code == 503
        assert exc_info.value.headers["Retry-After"] == "5"

    @pytest.mark.asyncio
    async def test_4xx_is_not_retried(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(422, json={"message": "invalid amount"})

        with pytest.raises(ExternalServiceError) as exc_info:
            await _client(handler).create_payment_request(order_id=1, amount="10", email="a@test.com")

        assert exc_info.value.status_code == 502
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_response_without_id_is_gateway_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"status": "pending"})

        with pytest.raises(ExternalServiceError):
            await _client(handler).create_payment_request(order_id=1, amount="10", email="a@test.com")

    @pytest.mark.asyncio
    async def test_unconfigured_client_is_unavailable(self):
        client = HitPayClient(api_key="", salt="", transport=httpx.MockTransport(_created))

        with pytest.raises(ExternalServiceError) as exc_info:
            await client.create_payment_request(order_id=1, amount="10", email="a@test.com")

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_lookup_signed_over_payment_id(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={"id": "pr-9", "status": "completed"})

        data = await _client(handler).get_payment_request("pr-9")

        assert data["status"] == "completed"
        assert seen["request"].method == "GET"
        assert seen["request"].headers["X-REQUEST-SIGNATURE"] == sign_message("pr-9", SALT)


class TestCircuitBreaker:

    @pytest.mark.asyncio
    async def test_opens_after_threshold_and_rejects_fast(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        clock = FrozenClock()
        breaker = CircuitBreaker(
            CircuitBreakerConfig(name="test", failure_threshold=2, timeout_seconds=30.0),
            clock=clock,
        )
        client = _client(handler, breaker=breaker, attempts=2)

        with pytest.raises(TransientError):
            await client.create_payment_request(order_id=1, amount="10", email="a@test.com")
        assert breaker.state == CircuitState.OPEN
        assert len(calls) == 2

        with pytest.raises(TransientError) as exc_info:
            await client.create_payment_request(order_id=1, amount="10", email="a@test.com")
        assert exc_info.value.headers["Retry-After"] == "30"
        assert len(calls) == 2
        assert breaker.stats.rejected_calls == 1

    @pytest.mark.asyncio
    async def test_half_open_closes_after_successes(self):
        clock = FrozenClock()
        breaker = CircuitBreaker(
            CircuitBreakerConfig(name="test", failure_threshold=1, success_threshold=2, timeout_seconds=10.0),
            clock=clock,
        )

        with pytest.raises(RuntimeError):
            async with breaker.call():
                raise RuntimeError("boom")
        assert breaker.state == CircuitState.OPEN

        with pytest.raises(CircuitBreakerError):
            async with breaker.call():
                pass

        clock.now += 10.0
        for _ in range(2):
            async with breaker.call():
                pass

        assert breaker.state == CircuitState.CLOSED

    @pytest.mark.asyncio
    async def test_failure_while_half_open_reopens(self):
        clock = FrozenClock()
        breaker = CircuitBreaker(
            CircuitBreakerConfig(name="test", failure_threshold=1, timeout_seconds=5.0),
            clock=clock,
        )
        with pytest.raises(RuntimeError):
            async with breaker.call():
                raise RuntimeError("boom")

        clock.now += 5.0
        with pytest.raises(RuntimeError):
            async with breaker.call():
                raise RuntimeError("still down")

        assert breaker.state == CircuitState.OPEN
