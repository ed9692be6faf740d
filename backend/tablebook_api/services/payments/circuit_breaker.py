"""
Circuit breaker guarding the payment gateway.

closed     every call goes through; consecutive failures are counted
open       calls fail fast with CircuitBreakerError until the cool-down passes
half_open  up to half_open_max_calls probes run; success_threshold
           successes close the circuit, any failure reopens it

    async with hitpay_breaker.call():
        response = await http.post(...)
"""

import asyncio
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from enum import Enum

from tablebook_shared.config.logging import payment_logger as logger


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass
class CircuitBreakerConfig:
    name: str
    failure_threshold: int = 5
    success_threshold: int = 2
    timeout_seconds: float = 30.0
    half_open_max_calls: int = 2


@dataclass
class CircuitBreakerStats:
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0
    state_changes: int = 0


class CircuitBreakerError(Exception):
    def __init__(self, breaker_name: str, retry_after: float):
        super().__init__(f"{breaker_name} circuit is open, retry in {retry_after:.1f}s")
        self.breaker_name = breaker_name
        self.retry_after = retry_after


class CircuitBreaker:
    """Pass ``clock`` to control the cool-down from tests."""

    def __init__(self, config: CircuitBreakerConfig, clock: Callable[[], float] = time.monotonic):
        self.config = config
        self.stats = CircuitBreakerStats()
        self._clock = clock
        self._lock = asyncio.Lock()
        self._enter(CircuitState.CLOSED, count=False)

    @property
    def state(self) -> CircuitState:
        return self._state

    def _enter(self, state: CircuitState, count: bool = True) -> None:
        if count:
            self.stats.state_changes += 1
            logger.info(
                "Gateway circuit changed state",
                breaker=self.config.name,
                old_state=self._state.value,
                new_state=state.value,
            )
        self._state = state
        self._consecutive_failures = 0
        self._probe_successes = 0
        self._probes_in_flight = 0
        self._opened_at = self._clock() if state == CircuitState.OPEN else None

    def _seconds_until_probe(self) -> float:
        assert self._opened_at is not None
        return self.config.timeout_seconds - (self._clock() - self._opened_at)

    async def _try_acquire(self) -> float | None:
        """Reserve a slot for one call; returns the wait in seconds when refused."""
        async with self._lock:
            if self._state == CircuitState.OPEN:
                remaining = self._seconds_until_probe()
                if remaining > 0:
                    return remaining
                self._enter(CircuitState.HALF_OPEN)

            if self._state == CircuitState.HALF_OPEN:
                if self._probes_in_flight >= self.config.half_open_max_calls:
                    return 1.0
                self._probes_in_flight += 1
            return None

    async def record_success(self) -> None:
        async with self._lock:
            self.stats.total_calls += 1
            self.stats.successful_calls += 1
            if self._state != CircuitState.HALF_OPEN:
                self._consecutive_failures = 0
                return
            self._probes_in_flight -= 1
            self._probe_successes += 1
            if self._probe_successes >= self.config.success_threshold:
                self._enter(CircuitState.CLOSED)

    async def record_failure(self, error: Exception | None = None) -> None:
        async with self._lock:
            self.stats.total_calls += 1
            self.stats.failed_calls += 1
            self._consecutive_failures += 1
            logger.warning(
                "Gateway call failed",
                breaker=self.config.name,
                state=self._state.value,
                consecutive_failures=self._consecutive_failures,
                error=repr(error) if error else None,
            )
            if self._state == CircuitState.HALF_OPEN or (
                self._state == CircuitState.CLOSED
                and self._consecutive_failures >= self.config.failure_threshold
            ):
                self._enter(CircuitState.OPEN)

    @asynccontextmanager
    async def call(self) -> AsyncIterator[None]:
        wait = await self._try_acquire()
        if wait is not None:
            self.stats.rejected_calls += 1
            raise CircuitBreakerError(self.config.name, wait)
        try:
            yield
        except Exception as exc:
            await self.record_failure(exc)
            raise
        await self.record_success()

    async def reset(self) -> None:
        async with self._lock:
            if self._state != CircuitState.CLOSED:
                self._enter(CircuitState.CLOSED)
            else:
                self._enter(CircuitState.CLOSED, count=False)


hitpay_breaker = CircuitBreaker(CircuitBreakerConfig(name="hitpay"))

_BREAKERS = {"hitpay": hitpay_breaker}


def get_all_breaker_stats() -> dict[str, dict]:
    return {
        name: {"state": breaker.state.value, **asdict(breaker.stats)}
        for name, breaker in _BREAKERS.items()
    }
