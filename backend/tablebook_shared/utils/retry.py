"""
Bounded retries for transient failures.

Both the database layer and the payment gateway client retry a handful of
times with capped exponential backoff. Only the exception types a caller
names in ``retry_on`` are retried; everything else surfaces at once.
"""

from __future__ import annotations

import asyncio
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from tablebook_shared.config.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RetryConfig:
    """
    initial_delay * backoff_base**n seconds before retry n+1, capped at
    max_delay and spread by +/- jitter_factor. max_attempts counts the
    first call.
    """

    initial_delay: float = 0.1
    max_delay: float = 2.0
    backoff_base: float = 2.0
    jitter_factor: float = 0.25
    max_attempts: int = 3

    def __post_init__(self) -> None:
        problems = [
            (self.initial_delay < 0, "initial_delay cannot be negative"),
            (self.max_delay < self.initial_delay, "max_delay cannot be below initial_delay"),
            (self.backoff_base < 1, "backoff_base must be at least 1"),
            (not 0 <= self.jitter_factor <= 1, "jitter_factor must lie in [0, 1]"),
            (self.max_attempts < 1, "max_attempts must be at least 1"),
        ]
        for failed, message in problems:
            if failed:
                raise ValueError(message)


class RetryExhaustedError(Exception):
    def __init__(self, operation: str, attempts: int, last_error: BaseException):
        super().__init__(f"{operation} still failing after {attempts} attempts: {last_error!r}")
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


def calculate_delay_with_jitter(attempt: int, config: RetryConfig | None = None) -> float:
    """Seconds to wait after the failed ``attempt`` (0-based)."""
    config = config or RetryConfig()
    delay = min(config.initial_delay * config.backoff_base**attempt, config.max_delay)
    spread = delay * config.jitter_factor
    return max(0.0, delay + random.uniform(-spread, spread))


def _next_delay(
    operation: str, attempt: int, exc: BaseException, config: RetryConfig
) -> float:
    """Backoff before the next attempt, or RetryExhaustedError if none is left."""
    attempts_made = attempt + 1
    if attempts_made >= config.max_attempts:
        raise RetryExhaustedError(operation, attempts_made, exc) from exc
    delay = calculate_delay_with_jitter(attempt, config)
    logger.warning(
        "Transient failure, will retry",
        operation=operation,
        attempt=attempts_made,
        of=config.max_attempts,
        delay_s=round(delay, 3),
        error=repr(exc),
    )
    return delay


def retry_call(
    func: Callable[[], T],
    *,
    operation: str,
    retry_on: tuple[type[BaseException], ...],
    config: RetryConfig | None = None,
    on_retry: Callable[[BaseException], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``func`` until it returns or attempts run out.

    ``on_retry`` gets the failure before each new attempt; the database
    layer uses it to roll the session back.
    """
    config = config or RetryConfig()
    attempt = 0
    while True:
        try:
            return func()
        except retry_on as exc:
            delay = _next_delay(operation, attempt, exc, config)
            if on_retry is not None:
                on_retry(exc)
        sleep(delay)
        attempt += 1


async def retry_call_async(
    func: Callable[[], Awaitable[T]],
    *,
    operation: str,
    retry_on: tuple[type[BaseException], ...],
    config: RetryConfig | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    config = config or RetryConfig()
    attempt = 0
    while True:
        try:
            return await func()
        except retry_on as exc:
            delay = _next_delay(operation, attempt, exc, config)
        await sleep(delay)
        attempt += 1


def create_db_retry_config(max_attempts: int = 3) -> RetryConfig:
    # Short waits: the request is holding a pooled connection
    return RetryConfig(initial_delay=0.05, max_delay=0.5, max_attempts=max_attempts)


def create_gateway_retry_config(max_attempts: int = 3) -> RetryConfig:
    return RetryConfig(initial_delay=0.5, max_delay=4.0, jitter_factor=0.3, max_attempts=max_attempts)
