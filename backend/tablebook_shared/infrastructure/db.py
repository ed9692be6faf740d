"""
Engine, sessions and the commit/retry helpers every service uses.

Services own their transaction: they mutate through the request-scoped
session from get_db and finish with safe_commit. Work that must survive a
dropped connection goes through run_with_db_retry.

A request deadline set by RequestDeadlineMiddleware travels in a ContextVar
into the worker thread running the handler. Once it has passed, safe_commit
and run_with_db_retry roll back instead of committing, so a request already
answered with 503 leaves nothing behind. On PostgreSQL each transaction also
gets a statement_timeout bounded by the time left.
"""

import os
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from tablebook_shared.config.settings import DATABASE_URL, settings
from tablebook_shared.utils.exceptions import TransientError
from tablebook_shared.utils.retry import RetryExhaustedError, create_db_retry_config, retry_call

T = TypeVar("T")

DEADLINE_RETRY_AFTER_SECONDS = 2

# time.monotonic() value after which the current request must not commit
request_deadline_var: ContextVar[float | None] = ContextVar("request_deadline", default=None)


def set_request_deadline(timeout_seconds: float) -> Token:
    return request_deadline_var.set(time.monotonic() + timeout_seconds)


def reset_request_deadline(token: Token) -> None:
    request_deadline_var.reset(token)


def remaining_request_time() -> float | None:
    """Seconds left before the request deadline; None outside a request."""
    deadline = request_deadline_var.get()
    if deadline is None:
        return None
    return deadline - time.monotonic()


def ensure_request_deadline(db: Session, operation: str) -> None:
    """Roll back and raise TransientError once the request deadline has passed."""
    remaining = remaining_request_time()
    if remaining is None or remaining > 0:
        return
    db.rollback()
    raise TransientError(
        operation,
        retry_after=DEADLINE_RETRY_AFTER_SECONDS,
        reason="request deadline exceeded",
        overdue_s=round(-remaining, 3),
    )


def _engine_options(url: str) -> dict[str, Any]:
    if make_url(url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        # 2 per core plus one, at most 20
        "pool_size": min(2 * (os.cpu_count() or 4) + 1, 20),
        "max_overflow": 15,
        "pool_timeout": 30,
        "pool_recycle": 30 * 60,
        "connect_args": {"connect_timeout": 10},
    }


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(Session, "after_begin")
def _bound_statement_timeout(session, transaction, connection) -> None:
    """SET LOCAL statement_timeout to the time the request has left."""
    if connection.dialect.name != "postgresql":
        return
    remaining = remaining_request_time()
    if remaining is None:
        return
    # 0 would disable the timeout; an expired deadline still gets 1 ms
    timeout_ms = max(int(remaining * 1000), 1)
    connection.exec_driver_sql(f"SET LOCAL statement_timeout = {timeout_ms}")


def get_db() -> Iterator[Session]:
    """Request-scoped session dependency."""
    with SessionLocal() as db:
        yield db


@contextmanager
def get_db_context() -> Iterator[Session]:
    """Same session lifecycle as get_db, for the CLI and startup code."""
    with SessionLocal() as db:
        yield db


def safe_commit(db: Session) -> None:
    ensure_request_deadline(db, "commit")
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


def run_with_db_retry(db: Session, operation: str, func: Callable[[], T]) -> T:
    """
    Run ``func`` and re-run it after connection-level failures.

    The session is rolled back before each new attempt, so ``func`` has to
    start its unit of work from scratch. Once attempts run out, or the
    request deadline passes, the caller gets a TransientError (503 with
    Retry-After).
    """

    def attempt() -> T:
        ensure_request_deadline(db, operation)
        return func()

    try:
        return retry_call(
            attempt,
            operation=operation,
            retry_on=(OperationalError,),
            config=create_db_retry_config(settings.db_retry_attempts),
            on_retry=lambda _exc: db.rollback(),
        )
    except RetryExhaustedError as exc:
        db.rollback()
        raise TransientError(operation, attempts=exc.attempts) from exc
