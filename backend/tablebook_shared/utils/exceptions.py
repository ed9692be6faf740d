"""
HTTP error taxonomy shared by every service.

Each class fixes a status code and how loudly it is logged; keyword
arguments given to a constructor become structured log fields and never
reach the response body.

    400 ValidationError        bad input, never retried
    401 AuthenticationError    missing or invalid credentials
    403 ForbiddenError         authenticated but wrong role
    404 NotFoundError          absent, or outside the caller's venue/customer scope
    409 ConflictError          overlap, illegal status change, duplicate
    500 InvariantViolation     stored data that should be impossible
    502/503 ExternalServiceError   payment gateway failures
    503 TransientError         retry later, carries Retry-After
"""

from typing import Any

from fastapi import HTTPException, status

from tablebook_shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    log_level = "warning"

    def __init__(
        self,
        detail: str,
        *,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        code = status_code or self.default_status
        getattr(logger, self.log_level)(detail, status_code=code, exception_type=type(self).__name__, **log_context)
        super().__init__(status_code=code, detail=detail, headers=headers)


class ValidationError(AppException):
    default_status = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppException):
    default_status = status.HTTP_401_UNAUTHORIZED

    def __init__(self, detail: str = "Invalid credentials", **log_context: Any):
        super().__init__(detail, **log_context)


class ForbiddenError(AppException):
    default_status = status.HTTP_403_FORBIDDEN

    def __init__(self, action: str | None = None, **log_context: Any):
        detail = f"Not authorized to {action}" if action else "Access denied"
        super().__init__(detail, action=action, **log_context)


class NotFoundError(AppException):
    """Also raised for records owned by another venue or customer."""

    default_status = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        detail = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(detail, entity=entity, entity_id=entity_id, **log_context)


class ReservationNotFoundError(NotFoundError):
    def __init__(self, reservation_id: int | None = None, **log_context: Any):
        super().__init__("Reservation", reservation_id, **log_context)


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: int | None = None, **log_context: Any):
        super().__init__("Order", order_id, **log_context)


class ConflictError(AppException):
    default_status = status.HTTP_409_CONFLICT


class InvalidTransitionError(ConflictError):
    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        super().__init__(
            f"{entity} cannot move from '{from_status}' to '{to_status}'",
            entity=entity,
            from_status=from_status,
            to_status=to_status,
            **log_context,
        )


class TableUnavailableError(ConflictError):
    def __init__(self, table_id: int, date: Any, time: Any, **log_context: Any):
        super().__init__(
            "Table is not available at the selected time",
            table_id=table_id,
            date=str(date),
            time=str(time),
            **log_context,
        )


class DuplicateEntityError(ConflictError):
    def __init__(self, entity: str, identifier: str | None = None, **log_context: Any):
        detail = f"{entity} '{identifier}' already exists" if identifier else f"{entity} already exists"
        super().__init__(detail, entity=entity, identifier=identifier, **log_context)


class InvariantViolation(AppException):
    """A defect: the response stays generic, the log names the broken invariant."""

    log_level = "error"

    def __init__(self, invariant: str, **log_context: Any):
        super().__init__("Internal server error", invariant=invariant, defect=True, **log_context)
        self.invariant = invariant


class TransientError(AppException):
    """
    Retry later. Raised once bounded internal retries against the database
    or gateway are spent, or when a breaker is open.
    """

    default_status = status.HTTP_503_SERVICE_UNAVAILABLE
    log_level = "error"

    def __init__(self, operation: str, retry_after: int = 1, **log_context: Any):
        super().__init__(
            f"Temporarily unavailable during {operation}. Please retry.",
            headers={"Retry-After": str(retry_after)},
            operation=operation,
            **log_context,
        )
        self.retry_after = retry_after


class ExternalServiceError(AppException):
    """502 when the service answered badly, 503 when it cannot be used at all."""

    log_level = "error"

    def __init__(
        self,
        service: str,
        is_unavailable: bool = False,
        retry_after: int | None = None,
        **log_context: Any,
    ):
        if is_unavailable:
            code, detail = status.HTTP_503_SERVICE_UNAVAILABLE, f"{service} is temporarily unavailable"
        else:
            code, detail = status.HTTP_502_BAD_GATEWAY, f"Error communicating with {service}"
        super().__init__(
            detail,
            status_code=code,
            headers={"Retry-After": str(retry_after)} if retry_after else None,
            service=service,
            **log_context,
        )
