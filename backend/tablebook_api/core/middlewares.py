"""
HTTP middleware stack.

Outermost first: correlation id, request deadline, JSON-only bodies,
security headers.
"""

import asyncio

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from tablebook_shared.config.logging import rest_api_logger as logger
from tablebook_shared.config.settings import settings
from tablebook_shared.infrastructure.correlation import CorrelationIdMiddleware
from tablebook_shared.infrastructure.db import (
    DEADLINE_RETRY_AFTER_SECONDS,
    reset_request_deadline,
    set_request_deadline,
)


class RequestDeadlineMiddleware(BaseHTTPMiddleware):
    """
    Requests running past the deadline get 503 with Retry-After.

    The deadline is also published to the unit of work, so a sync handler
    still running in its worker thread cannot commit after the 503.
    """

    RETRY_AFTER_SECONDS = DEADLINE_RETRY_AFTER_SECONDS

    def __init__(self, app, timeout_seconds: float | None = None):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds or settings.request_timeout_seconds

    async def dispatch(self, request: Request, call_next):
        token = set_request_deadline(self.timeout_seconds)
        try:
            async with asyncio.timeout(self.timeout_seconds):
                return await call_next(request)
        except TimeoutError:
            logger.error(
                "Request deadline exceeded",
                method=request.method,
                path=request.url.path,
                timeout_seconds=self.timeout_seconds,
            )
            return JSONResponse(
                status_code=503,
                content={"detail": "Request took too long. Please retry."},
                headers={"Retry-After": str(self.RETRY_AFTER_SECONDS)},
            )
        finally:
            reset_request_deadline(token)


API_CSP = "default-src 'none'; img-src 'self' data: https:; frame-ancestors 'none'; base-uri 'self'; form-action 'self'"

STATIC_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}

# Swagger and ReDoc load scripts the API CSP would block
DOCS_PATHS = ("/docs", "/redoc", "/openapi.json")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.update(STATIC_SECURITY_HEADERS)
        if not request.url.path.startswith(DOCS_PATHS):
            response.headers["Content-Security-Policy"] = API_CSP
        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


class ContentTypeValidationMiddleware(BaseHTTPMiddleware):
    """415 for POST/PUT/PATCH bodies that declare a non-JSON content type."""

    METHODS_WITH_BODY = frozenset({"POST", "PUT", "PATCH"})
    # HitPay posts form-encoded callbacks
    EXEMPT_PATHS = ("/api/payments/hitpay/callback", "/api/health")

    def _rejects(self, request: Request) -> bool:
        if request.method not in self.METHODS_WITH_BODY or request.url.path.startswith(self.EXEMPT_PATHS):
            return False
        content_type = request.headers.get("content-type")
        return bool(content_type) and not content_type.startswith("application/json")

    async def dispatch(self, request: Request, call_next):
        if self._rejects(request):
            return JSONResponse(
                status_code=415,
                content={"detail": "Unsupported Media Type. Send application/json"},
            )
        return await call_next(request)


def register_middlewares(app: FastAPI) -> None:
    # add_middleware prepends, so register innermost first
    for middleware in (
        SecurityHeadersMiddleware,
        ContentTypeValidationMiddleware,
        RequestDeadlineMiddleware,
        CorrelationIdMiddleware,
    ):
        app.add_middleware(middleware)
