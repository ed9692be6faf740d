"""
Per-IP request limits (slowapi) for the auth endpoints and dashboards.

    @router.post("/login")
    @limiter.limit("10/minute")
    def login(request: Request, ...): ...
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from tablebook_shared.config.logging import get_logger
from tablebook_shared.config.settings import settings

logger = get_logger(__name__)

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def _window_seconds(exc: RateLimitExceeded) -> int:
    limit = getattr(exc, "limit", None)
    if limit is None:
        return 60
    return int(limit.limit.get_expiry())


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    retry_after = _window_seconds(exc)
    logger.warning(
        "Rate limit hit",
        path=request.url.path,
        client=get_remote_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={"detail": f"Too many requests ({exc.detail}). Please retry later."},
        headers={"Retry-After": str(retry_after)},
    )
