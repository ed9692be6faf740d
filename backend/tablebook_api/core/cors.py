"""
Cross-origin policy for the customer app, staff dashboard and admin console.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tablebook_shared.config.settings import settings


# Vite dev servers: customer 5173, staff 5174, admin 5175
LOCAL_FRONTEND_PORTS = (5173, 5174, 5175)


def get_cors_origins() -> list[str]:
    configured = [origin.strip() for origin in settings.allowed_origins.split(",")]
    configured = [origin for origin in configured if origin]
    if configured:
        return configured
    return [
        f"http://{host}:{port}"
        for host in ("localhost", "127.0.0.1")
        for port in LOCAL_FRONTEND_PORTS
    ]


def configure_cors(app: FastAPI) -> None:
    """Install CORSMiddleware; bearer tokens and request ids may cross origins."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
        expose_headers=["X-Request-ID", "Retry-After"],
        max_age=0 if settings.environment == "development" else 600,
    )
