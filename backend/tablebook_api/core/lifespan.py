"""
Startup and shutdown for the REST API.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from tablebook_shared.config.logging import setup_logging, rest_api_logger as logger
from tablebook_shared.config.settings import DEV_JWT_SECRET, settings
from tablebook_shared.infrastructure.db import SessionLocal, engine
from tablebook_api.models import Base
from tablebook_api.seed import seed


def _check_configuration() -> None:
    problems = settings.validate_production_secrets()
    for problem in problems:
        logger.error("Unsafe configuration", problem=problem)
    if problems:
        raise RuntimeError("Refusing to start in production: " + "; ".join(problems))
    if settings.jwt_secret == DEV_JWT_SECRET:
        logger.warning("Using the development JWT secret", env=settings.environment)


def _bootstrap_database() -> None:
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed(db)
    logger.info("Schema verified and demo data seeded")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    _check_configuration()

    logger.info("REST API starting", port=settings.rest_api_port, env=settings.environment)
    if settings.db_bootstrap_on_startup:
        _bootstrap_database()

    yield

    engine.dispose()
    logger.info("REST API stopped")
