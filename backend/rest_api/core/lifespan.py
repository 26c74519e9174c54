"""
Application lifespan handler.
Manages startup and shutdown events for the FastAPI application.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from shared.infrastructure.db import engine
from shared.config.settings import settings
from shared.config.logging import setup_logging, rest_api_logger as logger
from rest_api.models import Base
from ws_gateway.connection_manager import NotificationHub


def check_production_secrets() -> None:
    """Refuse to start in production with insecure configuration."""
    secret_errors = settings.validate_production_secrets()
    if not secret_errors:
        return
    for error in secret_errors:
        logger.error("Configuration error: %s", error)
    if settings.environment == "production":
        raise RuntimeError(
            f"Production configuration errors: {'; '.join(secret_errors)}. "
            "Server will not start with insecure configuration."
        )
    logger.warning("Running with insecure defaults (acceptable for development only)")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.
    Runs on startup and shutdown.
    """
    setup_logging()
    check_production_secrets()

    logger.info("Starting REST API", port=settings.rest_api_port, env=settings.environment)

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    # The hub binds to this loop; sync routes publish into it from the threadpool
    hub = NotificationHub()
    await hub.start()
    app.state.hub = hub

    yield

    logger.info("Shutting down REST API")
    await hub.shutdown()
