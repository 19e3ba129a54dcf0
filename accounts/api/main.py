"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routes and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import ConnectionPool

from accounts.adapters.hashing.bcrypt_hasher import BcryptPasswordHasher
from accounts.adapters.repository.memory import InMemoryUserStore
from accounts.adapters.repository.postgres import PostgresUserStore, run_migrations
from accounts.adapters.smtp.background import BackgroundNotificationSender
from accounts.adapters.smtp.console import ConsoleNotificationSender
from accounts.adapters.smtp.smtp import SmtpNotificationSender
from accounts.api.v1 import router as v1_router
from accounts.config.settings import Settings, get_settings
from accounts.domain.ports import NotificationPort

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Account Lifecycle API v1 - Register, activate, and manage user accounts",
    },
]


def build_notification_sender(settings: Settings) -> NotificationPort:
    """Create the configured delivery adapter (without background dispatch)."""
    if settings.notification_backend == "smtp":
        return SmtpNotificationSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            mail_from=settings.mail_from,
            base_url=settings.base_url,
            reset_url=settings.reset_url,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            timeout=settings.smtp_timeout_seconds,
        )
    return ConsoleNotificationSender(base_url=settings.base_url, reset_url=settings.reset_url)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates the user store (database pool + migrations, or in-memory)
    - Creates the password hasher and notification dispatcher
    - Drains pending notifications and closes the pool on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")

    pool: ConnectionPool | None = None
    if settings.user_store == "postgres":
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
            open=True,
        )

        logger.info("Running database migrations...")
        run_migrations(pool)
        app.state.store = PostgresUserStore(pool)
    else:
        logger.warning("Using in-memory user store; accounts are lost on restart")
        app.state.store = InMemoryUserStore()

    executor = ThreadPoolExecutor(
        max_workers=settings.notification_workers,
        thread_name_prefix="notifications",
    )

    app.state.pool = pool
    app.state.hasher = BcryptPasswordHasher(rounds=settings.bcrypt_cost)
    app.state.notifier = BackgroundNotificationSender(build_notification_sender(settings), executor)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    executor.shutdown(wait=True)
    logger.info("Notification dispatcher drained")
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


app = FastAPI(
    title="accounts",
    description="Account Lifecycle API - Registration, activation, and password management",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
def health_check(request: Request) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    pool = request.app.state.pool
    if pool is not None:
        with pool.connection() as conn:
            conn.execute("SELECT 1")

    return {"status": "healthy"}
