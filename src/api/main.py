"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures routes and lifespan events.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresStore, ensure_schema
from src.adapters.workers.pool import OverflowPolicy, WorkerPool
from src.api.dependencies import get_store
from src.api.routes import router
from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "users",
        "description": "User registration with credential validation",
    },
    {
        "name": "resources",
        "description": "Generic record retrieval",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool and applies schema on startup
    - Starts the fixed-size worker pool for store operations
    - Drains the worker pool and closes the connection pool on shutdown
    """
    settings = get_settings()
    logging.getLogger("src").setLevel(settings.log_level.upper())

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.pool_timeout_seconds,
    )

    logger.info("Applying database schema...")
    ensure_schema(pool)

    # Store shared resources in app state for dependency injection
    app.state.store = PostgresStore(pool, timeout=settings.pool_timeout_seconds)
    app.state.workers = WorkerPool(
        workers=settings.worker_count,
        queue_capacity=settings.queue_capacity,
        overflow=OverflowPolicy(settings.overflow_policy),
    )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    app.state.workers.shutdown(wait=True)
    app.state.store.close()


app = FastAPI(
    title="registry",
    description="User Registration API - Validated registration and record retrieval "
    "over a bounded worker pool",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

app.include_router(router)


@app.get("/health")
async def health_check(store: PostgresStore = Depends(get_store)) -> dict[str, str]:
    """
    Health check endpoint with database validation.

    Returns 200 OK if application and database are healthy.
    Raises exception if database connection fails.
    """
    await asyncio.to_thread(store.ping)

    return {"status": "healthy"}
