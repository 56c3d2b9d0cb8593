"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Depends, Request

from src.adapters.repository.postgres import PostgresStore
from src.adapters.workers.pool import WorkerPool
from src.config.settings import Settings, get_settings
from src.domain.executor import QueryExecutor
from src.domain.registration import RegistrationPipeline
from src.domain.resources import ResourceService


def get_store(request: Request) -> PostgresStore:
    """
    Get store from app state.

    The store (and its connection pool) is created during app lifespan
    startup and stored in app.state.
    """
    return request.app.state.store


def get_worker_pool(request: Request) -> WorkerPool:
    """Get the worker pool created during app lifespan startup."""
    return request.app.state.workers


def get_query_executor(
    store: PostgresStore = Depends(get_store),
    workers: WorkerPool = Depends(get_worker_pool),
    settings: Settings = Depends(get_settings),
) -> QueryExecutor:
    """Create executor bound to the shared store and worker pool."""
    return QueryExecutor(
        store=store,
        workers=workers,
        timeout=settings.work_timeout_seconds,
        resource_table=settings.resource_table,
    )


def get_registration_pipeline(
    executor: QueryExecutor = Depends(get_query_executor),
) -> RegistrationPipeline:
    return RegistrationPipeline.create(executor)


def get_resource_service(
    executor: QueryExecutor = Depends(get_query_executor),
) -> ResourceService:
    return ResourceService(executor=executor)
