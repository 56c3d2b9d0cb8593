"""
Shared fixtures for adversarial tests.

Provides common test infrastructure for race condition tests against
a real PostgreSQL database.
"""

from collections.abc import Generator

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresStore, ensure_schema
from src.adapters.workers.pool import WorkerPool
from src.domain.executor import QueryExecutor
from src.domain.registration import RegistrationPipeline

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


@pytest.fixture(scope="module")
def pool(database_url: str) -> Generator[ConnectionPool, None, None]:
    """Create connection pool for adversarial tests."""
    pool = ConnectionPool(
        conninfo=database_url,
        min_size=1,
        max_size=10,
        open=True,
    )
    ensure_schema(pool)
    yield pool
    pool.close()


@pytest.fixture
def pg_store(pool: ConnectionPool) -> PostgresStore:
    """Create store instance for each test."""
    return PostgresStore(pool, timeout=10.0)


@pytest.fixture
def attack_workers() -> Generator[WorkerPool, None, None]:
    workers = WorkerPool(workers=8, queue_capacity=128, name="attack-worker")
    yield workers
    workers.shutdown(wait=True)


@pytest.fixture
def pipeline(pg_store: PostgresStore, attack_workers: WorkerPool) -> RegistrationPipeline:
    executor = QueryExecutor(store=pg_store, workers=attack_workers, timeout=10.0)
    return RegistrationPipeline.create(executor)


@pytest.fixture(autouse=True)
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Clean users table before each test."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM users")
        conn.commit()
    yield
