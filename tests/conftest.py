"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- An in-memory store that enforces username uniqueness like the users table
- A worker pool and query executor wired to that store
- The database URL for integration tests (skipped when PostgreSQL is down)
"""

import json
import threading
from collections.abc import Generator, Sequence
from typing import Any

import psycopg
import pytest

from src.adapters.workers.pool import WorkerPool
from src.config.settings import get_settings
from src.domain.exceptions import ConstraintViolation
from src.domain.executor import INSERT_USER_SQL, QueryExecutor
from src.domain.outcomes import QueryResult

VALID_BODY: dict[str, Any] = {
    "username": "alice",
    "password": "Str0ng!Pass",
    "role": "member",
    "user_data": {"contact": {"email": "a@b.com"}},
}


class InMemoryStore:
    """
    Store fake understanding the statements QueryExecutor issues.

    Inserting an existing username raises ConstraintViolation, mirroring
    the primary key on users.username. Set probe_barrier to hold every
    existence probe until all parties have probed.
    """

    def __init__(self) -> None:
        self.users: dict[str, dict[str, Any]] = {}
        self.resources: dict[int, dict[str, Any]] = {}
        self.statements: list[tuple[str, tuple[Any, ...]]] = []
        self.probes: list[tuple[str, str, Any]] = []
        self.probe_barrier: threading.Barrier | None = None
        self._lock = threading.Lock()

    def check_exists(self, table: str, column: str, value: Any) -> bool:
        with self._lock:
            self.probes.append((table, column, value))
            found = table == "users" and column == "username" and value in self.users
        if self.probe_barrier is not None:
            self.probe_barrier.wait(timeout=5)
        return found

    def execute(self, statement: str, params: Sequence[Any] = ()) -> QueryResult:
        with self._lock:
            self.statements.append((statement, tuple(params)))

            if statement == INSERT_USER_SQL:
                username, password_hash, role, user_data = params
                if username in self.users:
                    raise ConstraintViolation("users_pkey")
                self.users[username] = {
                    "username": username,
                    "password_hash": password_hash,
                    "role": role,
                    "user_data": json.loads(user_data),
                }
                return QueryResult(rows=[{"username": username}], affected=1)

            if statement.startswith("SELECT * FROM resources WHERE id = %s"):
                row = self.resources.get(params[0])
                rows = [row] if row is not None else []
                return QueryResult(rows=rows, affected=len(rows))

        raise AssertionError(f"Unexpected statement: {statement}")


@pytest.fixture
def valid_body() -> dict[str, Any]:
    """Fresh copy of a registration body that passes every check."""
    return json.loads(json.dumps(VALID_BODY))


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def workers() -> Generator[WorkerPool, None, None]:
    pool = WorkerPool(workers=4, queue_capacity=16, name="test-worker")
    yield pool
    pool.shutdown(wait=True, cancel_pending=True)


@pytest.fixture
def executor(store: InMemoryStore, workers: WorkerPool) -> QueryExecutor:
    return QueryExecutor(store=store, workers=workers, timeout=5.0)


@pytest.fixture(scope="session")
def database_url() -> str:
    """Database URL for integration tests; skips them when PostgreSQL is unreachable."""
    settings = get_settings()
    try:
        with psycopg.connect(settings.database_url, connect_timeout=3):
            pass
    except psycopg.OperationalError as e:
        pytest.skip(f"PostgreSQL not available: {e}")
    return settings.database_url
