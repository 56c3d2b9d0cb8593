"""
Query executor - Parameterized store operations on the worker pool.

Turns domain commands into parameterized statements, runs them on the
worker pool and normalizes every result or error into a QueryOutcome.

Field values are always passed as bound parameters; statement text is
built only from fixed SQL and identifiers validated by the credential
policy. Driver and pool errors are logged here and replaced by a
FailureKind whose message is safe to show to clients.
"""

import asyncio
import json
import logging
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from .exceptions import (
    ConstraintViolation,
    PersistenceError,
    PoolClosed,
    QueueFull,
    StoreUnavailable,
    WorkDropped,
    WorkTimeout,
)
from .outcomes import FailureKind, QueryFailure, QueryOutcome, QueryResult, RegistrationRequest
from .policy import identifier_valid
from .ports import Store, WorkSubmitter

logger = logging.getLogger(__name__)

T = TypeVar("T")

USERS_TABLE = "users"

INSERT_USER_SQL = (
    "INSERT INTO users (username, password_hash, role, user_data) "
    "VALUES (%s, %s, %s, %s::jsonb) "
    "RETURNING username"
)


class QueryExecutor:
    """
    Runs store operations on the worker pool and classifies their outcome.

    The awaiting coroutine suspends on the work handle without blocking
    the event loop.
    """

    def __init__(
        self,
        store: Store,
        workers: WorkSubmitter,
        timeout: float | None = None,
        resource_table: str = "resources",
    ) -> None:
        if not identifier_valid(resource_table):
            raise ValueError(f"Invalid resource table name: {resource_table!r}")
        self._store = store
        self._workers = workers
        self._timeout = timeout
        self._select_resource_sql = f"SELECT * FROM {resource_table} WHERE id = %s"

    async def exists(self, table: str, column: str, value: Any) -> bool | QueryFailure:
        """Existence probe; returns a QueryFailure instead of raising."""
        return await self._dispatch(lambda: self._store.check_exists(table, column, value))

    async def run(self, statement: str, params: Sequence[Any] = ()) -> QueryOutcome:
        """Execute a read; an empty result is still a success."""
        return await self._dispatch(lambda: self._store.execute(statement, params))

    async def command(self, statement: str, params: Sequence[Any] = ()) -> QueryOutcome:
        """Execute a write; zero affected rows is reported as a NO_OP failure."""
        outcome = await self.run(statement, params)
        if isinstance(outcome, QueryResult) and outcome.affected == 0:
            logger.warning("Write statement affected no rows")
            return QueryFailure(FailureKind.NO_OP)
        return outcome

    async def insert_user(self, request: RegistrationRequest) -> QueryOutcome:
        try:
            user_data = json.dumps(request.user_data, allow_nan=False)
        except (TypeError, ValueError, RecursionError):
            logger.exception("user_data could not be serialized")
            return QueryFailure(FailureKind.INTERNAL)
        params = (request.username, request.password_hash, request.role, user_data)
        return await self.command(INSERT_USER_SQL, params)

    async def fetch_resource(self, resource_id: int) -> QueryOutcome:
        return await self.run(self._select_resource_sql, (resource_id,))

    async def _dispatch(self, operation: Callable[[], T]) -> T | QueryFailure:
        if self._workers.blocks_when_full:
            # submit() may wait for queue space; keep that wait off the event loop
            future = await asyncio.to_thread(
                self._workers.submit, operation, timeout=self._timeout
            )
        else:
            future = self._workers.submit(operation, timeout=self._timeout)
        try:
            return await asyncio.wrap_future(future)
        except ConstraintViolation as e:
            logger.info("Constraint violation: %s", e)
            return QueryFailure(FailureKind.CONFLICT)
        except (QueueFull, WorkDropped) as e:
            logger.warning("Worker pool refused work: %s", e)
            return QueryFailure(FailureKind.QUEUE_FULL)
        except WorkTimeout as e:
            logger.warning("Work item timed out: %s", e)
            return QueryFailure(FailureKind.TIMEOUT)
        except (PoolClosed, StoreUnavailable) as e:
            logger.error("Store unavailable: %s", e)
            return QueryFailure(FailureKind.UNAVAILABLE)
        except PersistenceError:
            logger.exception("Store operation failed")
            return QueryFailure(FailureKind.STORE_ERROR)
        except Exception:
            logger.exception("Unexpected failure while executing store operation")
            return QueryFailure(FailureKind.INTERNAL)
