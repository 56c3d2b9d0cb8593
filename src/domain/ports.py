"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Callable, Sequence
from concurrent.futures import Future
from typing import Any, Protocol, TypeVar

from .outcomes import QueryResult

T = TypeVar("T")


class Store(Protocol):
    """Port interface for the relational store."""

    def check_exists(self, table: str, column: str, value: Any) -> bool:
        """
        Check whether any row in table has column equal to value.

        Raises:
            PersistenceError: On any store failure
        """
        ...

    def execute(self, statement: str, params: Sequence[Any] = ()) -> QueryResult:
        """
        Execute a parameterized statement with bound parameters.

        Args:
            statement: SQL text using %s placeholders only
            params: Values bound to the placeholders, never interpolated

        Returns:
            QueryResult with returned rows and the affected row count

        Raises:
            ConstraintViolation: If a store constraint rejected the write
            StoreUnavailable: If no connection could be obtained
            PersistenceError: On any other store failure
        """
        ...


class WorkSubmitter(Protocol):
    """Port interface for the worker pool that runs store operations."""

    @property
    def blocks_when_full(self) -> bool:
        """True if submit() can wait for queue space instead of returning at once."""
        ...

    def submit(self, operation: Callable[[], T], timeout: float | None = None) -> "Future[T]":
        """
        Queue operation for execution on a worker.

        All failures, including refusal at submit time, are delivered
        through the returned future.
        """
        ...
