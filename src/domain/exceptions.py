"""
Domain exceptions - Semantic error types for persistence and execution.

This module defines domain-specific exceptions raised by adapters
(store, worker pool) and classified by the query executor into
QueryFailure values. Their messages never reach clients directly.
"""


class PersistenceError(Exception):
    """Base class for store failures."""

    pass


class ConstraintViolation(PersistenceError):
    """A store-enforced constraint (e.g. unique username) rejected the write."""

    pass


class StoreUnavailable(PersistenceError):
    """The store could not be reached or no connection was available in time."""

    pass


class WorkerPoolError(Exception):
    """Base class for worker pool failures delivered through a work handle."""

    pass


class QueueFull(WorkerPoolError):
    """The pool queue was at capacity and the overflow policy refused the item."""

    pass


class WorkDropped(WorkerPoolError):
    """The item was evicted from the queue to make room for newer work."""

    pass


class WorkTimeout(WorkerPoolError):
    """The item's deadline elapsed before a worker claimed it."""

    pass


class PoolClosed(WorkerPoolError):
    """The pool was shut down before the item could run."""

    pass
