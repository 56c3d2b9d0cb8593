"""
Thread worker pool adapter - Implements WorkSubmitter protocol.

A fixed set of worker threads serving a bounded FIFO queue. Store
operations are blocking psycopg calls, so they run here instead of on
the event loop; callers get a concurrent.futures.Future per item.

Delivery guarantees:
--------------------
1. Every submitted item's future is resolved exactly once: with the
   operation's result, the exception it raised, or a WorkerPoolError
   (QueueFull, WorkDropped, WorkTimeout, PoolClosed).
2. Items run at most once. An item whose deadline passed while queued
   is failed with WorkTimeout and never executed.
3. Anything an operation raises, BaseException subclasses included, is
   captured on its future; the worker goes back to IDLE and keeps
   serving the queue.

Overflow policies (queue at capacity):
- BLOCK: the submitting thread waits for space until the item's deadline
- FAIL_FAST: the new item fails immediately with QueueFull
- DROP_OLDEST: the oldest queued item fails with WorkDropped, the new one is queued
"""

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar

from src.domain.exceptions import PoolClosed, QueueFull, WorkDropped, WorkTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OverflowPolicy(str, Enum):
    BLOCK = "block"
    FAIL_FAST = "fail_fast"
    DROP_OLDEST = "drop_oldest"


class WorkerState(str, Enum):
    IDLE = "idle"
    EXECUTING = "executing"


@dataclass
class WorkItem:
    """A unit of work and the one-shot future its result is delivered through."""

    operation: Callable[[], Any]
    result: Future = field(default_factory=Future)
    deadline: float | None = None  # time.monotonic() value

    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def fail(self, error: BaseException) -> None:
        """Resolve a not-yet-running item with error, unless its caller cancelled it."""
        if self.result.set_running_or_notify_cancel():
            self.result.set_exception(error)


class WorkerPool:
    """
    Fixed-size thread pool with a bounded queue.

    Uses structural subtyping - no explicit inheritance from WorkSubmitter.
    The queue is the only shared mutable structure; every access to it
    goes through a single condition variable.
    """

    def __init__(
        self,
        workers: int = 4,
        queue_capacity: int = 64,
        overflow: OverflowPolicy = OverflowPolicy.FAIL_FAST,
        name: str = "store-worker",
    ) -> None:
        """
        Start the worker threads.

        Args:
            workers: Number of worker threads (fixed for the pool lifetime)
            queue_capacity: Maximum number of queued, unclaimed items
            overflow: What submit() does when the queue is at capacity
            name: Thread name prefix
        """
        if workers < 1:
            raise ValueError("workers must be at least 1")
        if queue_capacity < 1:
            raise ValueError("queue_capacity must be at least 1")

        self._capacity = queue_capacity
        self._overflow = OverflowPolicy(overflow)
        self._queue: deque[WorkItem] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._states = [WorkerState.IDLE] * workers
        self._threads = [
            threading.Thread(target=self._work, args=(index,), name=f"{name}-{index}", daemon=True)
            for index in range(workers)
        ]
        for thread in self._threads:
            thread.start()
        logger.info(
            "Worker pool started: %d workers, queue capacity %d, overflow %s",
            workers,
            queue_capacity,
            self._overflow.value,
        )

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def blocks_when_full(self) -> bool:
        return self._overflow is OverflowPolicy.BLOCK

    def pending(self) -> int:
        """Number of queued items not yet claimed by a worker."""
        with self._cond:
            return len(self._queue)

    def worker_states(self) -> list[WorkerState]:
        with self._cond:
            return list(self._states)

    def submit(self, operation: Callable[[], T], timeout: float | None = None) -> "Future[T]":
        """
        Queue operation for execution.

        Args:
            operation: Zero-argument callable run on a worker thread
            timeout: Seconds the item may wait before a worker claims it

        Returns:
            Future resolved with the result or a failure; never raises
        """
        deadline = time.monotonic() + timeout if timeout is not None else None
        item = WorkItem(operation=operation, deadline=deadline)

        with self._cond:
            if self._closed:
                item.fail(PoolClosed("Worker pool is shut down"))
                return item.result

            if len(self._queue) >= self._capacity:
                if self._overflow is OverflowPolicy.FAIL_FAST:
                    item.fail(
                        QueueFull(f"Worker queue is full ({self._capacity} items)")
                    )
                    return item.result

                if self._overflow is OverflowPolicy.DROP_OLDEST:
                    dropped = self._queue.popleft()
                    dropped.fail(WorkDropped("Evicted by newer work"))
                    logger.warning("Worker queue full, dropped oldest item")

                else:
                    while len(self._queue) >= self._capacity and not self._closed:
                        remaining = None if deadline is None else deadline - time.monotonic()
                        if remaining is not None and remaining <= 0:
                            item.fail(
                                WorkTimeout("Timed out waiting for queue space")
                            )
                            return item.result
                        self._cond.wait(remaining)
                    if self._closed:
                        item.fail(PoolClosed("Worker pool is shut down"))
                        return item.result

            self._queue.append(item)
            self._cond.notify_all()

        return item.result

    def shutdown(self, wait: bool = True, cancel_pending: bool = False) -> None:
        """
        Stop accepting work and release the worker threads.

        Args:
            wait: Block until every worker thread has exited
            cancel_pending: Fail queued items with PoolClosed instead of draining them
        """
        with self._cond:
            if self._closed and not cancel_pending:
                return
            self._closed = True
            if cancel_pending:
                while self._queue:
                    self._queue.popleft().fail(
                        PoolClosed("Worker pool shut down before the item ran")
                    )
            self._cond.notify_all()

        if wait:
            for thread in self._threads:
                thread.join()
        logger.info("Worker pool shut down")

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown(wait=True)

    def _next_item(self) -> WorkItem | None:
        with self._cond:
            while not self._queue and not self._closed:
                self._cond.wait()
            if not self._queue:
                return None
            item = self._queue.popleft()
            # Wake submitters blocked on a full queue
            self._cond.notify_all()
            return item

    def _set_state(self, index: int, state: WorkerState) -> None:
        with self._cond:
            self._states[index] = state

    def _work(self, index: int) -> None:
        while True:
            item = self._next_item()
            if item is None:
                return

            if not item.result.set_running_or_notify_cancel():
                continue

            if item.expired():
                item.result.set_exception(WorkTimeout("Deadline passed before execution"))
                continue

            self._set_state(index, WorkerState.EXECUTING)
            try:
                value = item.operation()
            except BaseException as e:
                # The worker must outlive any item
                logger.debug("Work item raised %s", type(e).__name__)
                item.result.set_exception(e)
            else:
                item.result.set_result(value)
            finally:
                self._set_state(index, WorkerState.IDLE)
