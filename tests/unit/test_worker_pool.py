"""
Unit tests for the thread WorkerPool.

Tests verify:
- Results and exceptions are delivered through the returned future
- FIFO queuing beyond the worker count
- Overflow policies (FAIL_FAST, DROP_OLDEST, BLOCK)
- Deadlines for queued items
- Shutdown draining and cancellation
"""

import threading
import time
from collections.abc import Callable, Generator

import pytest

from src.adapters.workers.pool import OverflowPolicy, WorkerPool, WorkerState
from src.domain.exceptions import PoolClosed, QueueFull, WorkDropped, WorkTimeout


def blocker() -> tuple[Callable[[], str], threading.Event, threading.Event]:
    """Operation that signals when it starts and holds its worker until released."""
    started = threading.Event()
    release = threading.Event()

    def operation() -> str:
        started.set()
        release.wait(timeout=5)
        return "released"

    return operation, started, release


@pytest.fixture
def single() -> Generator[WorkerPool, None, None]:
    pool = WorkerPool(workers=1, queue_capacity=1, overflow=OverflowPolicy.FAIL_FAST)
    yield pool
    pool.shutdown(wait=True, cancel_pending=True)


class TestConstruction:
    def test_rejects_zero_workers(self) -> None:
        with pytest.raises(ValueError):
            WorkerPool(workers=0)

    def test_rejects_zero_capacity(self) -> None:
        with pytest.raises(ValueError):
            WorkerPool(workers=1, queue_capacity=0)

    def test_workers_start_idle(self) -> None:
        with WorkerPool(workers=3) as pool:
            assert pool.worker_states() == [WorkerState.IDLE] * 3


class TestSubmit:
    """Tests for result delivery."""

    def test_result_delivered(self, workers: WorkerPool) -> None:
        future = workers.submit(lambda: 21 * 2)
        assert future.result(timeout=5) == 42

    def test_exception_delivered_through_future(self, workers: WorkerPool) -> None:
        def explode() -> None:
            raise RuntimeError("boom")

        future = workers.submit(explode)

        with pytest.raises(RuntimeError, match="boom"):
            future.result(timeout=5)

    def test_pool_survives_faulting_item(self, single: WorkerPool) -> None:
        def explode() -> None:
            raise RuntimeError("boom")

        failed = single.submit(explode)
        assert isinstance(failed.exception(timeout=5), RuntimeError)

        follow_up = single.submit(lambda: "still serving")
        assert follow_up.result(timeout=5) == "still serving"

    def test_pool_survives_base_exception(self, single: WorkerPool) -> None:
        class Fatal(BaseException):
            pass

        def crash() -> None:
            raise Fatal()

        failed = single.submit(crash)
        assert isinstance(failed.exception(timeout=5), Fatal)

        follow_up = single.submit(lambda: "still serving")
        assert follow_up.result(timeout=5) == "still serving"

    def test_items_run_exactly_once(self, workers: WorkerPool) -> None:
        counter = {"runs": 0}
        lock = threading.Lock()

        def count() -> None:
            with lock:
                counter["runs"] += 1

        futures = [workers.submit(count) for _ in range(10)]
        for future in futures:
            future.result(timeout=5)

        assert counter["runs"] == 10

    def test_worker_state_executing_while_running(self, single: WorkerPool) -> None:
        operation, started, release = blocker()
        future = single.submit(operation)
        assert started.wait(timeout=5)

        assert single.worker_states() == [WorkerState.EXECUTING]

        release.set()
        future.result(timeout=5)


class TestQueueing:
    """N+1 items on N workers are queued, not dropped."""

    def test_extra_item_is_queued_until_worker_frees(self, single: WorkerPool) -> None:
        operation, started, release = blocker()
        first = single.submit(operation)
        assert started.wait(timeout=5)

        second = single.submit(lambda: "second")

        assert single.pending() == 1
        assert not second.done()

        release.set()
        assert first.result(timeout=5) == "released"
        assert second.result(timeout=5) == "second"

    def test_fifo_order(self) -> None:
        order: list[int] = []
        with WorkerPool(workers=1, queue_capacity=10) as pool:
            operation, started, release = blocker()
            pool.submit(operation)
            assert started.wait(timeout=5)

            futures = [pool.submit(lambda i=i: order.append(i)) for i in range(5)]
            release.set()
            for future in futures:
                future.result(timeout=5)

        assert order == [0, 1, 2, 3, 4]


class TestOverflowPolicies:
    """Tests for behaviour at queue capacity."""

    def test_fail_fast_rejects_new_item(self, single: WorkerPool) -> None:
        operation, started, release = blocker()
        single.submit(operation)
        assert started.wait(timeout=5)
        queued = single.submit(lambda: "queued")

        rejected = single.submit(lambda: "rejected")

        assert isinstance(rejected.exception(timeout=1), QueueFull)
        release.set()
        assert queued.result(timeout=5) == "queued"

    def test_drop_oldest_fails_evicted_item(self) -> None:
        pool = WorkerPool(workers=1, queue_capacity=1, overflow=OverflowPolicy.DROP_OLDEST)
        try:
            operation, started, release = blocker()
            pool.submit(operation)
            assert started.wait(timeout=5)
            oldest = pool.submit(lambda: "oldest")

            newest = pool.submit(lambda: "newest")

            assert isinstance(oldest.exception(timeout=1), WorkDropped)
            release.set()
            assert newest.result(timeout=5) == "newest"
        finally:
            pool.shutdown(cancel_pending=True)

    def test_block_times_out_at_deadline(self) -> None:
        pool = WorkerPool(workers=1, queue_capacity=1, overflow=OverflowPolicy.BLOCK)
        try:
            operation, started, release = blocker()
            pool.submit(operation)
            assert started.wait(timeout=5)
            pool.submit(lambda: "queued")

            began = time.monotonic()
            blocked = pool.submit(lambda: "blocked", timeout=0.1)

            assert time.monotonic() - began >= 0.09
            assert isinstance(blocked.exception(timeout=1), WorkTimeout)
            release.set()
        finally:
            pool.shutdown(cancel_pending=True)

    def test_block_waits_for_space(self) -> None:
        pool = WorkerPool(workers=1, queue_capacity=1, overflow=OverflowPolicy.BLOCK)
        try:
            operation, started, release = blocker()
            pool.submit(operation)
            assert started.wait(timeout=5)
            pool.submit(lambda: "queued")

            threading.Timer(0.05, release.set).start()
            blocked = pool.submit(lambda: "eventually", timeout=5)

            assert blocked.result(timeout=5) == "eventually"
        finally:
            pool.shutdown(cancel_pending=True)


class TestDeadlines:
    """An item whose deadline passes while queued is never executed."""

    def test_expired_item_fails_without_running(self, single: WorkerPool) -> None:
        operation, started, release = blocker()
        single.submit(operation)
        assert started.wait(timeout=5)

        ran = threading.Event()
        late = single.submit(ran.set, timeout=0.01)
        time.sleep(0.05)
        release.set()

        assert isinstance(late.exception(timeout=5), WorkTimeout)
        assert not ran.is_set()

    def test_item_without_deadline_waits(self, single: WorkerPool) -> None:
        operation, started, release = blocker()
        single.submit(operation)
        assert started.wait(timeout=5)

        patient = single.submit(lambda: "done")
        time.sleep(0.05)
        release.set()

        assert patient.result(timeout=5) == "done"


class TestShutdown:
    """Tests for pool shutdown."""

    def test_submit_after_shutdown_fails(self) -> None:
        pool = WorkerPool(workers=1)
        pool.shutdown()

        future = pool.submit(lambda: "late")

        assert pool.closed
        assert isinstance(future.exception(timeout=1), PoolClosed)

    def test_shutdown_drains_queued_items(self) -> None:
        pool = WorkerPool(workers=1, queue_capacity=5)
        operation, started, release = blocker()
        pool.submit(operation)
        assert started.wait(timeout=5)
        queued = [pool.submit(lambda i=i: i) for i in range(3)]

        threading.Timer(0.05, release.set).start()
        pool.shutdown(wait=True)

        assert [future.result(timeout=0) for future in queued] == [0, 1, 2]

    def test_shutdown_cancel_pending_fails_queued_items(self) -> None:
        pool = WorkerPool(workers=1, queue_capacity=5)
        operation, started, release = blocker()
        running = pool.submit(operation)
        assert started.wait(timeout=5)
        queued = [pool.submit(lambda: "never") for _ in range(3)]

        pool.shutdown(wait=False, cancel_pending=True)
        release.set()

        for future in queued:
            assert isinstance(future.exception(timeout=1), PoolClosed)
        assert running.result(timeout=5) == "released"

    def test_cancelled_future_is_skipped(self) -> None:
        with WorkerPool(workers=1, queue_capacity=5) as pool:
            operation, started, release = blocker()
            pool.submit(operation)
            assert started.wait(timeout=5)

            ran = threading.Event()
            queued = pool.submit(ran.set)
            assert queued.cancel()
            follow_up = pool.submit(lambda: "after")
            release.set()

            assert follow_up.result(timeout=5) == "after"
            assert not ran.is_set()
