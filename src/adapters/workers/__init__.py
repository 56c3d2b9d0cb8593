"""Worker adapters - Execution of blocking store operations off the event loop."""

from .pool import OverflowPolicy, WorkerPool, WorkerState, WorkItem

__all__ = ["OverflowPolicy", "WorkItem", "WorkerPool", "WorkerState"]
