"""Concurrent dispatch engine.

Classes:
    WorkerPool: Fixed-size pool of asyncio workers
    QueueWriter: Serialised removals from the persisted queue file
    FailureLog: Append-only record of timed-out / rejected identifiers
    WorkItem, RequestTemplate: Units of work
    Success, Failure: The two shapes of a Result
    RunSummary: Counts over a run's results

Functions:
    dispatch / run_bulk_subscribe: Whole-run orchestration
    read_identifiers / remove_line: Queue file primitives
"""
from .failure_log import FailureLog, append_line
from .models import (
    Failure,
    RequestTemplate,
    Result,
    RunSummary,
    Success,
    WorkItem,
)
from .pool import WorkerPool, validate_worker_count
from .queue_file import QueueWriter, read_identifiers, remove_line
from .runner import build_work_items, dispatch, run_bulk_subscribe
from .worker import execute_work_item

__all__ = [
    "WorkerPool",
    "validate_worker_count",
    "QueueWriter",
    "read_identifiers",
    "remove_line",
    "FailureLog",
    "append_line",
    "RequestTemplate",
    "WorkItem",
    "Success",
    "Failure",
    "Result",
    "RunSummary",
    "execute_work_item",
    "build_work_items",
    "dispatch",
    "run_bulk_subscribe",
]
