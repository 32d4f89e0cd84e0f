"""Worker Pool and Result Aggregation.

A fixed number of asyncio worker tasks drain one job queue. Each work item
yields exactly one Result on the result queue. Once every worker has
stopped, a closer task puts a single closing marker on the result queue so
the consumer knows all results have arrived.

    jobs:    [item, item, ..., STOP x N]   (never blocks on put)
    results: [result, result, ..., CLOSED]

Results are yielded in completion order, not identifier order. A worker
never dies on a single item: unforeseen errors come back as Failures.

Usage:
    pool = WorkerPool(workers=10, client=client,
                      queue_writer=QueueWriter(), failure_log=FailureLog(path))
    async for result in pool.results(items):
        ...
"""
import asyncio
import logging
from typing import AsyncIterator, Sequence

from ..api.exceptions import ConfigurationError
from .failure_log import FailureLog
from .models import Result, WorkItem
from .queue_file import QueueWriter
from .worker import HTTPClient, execute_work_item

logger = logging.getLogger(__name__)

_STOP = object()
_CLOSED = object()


def validate_worker_count(workers) -> int:
    """Return ``workers`` if it is a positive integer.

    Raises:
        ConfigurationError: Otherwise
    """
    if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
        raise ConfigurationError(
            f"Worker count must be a positive integer, got {workers!r}",
            details={"workers": workers},
        )
    return workers


class WorkerPool:
    """Fixed-size pool executing work items concurrently.

    All workers share one HTTP client, one QueueWriter and one FailureLog.
    No retries happen inside the pool.

    Attributes:
        workers: Number of concurrent workers (>= 1)
    """

    def __init__(
        self,
        workers: int,
        client: HTTPClient,
        queue_writer: QueueWriter,
        failure_log: FailureLog,
    ):
        self.workers = validate_worker_count(workers)
        self.client = client
        self.queue_writer = queue_writer
        self.failure_log = failure_log

    async def results(self, items: Sequence[WorkItem]) -> AsyncIterator[Result]:
        """Dispatch ``items`` and yield one Result per item as they complete."""
        jobs: asyncio.Queue = asyncio.Queue(maxsize=len(items) + self.workers)
        results: asyncio.Queue = asyncio.Queue(maxsize=len(items) + 1)

        tasks = [
            asyncio.create_task(self._worker_loop(i, jobs, results))
            for i in range(self.workers)
        ]
        closer = asyncio.create_task(self._close_when_drained(tasks, results))

        for item in items:
            jobs.put_nowait(item)
        # No more work: one stop marker per worker
        for _ in range(self.workers):
            jobs.put_nowait(_STOP)

        logger.info(f"Dispatching {len(items)} item(s) to {self.workers} worker(s)")

        try:
            while True:
                result = await results.get()
                if result is _CLOSED:
                    break
                yield result
            # Surfaces cancellation or a failure outside per-item handling
            await closer
        finally:
            for task in tasks:
                task.cancel()
            closer.cancel()
            await asyncio.gather(*tasks, closer, return_exceptions=True)

    async def run(self, items: Sequence[WorkItem]) -> list[Result]:
        """Dispatch ``items`` and return every Result once the pool drains."""
        return [result async for result in self.results(items)]

    async def _worker_loop(
        self,
        worker_id: int,
        jobs: asyncio.Queue,
        results: asyncio.Queue,
    ) -> None:
        logger.debug(f"Worker {worker_id} started")
        processed = 0

        while True:
            item = await jobs.get()
            if item is _STOP:
                break
            result = await execute_work_item(
                self.client, item, self.queue_writer, self.failure_log
            )
            results.put_nowait(result)
            processed += 1

        logger.debug(f"Worker {worker_id} stopped after {processed} item(s)")

    async def _close_when_drained(
        self,
        tasks: list[asyncio.Task],
        results: asyncio.Queue,
    ) -> None:
        try:
            await asyncio.gather(*tasks)
        finally:
            results.put_nowait(_CLOSED)
