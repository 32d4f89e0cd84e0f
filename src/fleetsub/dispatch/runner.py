"""Run orchestration: from queue file to aggregated results.

Order of a run:
    1. Validate the worker count           (ConfigurationError)
    2. Load the queue file                 (ConfigurationError)
    3. Acquire the bearer token            (TokenAcquisitionError)
    4. Build one WorkItem per identifier
    5. Dispatch through the WorkerPool and collect every Result

Steps 1-3 abort the run before any subscribe request is made.
"""
import logging
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional, Union

from ..api.client import REQUEST_TIMEOUT_SECONDS, AssetClient
from .failure_log import FailureLog
from .models import RequestTemplate, Result, WorkItem
from .pool import WorkerPool, validate_worker_count
from .queue_file import QueueWriter, read_identifiers
from .worker import HTTPClient

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str]]


def build_work_items(
    identifiers: list[str],
    template: RequestTemplate,
    token: str,
    queue_path: Union[str, Path],
) -> list[WorkItem]:
    """Pair every identifier with the shared request template."""
    queue_path = Path(queue_path)
    return [
        WorkItem(
            identifier=identifier,
            template=template,
            token=token,
            queue_path=queue_path,
        )
        for identifier in identifiers
    ]


async def dispatch(
    workers: int,
    queue_path: Union[str, Path],
    template: RequestTemplate,
    get_token: TokenProvider,
    failure_log_path: Union[str, Path],
    client: Optional[HTTPClient] = None,
) -> AsyncIterator[Result]:
    """Run a bulk subscription and yield Results as workers finish.

    Args:
        workers: Number of concurrent workers (>= 1)
        queue_path: Queue file; succeeded identifiers are removed from it
        template: Request shape shared by every identifier
        get_token: Coroutine function returning the bearer token
        failure_log_path: Where timeouts and unexpected statuses are recorded
        client: HTTP client to use; an AssetClient is created if omitted

    Raises:
        ConfigurationError: Bad worker count or unreadable queue file
        TokenAcquisitionError: Token could not be obtained
    """
    workers = validate_worker_count(workers)
    identifiers = read_identifiers(queue_path)
    logger.info(f"Loaded {len(identifiers)} pending identifier(s) from {queue_path}")

    token = await get_token()
    items = build_work_items(identifiers, template, token, queue_path)

    if client is not None:
        async for result in _run_pool(workers, client, items, failure_log_path):
            yield result
        return

    async with AssetClient(
        max_connections=workers,
        timeout_seconds=REQUEST_TIMEOUT_SECONDS,
    ) as owned_client:
        async for result in _run_pool(workers, owned_client, items, failure_log_path):
            yield result


async def _run_pool(
    workers: int,
    client: HTTPClient,
    items: list[WorkItem],
    failure_log_path: Union[str, Path],
) -> AsyncIterator[Result]:
    pool = WorkerPool(
        workers=workers,
        client=client,
        queue_writer=QueueWriter(),
        failure_log=FailureLog(failure_log_path),
    )
    async for result in pool.results(items):
        yield result


async def run_bulk_subscribe(
    workers: int,
    queue_path: Union[str, Path],
    template: RequestTemplate,
    get_token: TokenProvider,
    failure_log_path: Union[str, Path],
    client: Optional[HTTPClient] = None,
) -> list[Result]:
    """Like dispatch(), but return all Results after the pool drains."""
    return [
        result
        async for result in dispatch(
            workers, queue_path, template, get_token, failure_log_path, client
        )
    ]
