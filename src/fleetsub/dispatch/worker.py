"""Per-item request execution.

For one WorkItem, in order:

    1. Encode the payload to JSON             (EncodingError)
    2. POST it with bearer auth               (TimeoutError / TransportError)
    3. Require HTTP 200                       (UnexpectedStatusError)
    4. Drop the identifier from the queue     (QueueMutationError)
    5. Decode the body as a JSON object       (DecodingError)

Timeouts and unexpected statuses are also appended to the failure log. The
queue is only touched after a confirmed 200, and before decoding: the status
code, not the body, is the completion signal.
Anything else that goes wrong becomes an UnexpectedError Failure.
"""
import json
import logging
from typing import Any, Protocol

from ..api.client import RawResponse
from ..api.exceptions import (
    DecodingError,
    EncodingError,
    TimeoutError,
    UnexpectedError,
    UnexpectedStatusError,
    WorkItemError,
)
from .failure_log import FailureLog
from .models import Failure, Result, Success, WorkItem
from .queue_file import QueueWriter

logger = logging.getLogger(__name__)


class HTTPClient(Protocol):
    async def request(
        self,
        method: str,
        url: str,
        body: bytes,
        *,
        token: str,
        identifier: str,
    ) -> RawResponse: ...


async def execute_work_item(
    client: HTTPClient,
    item: WorkItem,
    queue_writer: QueueWriter,
    failure_log: FailureLog,
) -> Result:
    """Run one work item and classify its outcome.

    Never raises for a per-item problem: every failure becomes a Failure,
    including unforeseen exceptions, so the worker can take the next job.
    """
    try:
        value = await _subscribe(client, item, queue_writer, failure_log)
    except WorkItemError as e:
        logger.debug(f"{item.identifier} failed: {e}")
        return Failure(identifier=item.identifier, error=e)
    except Exception as e:
        logger.exception(f"{item.identifier} failed unexpectedly: {e}")
        return Failure(
            identifier=item.identifier,
            error=UnexpectedError(
                f"{type(e).__name__}: {e}",
                item.identifier,
                cause=e,
            ),
        )

    logger.debug(f"{item.identifier} subscribed")
    return Success(identifier=item.identifier, value=value)


async def _subscribe(
    client: HTTPClient,
    item: WorkItem,
    queue_writer: QueueWriter,
    failure_log: FailureLog,
) -> dict[str, Any]:
    try:
        body = json.dumps(item.template.payload).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(
            f"encoding payload to json: {e}",
            item.identifier,
            cause=e,
        )

    try:
        response = await client.request(
            item.template.method,
            item.template.url_for(item.identifier),
            body,
            token=item.token,
            identifier=item.identifier,
        )
    except TimeoutError:
        await failure_log.append(item.identifier)
        raise

    if not response.ok:
        await failure_log.append(item.identifier)
        raise UnexpectedStatusError(
            item.identifier,
            status_code=response.status,
            reason=response.reason,
            response_body=response.text(),
        )

    await queue_writer.remove(item.queue_path, item.identifier)

    try:
        value = json.loads(response.body)
    except ValueError as e:
        raise DecodingError(
            f"decoding json response: {e}",
            item.identifier,
            cause=e,
        )

    if not isinstance(value, dict):
        raise DecodingError(
            f"decoding json response: expected an object, got {type(value).__name__}",
            item.identifier,
        )

    return value
