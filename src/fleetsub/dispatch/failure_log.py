"""Failure Log: append-only breadcrumb of identifiers worth a second look.

Timeouts and unexpected status codes append the identifier, one per line.
The file is created on first write, never truncated, never deduplicated and
never read back by the subscriber itself.
"""
import asyncio
import logging
from pathlib import Path
from typing import Union

import anyio.to_thread

logger = logging.getLogger(__name__)


def append_line(path: Union[str, Path], content: str) -> None:
    """Append ``content`` plus a newline, creating the file if needed."""
    with open(path, "a", encoding="utf-8") as f:
        f.write(f"{content}\n")


class FailureLog:
    """Serialised appender for the failure log file.

    A write failure is logged and otherwise ignored: the log is an
    operational aid, not part of the queue's durability contract.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = asyncio.Lock()

    async def append(self, identifier: str) -> bool:
        """Record ``identifier``.

        Returns:
            True if the line was written
        """
        async with self._lock:
            try:
                await anyio.to_thread.run_sync(append_line, self.path, identifier)
            except OSError as e:
                logger.warning(f"Could not record {identifier} in {self.path}: {e}")
                return False
        return True
