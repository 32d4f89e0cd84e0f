"""Persisted Queue: the file of identifiers not yet confirmed done.

The queue file holds one pending identifier per line. It is read once at
startup and afterwards only shrinks: every successful subscription drops
its identifier's line. Between runs the file therefore contains exactly the
identifiers that still need work, so an interrupted run can be resumed by
pointing the next run at the same file.

A removal rewrites the whole file (read, write ``<path>~tmp``, rename over
the original). Rewrites started concurrently from different workers would
lose updates, so QueueWriter serialises every removal on the same file
behind one lock.
"""
import asyncio
import logging
import os
from pathlib import Path
from typing import Union

import anyio.to_thread

from ..api.exceptions import ConfigurationError, QueueMutationError

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def read_identifiers(path: PathLike) -> list[str]:
    """Load pending identifiers in file order.

    Lines are stripped; blank lines (including a trailing newline) are skipped.

    Raises:
        ConfigurationError: If the file cannot be read
    """
    try:
        with open(path, encoding="utf-8") as f:
            lines = [line.strip() for line in f]
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(
            f"Cannot read queue file {path}: {e}",
            details={"path": str(path)},
            cause=e,
        )

    return [line for line in lines if line]


def temp_path_for(path: PathLike) -> Path:
    """Temporary file used while rewriting ``path``."""
    path = Path(path)
    return path.with_name(f"{path.name}~tmp")


def remove_line(path: PathLike, identifier: str) -> int:
    """Durably remove every line equal to ``identifier`` from the queue file.

    Non-matching lines are copied unchanged into a temporary file which then
    atomically replaces the original. Removing an identifier that is not in
    the file leaves the remaining lines as they were.

    Not safe to call concurrently on the same file; use QueueWriter.

    Returns:
        Number of lines removed

    Raises:
        OSError: If the file cannot be read, written or replaced
    """
    target = identifier.strip()
    tmp = temp_path_for(path)
    removed = 0

    try:
        with open(path, encoding="utf-8") as src, open(tmp, "w", encoding="utf-8") as out:
            for line in src:
                content = line.rstrip("\r\n")
                if content.strip() == target:
                    removed += 1
                    continue
                out.write(f"{content}\n")
            out.flush()
            os.fsync(out.fileno())
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise

    return removed


class QueueWriter:
    """Single owner of queue-file mutations for one event loop.

    Holds one asyncio.Lock per queue file; the lock spans the whole
    read-temp-write-rename sequence, which itself runs in a worker thread.

    Example:
        writer = QueueWriter()
        await writer.remove(Path("assets.txt"), "356938035643809")
    """

    def __init__(self):
        self._locks: dict[Path, asyncio.Lock] = {}

    def _lock_for(self, path: Path) -> asyncio.Lock:
        key = path.resolve()
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def remove(self, path: PathLike, identifier: str) -> int:
        """Remove ``identifier`` from the queue file at ``path``.

        Returns:
            Number of lines removed

        Raises:
            QueueMutationError: If the rewrite fails
        """
        path = Path(path)
        async with self._lock_for(path):
            try:
                removed = await anyio.to_thread.run_sync(remove_line, path, identifier)
            except OSError as e:
                raise QueueMutationError(
                    f"removing line from text file: {e}",
                    identifier,
                    path=str(path),
                    cause=e,
                )

        if removed == 0:
            logger.debug(f"{identifier} was not in {path}")
        return removed
