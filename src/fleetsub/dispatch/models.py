"""Data types flowing through the dispatch engine."""
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union
from urllib.parse import quote

from ..api.exceptions import ErrorKind, WorkItemError


@dataclass(frozen=True)
class RequestTemplate:
    """Request shape shared by every work item of a run.

    Attributes:
        url_pattern: Target URL containing an ``{identifier}`` placeholder
        payload: JSON body sent for every identifier
        method: HTTP method
    """
    url_pattern: str
    payload: dict[str, Any] = field(default_factory=dict)
    method: str = "POST"

    def url_for(self, identifier: str) -> str:
        # Escaped as one path segment; "#" or "?" would otherwise cut the path short
        return self.url_pattern.format(identifier=quote(identifier, safe=""))


@dataclass(frozen=True)
class WorkItem:
    """One identifier's worth of dispatchable request state."""
    identifier: str
    template: RequestTemplate
    token: str
    queue_path: Path

    def __repr__(self) -> str:
        # The token never appears in logs
        return (
            f"WorkItem(identifier={self.identifier!r}, "
            f"url={self.template.url_for(self.identifier)!r}, "
            f"queue_path={str(self.queue_path)!r})"
        )


@dataclass(frozen=True)
class Success:
    """Decoded response body of a completed work item."""
    identifier: str
    value: dict[str, Any]

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Classified error of a failed work item."""
    identifier: str
    error: WorkItemError

    @property
    def is_success(self) -> bool:
        return False

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind


Result = Union[Success, Failure]


@dataclass
class RunSummary:
    """Counts over the results of one run."""
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    by_kind: Counter = field(default_factory=Counter)

    @classmethod
    def from_results(cls, results: list[Result]) -> "RunSummary":
        summary = cls(total=len(results))
        for result in results:
            if isinstance(result, Success):
                summary.succeeded += 1
            else:
                summary.failed += 1
                summary.by_kind[result.kind.value] += 1
        return summary
