#!/usr/bin/env python3
"""Exception Hierarchy for the bulk asset subscriber.

Errors fall into two families with very different blast radius:

    - Run-level errors abort the whole run before any work item is dispatched
      (bad configuration, token acquisition failure).
    - Work-item errors are reported per identifier and never stop the other
      workers. Each carries an ``ErrorKind`` classification.

Exception Hierarchy:
    FleetSubError (base)
    ├── ConfigurationError (fatal - fix config)
    ├── AuthenticationError
    │   └── TokenAcquisitionError (fatal - no token, no run)
    └── WorkItemError (per item)
        ├── EncodingError
        ├── TransportError
        ├── TimeoutError
        ├── UnexpectedStatusError
        ├── QueueMutationError
        ├── DecodingError
        └── UnexpectedError
"""
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional

# ============================================
# Base Exception
# ============================================

class FleetSubError(Exception):
    """Base exception for all subscriber errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "TOKEN_ACQUISITION_ERROR")
        details: Additional context as a dictionary
        timestamp: When the error occurred
        cause: The original exception that caused this error
        recoverable: Whether a later run might succeed without changes
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}
        self.timestamp = datetime.now(UTC)
        self.cause = cause
        self.recoverable = recoverable

        if cause:
            self.__cause__ = cause

    def __str__(self) -> str:
        parts = [f"[{self.code}]", self.message]
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code!r}, "
            f"details={self.details!r}, "
            f"recoverable={self.recoverable})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
            "recoverable": self.recoverable,
            "cause": str(self.cause) if self.cause else None,
        }


# ============================================
# Run-Level Errors
# ============================================

class ConfigurationError(FleetSubError):
    """Raised when configuration is missing or invalid.

    Covers missing environment variables, a non-positive worker count and
    an unreadable queue file. Always raised before dispatch starts.
    """

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details=details,
            recoverable=False,
            **kwargs,
        )
        self.missing_keys = missing_keys or []


class AuthenticationError(FleetSubError):
    """Base class for authentication-related errors."""


class TokenAcquisitionError(AuthenticationError):
    """Raised when the bearer token cannot be obtained."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if status_code:
            details["status_code"] = status_code
        super().__init__(
            message,
            code="TOKEN_ACQUISITION_ERROR",
            details=details,
            **kwargs,
        )
        self.status_code = status_code


# ============================================
# Work-Item Errors
# ============================================

class ErrorKind(str, Enum):
    """Classification of a failed work item."""
    ENCODING = "EncodingError"
    TRANSPORT = "TransportError"
    TIMEOUT = "TimeoutError"
    UNEXPECTED_STATUS = "UnexpectedStatus"
    QUEUE_MUTATION = "QueueMutationError"
    DECODING = "DecodingError"
    UNEXPECTED = "UnexpectedError"


class WorkItemError(FleetSubError):
    """Base class for errors scoped to a single identifier.

    Attributes:
        identifier: The identifier whose request failed
        kind: Classification used in reports and summaries
    """

    kind: ErrorKind

    def __init__(self, message: str, identifier: str, **kwargs):
        details = kwargs.pop("details", {})
        details["identifier"] = identifier
        kwargs.setdefault("code", self.kind.name)
        super().__init__(message, details=details, **kwargs)
        self.identifier = identifier


class EncodingError(WorkItemError):
    """Raised when the request payload cannot be serialized to JSON."""

    kind = ErrorKind.ENCODING


class TransportError(WorkItemError):
    """Raised when the request fails for a network reason other than timeout."""

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, identifier: str, **kwargs):
        kwargs.setdefault("recoverable", True)
        super().__init__(message, identifier, **kwargs)


class TimeoutError(WorkItemError):
    """Raised when the request exceeds the fixed per-request timeout."""

    kind = ErrorKind.TIMEOUT

    def __init__(
        self,
        message: str,
        identifier: str,
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        kwargs.setdefault("recoverable", True)
        super().__init__(message, identifier, details=details, **kwargs)
        self.timeout_seconds = timeout_seconds


class UnexpectedStatusError(WorkItemError):
    """Raised when the endpoint answers with anything but HTTP 200.

    Attributes:
        status_code: HTTP status code returned
        reason: HTTP reason phrase, if any
    """

    kind = ErrorKind.UNEXPECTED_STATUS

    def __init__(
        self,
        identifier: str,
        status_code: int,
        reason: Optional[str] = None,
        response_body: Optional[str] = None,
        **kwargs,
    ):
        status = f"{status_code} {reason}" if reason else str(status_code)
        details = kwargs.pop("details", {})
        details["status_code"] = status_code
        if response_body:
            details["response_body"] = response_body[:500]
        kwargs.setdefault("recoverable", status_code in (429, 500, 502, 503, 504))
        super().__init__(
            f"unexpected response {status}",
            identifier,
            details=details,
            **kwargs,
        )
        self.status_code = status_code
        self.reason = reason


class QueueMutationError(WorkItemError):
    """Raised when the identifier cannot be removed from the queue file."""

    kind = ErrorKind.QUEUE_MUTATION

    def __init__(
        self,
        message: str,
        identifier: str,
        path: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if path:
            details["path"] = path
        super().__init__(message, identifier, details=details, **kwargs)
        self.path = path


class DecodingError(WorkItemError):
    """Raised when a successful response body is not a JSON object.

    The queue line has already been removed when this is raised.
    """

    kind = ErrorKind.DECODING


class UnexpectedError(WorkItemError):
    """Raised when processing an item fails in a way none of the above covers.

    The original exception is kept as the cause; the worker moves on.
    """

    kind = ErrorKind.UNEXPECTED


__all__ = [
    "FleetSubError",
    "ConfigurationError",
    "AuthenticationError",
    "TokenAcquisitionError",
    "ErrorKind",
    "WorkItemError",
    "EncodingError",
    "TransportError",
    "TimeoutError",
    "UnexpectedStatusError",
    "QueueMutationError",
    "DecodingError",
    "UnexpectedError",
]
