"""Subscription service API modules.

Classes:
    AssetClient: Shared HTTP client (one session, single attempt per call)
    TokenManager: Bearer token acquisition

Exceptions:
    FleetSubError: Base exception for all subscriber errors
    ConfigurationError: Missing or invalid configuration
    TokenAcquisitionError: Bearer token could not be obtained
    WorkItemError: Per-identifier failure, classified by ErrorKind
"""
from .auth import CachedToken, TokenManager
from .client import REQUEST_TIMEOUT_SECONDS, AssetClient, RawResponse
from .exceptions import (
    AuthenticationError,
    ConfigurationError,
    DecodingError,
    EncodingError,
    ErrorKind,
    FleetSubError,
    QueueMutationError,
    TimeoutError,
    TokenAcquisitionError,
    TransportError,
    UnexpectedError,
    UnexpectedStatusError,
    WorkItemError,
)

__all__ = [
    # Auth
    "TokenManager",
    "CachedToken",
    # Client
    "AssetClient",
    "RawResponse",
    "REQUEST_TIMEOUT_SECONDS",
    # Exceptions - Base
    "FleetSubError",
    "ConfigurationError",
    "AuthenticationError",
    "TokenAcquisitionError",
    # Exceptions - Work items
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
