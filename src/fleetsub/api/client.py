#!/usr/bin/env python3
"""Shared HTTP Client for the asset subscription endpoint.

One AssetClient (one aiohttp session, one connection pool) is shared by
every worker of a run. The client performs exactly one attempt per call and
turns aiohttp failures into typed work-item errors:

    - asyncio.TimeoutError      -> TimeoutError
    - any other aiohttp error   -> TransportError

HTTP status codes are NOT interpreted here; the caller decides what a
non-200 response means.

Usage:
    async with AssetClient(max_connections=10) as client:
        response = await client.request("POST", url, body, token=token, identifier=imei)
        if response.status == 200:
            ...
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp

from .exceptions import TimeoutError, TransportError

logger = logging.getLogger(__name__)

# Fixed per-request timeout
REQUEST_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class RawResponse:
    """Status line and fully-read body of one HTTP exchange."""
    status: int
    reason: Optional[str]
    body: bytes

    @property
    def ok(self) -> bool:
        return self.status == 200

    def text(self, limit: int = 500) -> str:
        return self.body[:limit].decode("utf-8", errors="replace")


class AssetClient:
    """Async HTTP client shared by all workers of a run.

    Must be used as an async context manager so the session is closed:

        async with AssetClient(max_connections=workers) as client:
            ...

    Attributes:
        max_connections: Connection pool size (normally the worker count)
        timeout_seconds: Total per-request timeout
    """

    def __init__(
        self,
        max_connections: int = 10,
        timeout_seconds: float = REQUEST_TIMEOUT_SECONDS,
    ):
        self.max_connections = max_connections
        self.timeout_seconds = timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "AssetClient":
        """Enter async context: create the HTTP session."""
        self._session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(
                limit=self.max_connections,
                limit_per_host=self.max_connections,
            ),
            timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context: close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def request(
        self,
        method: str,
        url: str,
        body: bytes,
        *,
        token: str,
        identifier: str,
    ) -> RawResponse:
        """Send one JSON request with bearer auth and read the whole response.

        Args:
            method: HTTP method
            url: Fully substituted target URL
            body: Already-encoded JSON body
            token: Bearer token
            identifier: Identifier the request is for (error context only)

        Returns:
            RawResponse with status, reason and body bytes

        Raises:
            RuntimeError: If called outside of async context manager
            TimeoutError: If the request exceeds the timeout
            TransportError: On any other network failure
        """
        if not self._session:
            raise RuntimeError(
                "AssetClient must be used as async context manager: "
                "async with AssetClient(...) as client:"
            )

        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        try:
            async with self._session.request(
                method=method,
                url=url,
                data=body,
                headers=headers,
            ) as response:
                payload = await response.read()
                return RawResponse(
                    status=response.status,
                    reason=response.reason,
                    body=payload,
                )

        # ServerTimeoutError is both a ClientError and an asyncio.TimeoutError
        except asyncio.TimeoutError as e:
            raise TimeoutError(
                f"{method} {url} timed out",
                identifier,
                timeout_seconds=self.timeout_seconds,
                cause=e,
            )

        except aiohttp.ClientError as e:
            raise TransportError(
                f"performing request: {e}",
                identifier,
                cause=e,
            )
