#!/usr/bin/env python3
"""Bearer Token Acquisition for the asset subscription service.

A run needs exactly one bearer token, obtained before any work item is
dispatched. The exchange is a resource-owner password grant:

    POST {AUTH_BASE_URL}/oauth/token
    {"grant_type": ..., "username": ..., "password": ...}

Any failure here is fatal to the run (TokenAcquisitionError).

Security Notes:
    - Tokens are cached in memory only (never persisted to disk)
    - Credentials should be provided via environment variables
    - Logs only show a SHA-256 prefix of the token, never the token itself

Example:
    >>> manager = TokenManager()
    >>> token = await manager.get_token()
"""
import asyncio
import hashlib
import logging
import os
import time
from dataclasses import dataclass
from typing import Optional

import aiohttp

from .exceptions import ConfigurationError, TokenAcquisitionError

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth/token"
TOKEN_TIMEOUT_SECONDS = 30


@dataclass
class CachedToken:
    """Container for an acquired access token.

    Attributes:
        access_token: The bearer token string.
        acquired_at: Unix timestamp of acquisition.
        token_type: Token type, typically "Bearer".
        expires_in: TTL reported by the server, in seconds (informational).
    """
    access_token: str
    acquired_at: float
    token_type: Optional[str] = "Bearer"
    expires_in: Optional[int] = None

    @property
    def token_id(self) -> str:
        """Safe identifier for logging (SHA-256 hash, first 8 chars)."""
        return hashlib.sha256(self.access_token.encode()).hexdigest()[:8]


class TokenManager:
    """Acquires the bearer token used by every work item in a run.

    Attributes:
        base_url: Auth server base URL (from env: AUTH_BASE_URL).
        grant_type: OAuth2 grant type (from env: AUTH_GRANT_TYPE).
        username: Account user name (from env: AUTH_USERNAME).
        password: Account password (from env: AUTH_PASSWORD).

    The token is fetched once, before dispatch starts, and reused after that.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        grant_type: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.base_url = (base_url or os.getenv("AUTH_BASE_URL", "")).rstrip("/")
        self.grant_type = grant_type or os.getenv("AUTH_GRANT_TYPE")
        self.username = username or os.getenv("AUTH_USERNAME")
        self.password = password or os.getenv("AUTH_PASSWORD")

        missing = []
        if not self.base_url:
            missing.append("AUTH_BASE_URL")
        if not self.grant_type:
            missing.append("AUTH_GRANT_TYPE")
        if not self.username:
            missing.append("AUTH_USERNAME")
        if not self.password:
            missing.append("AUTH_PASSWORD")
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing_keys=missing,
            )

        self._cached_token: Optional[CachedToken] = None

    @property
    def token_url(self) -> str:
        return f"{self.base_url}{TOKEN_PATH}"

    async def get_token(self) -> str:
        """Return the run's access token, fetching it on first use.

        Raises:
            TokenAcquisitionError: If the token cannot be obtained
        """
        if self._cached_token is None:
            self._cached_token = await self._fetch_token()
        return self._cached_token.access_token

    async def _fetch_token(self) -> CachedToken:
        """Perform the token exchange (single attempt)."""
        payload = {
            "grant_type": self.grant_type,
            "username": self.username,
            "password": self.password,
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.token_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                    timeout=aiohttp.ClientTimeout(total=TOKEN_TIMEOUT_SECONDS),
                ) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise TokenAcquisitionError(
                            f"Token server returned HTTP {response.status}",
                            status_code=response.status,
                            details={"response": error_text[:200]},
                        )

                    data = await response.json(content_type=None)

        except asyncio.TimeoutError as e:
            raise TokenAcquisitionError(
                "Token request timed out",
                details={"timeout_seconds": TOKEN_TIMEOUT_SECONDS},
                cause=e,
            )

        except aiohttp.ClientError as e:
            raise TokenAcquisitionError(
                f"Network error fetching token: {e}",
                cause=e,
            )

        except ValueError as e:
            raise TokenAcquisitionError(
                "Token response is not valid JSON",
                status_code=200,
                cause=e,
            )

        if not isinstance(data, dict) or not data.get("access_token"):
            raise TokenAcquisitionError(
                "Token response missing access_token",
                status_code=200,
                details={
                    "response_keys": list(data.keys()) if isinstance(data, dict) else []
                },
            )

        token = CachedToken(
            access_token=data["access_token"],
            acquired_at=time.time(),
            token_type=data.get("token_type", "Bearer"),
            expires_in=data.get("expires_in"),
        )
        logger.info(f"Token acquired (id={token.token_id}), expires in {token.expires_in}s")
        return token
