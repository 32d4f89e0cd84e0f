"""Configuration loaded from environment variables.

Values normally come from an env file (``local.env`` by default) loaded with
python-dotenv; variables already present in the process environment win.

Subscribe request:
    SUB_BASE_URL: Base URL of the subscription service
    SUB_OFFER: Offer to subscribe every asset to
    SUB_ACCOUNT: Account the subscription is billed to
    SUB_REBOOT_AFTER_NEXT_TRIP: "true"/"false" (default: false)

Token exchange (read by TokenManager):
    AUTH_BASE_URL, AUTH_GRANT_TYPE, AUTH_USERNAME, AUTH_PASSWORD
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .api.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ENV_FILE = "local.env"
DEFAULT_FAILED_LOG = "./failed.txt"
SUBSCRIBE_PATH = "/services/obdstack/v1/assets/{identifier}/subscribe"


def load_env_file(path: str = DEFAULT_ENV_FILE) -> bool:
    """Load an env file into the process environment.

    Returns:
        True if the file existed and was loaded
    """
    if not Path(path).is_file():
        logger.warning(f"Env file {path} not found, using process environment only")
        return False
    return load_dotenv(path, override=False)


@dataclass(frozen=True)
class SubscribeSettings:
    """Settings for the subscribe request sent for every identifier."""
    base_url: str
    offer: str
    account: str
    reboot_after_next_trip: bool = False

    @property
    def url_pattern(self) -> str:
        return f"{self.base_url.rstrip('/')}{SUBSCRIBE_PATH}"

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "SubscribeSettings":
        """Build settings from the environment.

        Raises:
            ConfigurationError: If a required variable is missing or
                SUB_REBOOT_AFTER_NEXT_TRIP is not a boolean
        """
        env = os.environ if environ is None else environ

        base_url = env.get("SUB_BASE_URL", "")
        offer = env.get("SUB_OFFER", "")
        account = env.get("SUB_ACCOUNT", "")

        missing = []
        if not base_url:
            missing.append("SUB_BASE_URL")
        if not offer:
            missing.append("SUB_OFFER")
        if not account:
            missing.append("SUB_ACCOUNT")
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing_keys=missing,
            )

        reboot = env.get("SUB_REBOOT_AFTER_NEXT_TRIP", "false").strip().lower()
        if reboot not in ("true", "false"):
            raise ConfigurationError(
                f"SUB_REBOOT_AFTER_NEXT_TRIP must be true or false, got {reboot!r}",
            )

        return cls(
            base_url=base_url,
            offer=offer,
            account=account,
            reboot_after_next_trip=reboot == "true",
        )

    def payload(self) -> dict:
        """JSON body of the subscribe request."""
        return {
            "offer": self.offer,
            "account": self.account,
            "reboot_after_next_trip": self.reboot_after_next_trip,
        }
