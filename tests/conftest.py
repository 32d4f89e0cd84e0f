"""Shared fixtures: a scripted stand-in for AssetClient and run templates."""
import asyncio
import json
import sys

import pytest

sys.path.insert(0, str(__file__).rsplit("/tests", 1)[0])
from src.fleetsub.api.client import RawResponse
from src.fleetsub.api.exceptions import TimeoutError, TransportError
from src.fleetsub.dispatch.models import RequestTemplate

URL_PATTERN = "https://api.example.com/services/obdstack/v1/assets/{identifier}/subscribe"


class FakeAssetClient:
    """Answers requests from a per-identifier script.

    Script values:
        int          -> that status with a small JSON object body
        bytes        -> status 200 with that raw body
        "timeout"    -> raises TimeoutError
        "transport"  -> raises TransportError
    Identifiers not in the script get 200 + JSON object.
    """

    def __init__(self, script=None, delay: float = 0.0):
        self.script = script or {}
        self.delay = delay
        self.calls: list[dict] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def request(self, method, url, body, *, token, identifier):
        self.calls.append({
            "method": method,
            "url": url,
            "body": body,
            "token": token,
            "identifier": identifier,
        })
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            outcome = self.script.get(identifier, 200)
            if outcome == "timeout":
                raise TimeoutError("timed out", identifier, timeout_seconds=5.0)
            if outcome == "transport":
                raise TransportError("connection refused", identifier)
            if isinstance(outcome, bytes):
                return RawResponse(200, "OK", outcome)
            body = json.dumps({"imei": identifier, "status": "subscribed"}).encode()
            reason = "OK" if outcome == 200 else "Internal Server Error"
            return RawResponse(outcome, reason, body)
        finally:
            self.in_flight -= 1


@pytest.fixture
def template():
    return RequestTemplate(
        url_pattern=URL_PATTERN,
        payload={"offer": "OBD-BASIC", "account": "ACME", "reboot_after_next_trip": False},
    )


@pytest.fixture
def make_queue(tmp_path):
    """Write identifiers to a queue file and return its path."""
    def _make(identifiers, name="assets.txt"):
        path = tmp_path / name
        path.write_text("".join(f"{i}\n" for i in identifiers), encoding="utf-8")
        return path
    return _make


@pytest.fixture
def failed_log(tmp_path):
    return tmp_path / "failed.txt"
