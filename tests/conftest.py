import sys
from pathlib import Path
from typing import Any, List, Optional
from unittest.mock import MagicMock

import aiohttp
import pytest

# Ensure the repository root is on sys.path for direct pytest runs
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


class FakeResponse:
    """Stands in for aiohttp.ClientResponse inside ``async with session.get(...)``."""

    def __init__(self, payload: Any = None, status: int = 200, reason: str = "OK",
                 json_error: Optional[Exception] = None):
        self.payload = payload
        self.status = status
        self.reason = reason
        self.json_error = json_error

    @property
    def ok(self) -> bool:
        return self.status < 400

    async def json(self, content_type=None):
        if self.json_error is not None:
            raise self.json_error
        return self.payload

    def raise_for_status(self) -> None:
        if not self.ok:
            raise aiohttp.ClientResponseError(
                MagicMock(), (), status=self.status, message=self.reason
            )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, *responses):
        self.responses: List[Any] = list(responses)
        self.calls: List[dict] = []

    def get(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, BaseException):
            raise response
        return response


class FakeClock:
    """Manual clock; ``sleep`` records the delay and advances time by it."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def nominatim_place(name="Manchester", lat="53.4794892", lon="-2.2451148",
                    display_name=None, **address):
    place = {
        "name": name,
        "lat": lat,
        "lon": lon,
        "display_name": display_name or f"{name}, Greater Manchester, England, United Kingdom",
    }
    if address:
        place["address"] = address
    return place


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def place():
    return nominatim_place
