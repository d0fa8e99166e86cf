import asyncio
import os
import sys
from pathlib import Path
from typing import Any, List

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from courier import facade  # noqa: E402
from courier.config import get_settings  # noqa: E402
from courier.service import ApiService  # noqa: E402
from courier.transport import TransportCall, TransportResult  # noqa: E402


def pytest_configure(config):
    # Register the asyncio marker so pytest doesn't warn when it's used.
    config.addinivalue_line(
        "markers", "asyncio: mark test to run in an asyncio event loop"
    )
    # Add custom markers for test organization
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "auth: mark test as testing authentication"
    )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from COURIER_* variables and shared state."""
    for name in list(os.environ):
        if name.upper().startswith("COURIER_"):
            monkeypatch.delenv(name)
    get_settings.cache_clear()
    facade.reset_global_client()
    ApiService._clients.clear()
    yield
    get_settings.cache_clear()
    facade.reset_global_client()
    ApiService._clients.clear()


class ScriptedTransport:
    """Transport replaying a script of results and exceptions.

    Each script entry is either a :class:`TransportResult` to return or an
    exception instance to raise. The last entry repeats once the script
    runs out.
    """

    def __init__(self, *script: Any):
        self.script: List[Any] = list(script) or [TransportResult(status_code=200)]
        self.calls: List[TransportCall] = []

    async def send(self, call: TransportCall) -> TransportResult:
        self.calls.append(call)
        index = min(len(self.calls), len(self.script)) - 1
        outcome = self.script[index]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@pytest.fixture
def scripted_transport():
    """Factory building a :class:`ScriptedTransport`."""
    return ScriptedTransport


@pytest.fixture
def recorded_sleeps(monkeypatch):
    """Replace ``asyncio.sleep`` and record the requested delays."""
    delays: List[float] = []

    async def fake_sleep(delay, *args, **kwargs):
        delays.append(delay)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    return delays
