"""
Pytest configuration and fixtures for rrr-emitter.

Provides cross-platform event loop configuration, a fake bulk transport and a
manual millisecond clock so flush timing is deterministic.
"""

import asyncio
import itertools
import sys

import pytest

from rrr_emitter import BulkResponse, RRREmitter

# Set policy *before* pytest-asyncio creates any loops
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())


ENDPOINT = "http://sink/api"
T0 = 1_686_823_200_000  # 2023-06-15T10:00:00Z in epoch ms

_names = itertools.count()


class FakeTransport:
    """Records every bulk post; answers with a fixed status or raises ``exc``."""

    def __init__(self, status_code: int = 200, exc: Exception | None = None, text: str = ""):
        self.status_code = status_code
        self.exc = exc
        self.text = text
        self.calls: list[dict] = []
        self.closed = False

    async def post_bulk(self, url, body, auth=None):
        self.calls.append({"url": url, "body": body, "auth": auth})
        await asyncio.sleep(0)
        if self.exc is not None:
            raise self.exc
        return BulkResponse(status_code=self.status_code, text=self.text)

    async def aclose(self):
        self.closed = True


class ManualClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: float = T0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> float:
        self.now += ms
        return self.now


def make_record(i: int = 0, ts: str = "2023-06-15T10:00:00Z", **extra) -> dict:
    rec = {"@timestamp": ts, "id": f"req-{i}", "method": "GET", "path": "/v2/mockapi"}
    rec.update(extra)
    return rec


@pytest.fixture
def endpoint():
    return ENDPOINT


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def emitter_name():
    """Unique emitter name so prometheus series do not leak across tests."""
    return f"test-{next(_names)}"


@pytest.fixture
def emitter(transport, clock, emitter_name):
    """Enabled emitter wired to the fake transport and manual clock."""
    em = RRREmitter(emitter_name, transport=transport, clock=clock)
    em.initialize({"endpointUrl": ENDPOINT})
    return em


@pytest.fixture
def record():
    """Factory for records on 2023-06-15 UTC."""
    return make_record


@pytest.fixture
def fake_transport():
    """The FakeTransport class, for tests that need several configurations."""
    return FakeTransport


@pytest.fixture
def t0():
    return T0
