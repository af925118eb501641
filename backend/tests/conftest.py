"""Pytest configuration and fixtures."""

from __future__ import annotations

import asyncio

import pytest
import pytest_asyncio

from nopebot.tracking.interface import FetchClient
from nopebot.tracking.manager import SubscriptionManager
from nopebot.tracking.models import FetchResult, MetricReading
from nopebot.tracking.symbols import Symbol, SymbolUniverse


class StubFetchClient(FetchClient):
    """Scripted FetchClient.

    Call N gets the Nth queued result (bound when the call starts), then
    `default`. A queued exception is raised instead of returned. Set `gate`
    to hold fetches in flight until the test releases it.
    """

    def __init__(self, *results: FetchResult | Exception) -> None:
        self.results: list[FetchResult | Exception] = list(results)
        self.default: FetchResult = MetricReading(value=0.0, price=1.0)
        self.calls: list[Symbol] = []
        self.started = asyncio.Event()
        self.gate: asyncio.Event | None = None

    def push(self, *results: FetchResult | Exception) -> None:
        self.results.extend(results)

    async def fetch_metric(self, symbol: Symbol) -> FetchResult:
        self.calls.append(symbol)
        result = self.results.pop(0) if self.results else self.default
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if isinstance(result, Exception):
            raise result
        return result


class SendRecorder:
    """A send(text) capability that records what it was asked to deliver."""

    def __init__(self, fail: bool = False) -> None:
        self.messages: list[str] = []
        self.fail = fail

    async def __call__(self, text: str) -> None:
        self.messages.append(text)
        if self.fail:
            raise RuntimeError("chat unavailable")


@pytest.fixture
def universe() -> SymbolUniverse:
    return SymbolUniverse()


@pytest.fixture
def gme(universe) -> Symbol:
    return universe.validate("GME")


@pytest.fixture
def spy(universe) -> Symbol:
    return universe.validate("SPY")


@pytest.fixture
def stub() -> StubFetchClient:
    return StubFetchClient()


@pytest.fixture
def send() -> SendRecorder:
    return SendRecorder()


@pytest.fixture
def failing_send() -> SendRecorder:
    return SendRecorder(fail=True)


@pytest_asyncio.fixture
async def manager(stub):
    """Manager with a long tick interval: only the immediate cycle runs."""
    manager = SubscriptionManager(stub, tick_interval=60.0)
    yield manager
    await manager.stop()
