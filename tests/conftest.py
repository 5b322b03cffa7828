from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import aiohttp
import pytest

from tripwatch.exceptions import TripwatchTransportError
from tripwatch.state import notifier as notifier_module
from tripwatch.state import storage as storage_module


@dataclass(frozen=True)
class FakeMessage:
    type: aiohttp.WSMsgType
    data: Any = None


class FakeConnection:
    """In-memory stand-in for an open WebSocket."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[FakeMessage | None] = asyncio.Queue()
        self.closed = False

    def send(self, frame: Any) -> None:
        data = frame if isinstance(frame, (str, bytes)) else json.dumps(frame)
        msg_type = aiohttp.WSMsgType.BINARY if isinstance(data, bytes) else aiohttp.WSMsgType.TEXT
        self._queue.put_nowait(FakeMessage(msg_type, data))

    def send_message(self, message: FakeMessage) -> None:
        self._queue.put_nowait(message)

    def drop(self) -> None:
        """Simulate the server closing the socket."""
        self._queue.put_nowait(None)

    def __aiter__(self) -> FakeConnection:
        return self

    async def __anext__(self) -> FakeMessage:
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        return item

    async def close(self) -> None:
        self.closed = True


class FakeConnector:
    """Records handshakes and hands out FakeConnections."""

    def __init__(self) -> None:
        self.urls: list[str] = []
        self.connections: list[FakeConnection] = []
        self.failures = 0

    @property
    def latest(self) -> FakeConnection:
        return self.connections[-1]

    async def __call__(self, url: str) -> FakeConnection:
        self.urls.append(url)
        if self.failures > 0:
            self.failures -= 1
            raise TripwatchTransportError("connection refused", endpoint=url)
        conn = FakeConnection()
        self.connections.append(conn)
        return conn


async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.002)


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def wait_until() -> Callable[..., Any]:
    return _wait_until


@pytest.fixture(autouse=True)
def _fresh_process_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Give every test its own process-wide counter storage and notifier."""
    monkeypatch.setattr(storage_module, "_DEFAULT_STORAGE", storage_module.MemoryStorage())
    monkeypatch.setattr(notifier_module, "_DEFAULT_NOTIFIER", notifier_module.CounterNotifier())
