"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest
import pytest_asyncio

from webkit_debug_client.sdk.client import DebuggerClient
from webkit_debug_client.sdk.transport import Correlator

_CLOSE = object()


class FakeSocket:
    """In-memory stand-in for a websockets client connection.

    Tests play the debug backend: feed() queues an inbound frame,
    sent holds every outbound frame in order. Setting send_error makes
    every send raise it.
    """

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.closed = False
        self.send_error: Exception | None = None
        self._inbox: asyncio.Queue[Any] = asyncio.Queue()
        self._sent_event = asyncio.Event()

    async def send(self, text: str) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(text)
        self._sent_event.set()

    async def close(self) -> None:
        self.closed = True
        self._inbox.put_nowait(_CLOSE)

    def feed(self, message: Any) -> None:
        """Queue an inbound frame (dicts are JSON-encoded)."""
        self._inbox.put_nowait(message if isinstance(message, str) else json.dumps(message))

    def drop(self) -> None:
        """Simulate the backend closing the connection."""
        self._inbox.put_nowait(_CLOSE)

    def sent_messages(self) -> list[dict[str, Any]]:
        return [json.loads(text) for text in self.sent]

    async def wait_sent(self, count: int, timeout: float = 1.0) -> list[dict[str, Any]]:
        """Wait until at least `count` frames were sent, then decode them all."""

        async def _wait() -> None:
            while len(self.sent) < count:
                self._sent_event.clear()
                await self._sent_event.wait()

        await asyncio.wait_for(_wait(), timeout)
        return self.sent_messages()

    def __aiter__(self) -> FakeSocket:
        return self

    async def __anext__(self) -> str:
        item = await self._inbox.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        return item


class FakeConnector:
    """Connector handing out a single FakeSocket.

    hold() blocks the open until release(); setting `error` makes the
    open fail.
    """

    def __init__(self) -> None:
        self.socket = FakeSocket()
        self.urls: list[str] = []
        self.error: Exception | None = None
        self._gate: asyncio.Event | None = None

    def hold(self) -> None:
        self._gate = asyncio.Event()

    def release(self) -> None:
        assert self._gate is not None
        self._gate.set()

    async def __call__(self, url: str) -> FakeSocket:
        self.urls.append(url)
        if self._gate is not None:
            await self._gate.wait()
        if self.error is not None:
            raise self.error
        return self.socket


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest_asyncio.fixture
async def correlator(connector: FakeConnector):
    instance = Correlator(connector=connector)
    yield instance
    await instance.close()


@pytest_asyncio.fixture
async def client(connector: FakeConnector):
    instance = DebuggerClient(connector=connector)
    yield instance
    await instance.close()
