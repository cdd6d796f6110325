"""Request/response correlation over a single WebSocket.

The Correlator owns the socket and knows nothing about debugger
vocabulary. It:

- matches inbound messages carrying an `id` to the pending request
  registered under that id
- emits id-less messages as named events on an EventBus
- queues outbound messages until the socket is open, then writes them
  in submission order from a single writer task

Connection state machine:

    IDLE --attach()--> CONNECTING --open--> OPEN --close/error--> CLOSED
                            |                                        ^
                            +------------- open failed --------------+

When the connection reaches CLOSED every request still in flight is
rejected with ConnectionClosedError (or ConnectionFailedError when the
socket never opened).
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import websockets

from ..bus import EventBus, EventHandler, Subscription, WildcardHandler
from ..config import ClientConfig
from ..errors import (
    AlreadyAttachedError,
    ConnectionClosedError,
    ConnectionFailedError,
    RequestTimeoutError,
)
from ..protocol.envelope import MessageKind, classify, decode, encode

logger = logging.getLogger(__name__)

# Opens a socket for the given URL. The returned object must support
# `await send(text)`, `await close()` and `async for frame in socket`.
Connector = Callable[[str], Awaitable[Any]]


class ConnectionState(str, Enum):
    """Connection state machine."""

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


@dataclass
class PendingRequest:
    """A sent request awaiting its response."""

    request_id: int
    method: str | None
    future: asyncio.Future[dict[str, Any]]
    deadline: asyncio.TimerHandle | None = None

    def cancel_deadline(self) -> None:
        if self.deadline is not None:
            self.deadline.cancel()
            self.deadline = None


class Correlator:
    """Bridges message framing to request/response correlation and events.

    Usage:
        correlator = Correlator()
        correlator.on_event("Debugger.paused", on_paused)
        correlator.attach("ws://localhost:9222/devtools/page/1")
        response = await correlator.send_message({"id": 1, "method": "Debugger.enable"})
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        connector: Connector | None = None,
        bus: EventBus | None = None,
    ):
        self.config = config or ClientConfig()
        self._connector = connector or self._open_websocket
        self._bus = bus or EventBus()
        self._state = ConnectionState.IDLE
        self._endpoint: str | None = None
        self._ws: Any = None  # websockets.ClientConnection
        self._opened: asyncio.Future[None] | None = None
        self._task: asyncio.Task[None] | None = None
        self._outbox: asyncio.Queue[tuple[int, str]] = asyncio.Queue()
        self._pending: dict[int, PendingRequest] = {}

    # -------------------------------------------------------------------------
    # State accessors
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == ConnectionState.OPEN

    @property
    def endpoint(self) -> str | None:
        """URL passed to attach(), if any."""
        return self._endpoint

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def pending_ids(self) -> list[int]:
        return list(self._pending)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def attach(self, endpoint: str) -> asyncio.Future[None]:
        """Start connecting to `endpoint` and return immediately.

        The returned future resolves once the socket is open and fails
        with ConnectionFailedError if it cannot be opened. Messages may be
        sent right away; they are held until the socket opens.

        Raises:
            AlreadyAttachedError: If attach() was already called
        """
        if self._state != ConnectionState.IDLE:
            raise AlreadyAttachedError(
                f"Correlator is {self._state.value} (endpoint: {self._endpoint})"
            )

        loop = asyncio.get_running_loop()
        self._endpoint = endpoint
        self._state = ConnectionState.CONNECTING
        self._opened = loop.create_future()
        self._opened.add_done_callback(_consume_exception)
        self._task = loop.create_task(self._run(endpoint))
        logger.info(f"Attaching to {endpoint}")
        return self._opened

    async def wait_open(self) -> None:
        """Wait until the socket is open.

        Raises:
            RuntimeError: If attach() has not been called
            ConnectionError: If the socket failed to open or was closed
        """
        if self._opened is None:
            raise RuntimeError("attach() has not been called")
        await asyncio.shield(self._opened)

    async def wait_closed(self) -> None:
        """Wait until the connection task has finished."""
        if self._task is not None:
            await asyncio.wait([self._task])

    async def close(self) -> None:
        """Close the socket, reject everything still in flight and cancel
        coroutine event handlers that are still running."""
        if self._state == ConnectionState.CLOSED:
            await self._bus.cancel_pending()
            return

        if self._ws is not None:
            with contextlib.suppress(websockets.ConnectionClosed):
                await self._ws.close()

        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

        self._shutdown(ConnectionClosedError("Connection closed by client"))
        await self._bus.cancel_pending()
        logger.info(f"Detached from {self._endpoint}")

    async def __aenter__(self) -> Correlator:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    def send_message(
        self,
        envelope: dict[str, Any],
        timeout: float | None = None,
    ) -> asyncio.Future[dict[str, Any]]:
        """Register a pending request and queue the envelope for sending.

        Safe to call before the socket is open.

        Args:
            envelope: Request envelope; must carry a positive integer `id`
                not already pending
            timeout: Seconds to wait for the response. Defaults to
                config.request_timeout; None waits indefinitely.

        Returns:
            Future resolving with the full response envelope

        Raises:
            ValueError: If the id is missing, invalid or already pending
            TypeError: If the envelope is not JSON serializable
        """
        request_id = envelope.get("id")
        if isinstance(request_id, bool) or not isinstance(request_id, int) or request_id <= 0:
            raise ValueError(f"Envelope must carry a positive integer id, got {request_id!r}")
        if request_id in self._pending:
            raise ValueError(f"Request id {request_id} is already pending")

        text = encode(envelope)
        loop = asyncio.get_running_loop()
        future: asyncio.Future[dict[str, Any]] = loop.create_future()

        if self._state == ConnectionState.CLOSED:
            future.set_exception(ConnectionClosedError("Connection is closed"))
            return future

        pending = PendingRequest(request_id, envelope.get("method"), future)
        if timeout is None:
            timeout = self.config.request_timeout
        if timeout is not None:
            pending.deadline = loop.call_later(timeout, self._expire, request_id, timeout)

        self._pending[request_id] = pending
        future.add_done_callback(lambda f: self._forget(request_id, f))
        self._outbox.put_nowait((request_id, text))
        return future

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on_event(self, name: str, handler: EventHandler) -> Subscription:
        """Run handler(params) for every inbound event named `name`."""
        return self._bus.subscribe(name, handler)

    subscribe = on_event

    def on_any(self, handler: WildcardHandler) -> Subscription:
        """Run handler(name, params) for every inbound event."""
        return self._bus.subscribe_all(handler)

    def unsubscribe(self, subscription: Subscription) -> None:
        self._bus.unsubscribe(subscription)

    # -------------------------------------------------------------------------
    # Inbound routing
    # -------------------------------------------------------------------------

    def handle_message(self, message: Any) -> MessageKind:
        """Route one decoded inbound message.

        - truthy `id`: resolves the matching pending request; unmatched ids
          are logged and dropped
        - otherwise `method`: emitted as an event with its `params`
        - anything else is ignored
        """
        kind = classify(message)
        if kind == MessageKind.RESPONSE:
            self._resolve(message)
        elif kind == MessageKind.EVENT:
            name = message["method"]
            if not self._bus.has_subscribers(name):
                logger.debug(f"No subscribers for event {name}")
            self._bus.emit(name, message.get("params"))
        return kind

    def _resolve(self, message: dict[str, Any]) -> None:
        request_id = message["id"]
        pending = None
        if isinstance(request_id, int) and not isinstance(request_id, bool):
            pending = self._pending.pop(request_id, None)
        if pending is None:
            logger.warning(
                f"Got a response with id {request_id!r} for which there is no pending request"
            )
            return

        pending.cancel_deadline()
        if not pending.future.done():
            pending.future.set_result(message)

    def _expire(self, request_id: int, timeout: float) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is None or pending.future.done():
            return
        logger.warning(f"Request {request_id} ({pending.method}) timed out after {timeout}s")
        pending.future.set_exception(RequestTimeoutError(request_id, pending.method, timeout))

    def _forget(self, request_id: int, future: asyncio.Future[dict[str, Any]]) -> None:
        # Drops the entry when the caller cancels the future
        pending = self._pending.get(request_id)
        if pending is not None and pending.future is future:
            del self._pending[request_id]
            pending.cancel_deadline()

    # -------------------------------------------------------------------------
    # Socket tasks
    # -------------------------------------------------------------------------

    async def _open_websocket(self, endpoint: str) -> Any:
        return await websockets.connect(
            endpoint,
            max_size=self.config.max_message_size,
            ping_interval=self.config.ping_interval,
        )

    async def _run(self, endpoint: str) -> None:
        """Open the socket, then read until it closes."""
        try:
            ws = await self._connector(endpoint)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Failed to open {endpoint}: {e}")
            self._shutdown(ConnectionFailedError(f"Failed to open {endpoint}: {e}"))
            return

        self._ws = ws
        self._state = ConnectionState.OPEN
        if self._opened is not None and not self._opened.done():
            self._opened.set_result(None)
        logger.info(f"Attached to {endpoint}")

        writer = asyncio.create_task(self._write_loop(ws))
        try:
            await self._read_loop(ws)
        finally:
            self._shutdown(ConnectionClosedError(f"Connection to {endpoint} closed"))
            writer.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await writer

    async def _read_loop(self, ws: Any) -> None:
        try:
            async for frame in ws:
                logger.debug(f"From target: {frame}")
                try:
                    message = decode(frame)
                except (json.JSONDecodeError, UnicodeDecodeError) as e:
                    logger.warning(f"Dropping malformed frame: {e}")
                    continue
                self.handle_message(message)
        except websockets.ConnectionClosed as e:
            logger.warning(f"Connection to {self._endpoint} lost: {e}")

    async def _write_loop(self, ws: Any) -> None:
        while True:
            request_id, text = await self._outbox.get()
            if request_id not in self._pending:
                # Timed out or cancelled while queued
                logger.debug(f"Skipping request {request_id}, no longer pending")
                continue

            logger.debug(f"To target: {text}")
            try:
                await ws.send(text)
            except websockets.ConnectionClosed as e:
                logger.warning(f"Send of request {request_id} failed: {e}")
                return
            except Exception as e:
                # Closing the socket ends the read loop, which rejects everything pending
                logger.error(f"Send of request {request_id} failed, closing connection: {e}")
                with contextlib.suppress(Exception):
                    await ws.close()
                return

    def _shutdown(self, error: ConnectionError) -> None:
        """Move to CLOSED and reject the open future and all pending requests."""
        self._state = ConnectionState.CLOSED
        self._ws = None

        if self._opened is not None and not self._opened.done():
            self._opened.set_exception(error)

        pending = list(self._pending.values())
        self._pending.clear()
        for entry in pending:
            entry.cancel_deadline()
            if not entry.future.done():
                entry.future.set_exception(error)

        while not self._outbox.empty():
            self._outbox.get_nowait()

        if pending:
            logger.warning(f"Rejected {len(pending)} in-flight request(s): {error}")


def _consume_exception(future: asyncio.Future[Any]) -> None:
    # Open failures are logged in _run; don't warn again if nobody awaited
    if not future.cancelled():
        future.exception()
