"""Debugger client.

Thin, typed layer over the Correlator: every remote operation shapes its
parameters, stamps the next request id and returns the correlator's
future unchanged. Retry, validation and timeout policy live with the
caller (or in ClientConfig.request_timeout), not here.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from ..bus import EventHandler, Subscription
from ..config import ClientConfig
from ..protocol.envelope import Request
from ..protocol.methods import DebuggerMethod
from .discovery import resolve_websocket_url
from .transport import Connector, Correlator
from .types import Location

logger = logging.getLogger(__name__)

DEFAULT_OBJECT_GROUP = "dummyObjectGroup"


class DebuggerClient:
    """Connects to a WebKit-protocol debug target and drives its debugger.

    Usage:
        async with DebuggerClient() as client:
            client.on("Debugger.paused", on_paused)
            await client.connect(port=9222)
            await client.step_over()
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        correlator: Correlator | None = None,
        connector: Connector | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config or ClientConfig()
        self._correlator = correlator or Correlator(self.config, connector=connector)
        self._http_client = http_client
        self._next_id = 1

    @property
    def correlator(self) -> Correlator:
        return self._correlator

    @property
    def next_id(self) -> int:
        """Id the next request will carry."""
        return self._next_id

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on(self, event_name: str, handler: EventHandler) -> Subscription:
        """Subscribe handler(params) to an event such as "Debugger.paused"."""
        return self._correlator.on_event(event_name, handler)

    def off(self, subscription: Subscription) -> None:
        self._correlator.unsubscribe(subscription)

    # -------------------------------------------------------------------------
    # Connection
    # -------------------------------------------------------------------------

    async def connect(self, port: int | None = None, host: str | None = None) -> str:
        """Discover the first target on host:port, attach and enable the debugger.

        Debugger.enable is sent without waiting for its response. Returns
        once the socket is open.

        Returns:
            The WebSocket URL attached to

        Raises:
            DiscoveryError: If no target could be resolved
            ConnectionFailedError: If the socket could not be opened
        """
        ws_url = await resolve_websocket_url(
            host or self.config.host,
            port if port is not None else self.config.port,
            client=self._http_client,
            timeout=self.config.discovery_timeout,
        )
        opened = self.attach(ws_url)
        await asyncio.shield(opened)
        return ws_url

    def attach(self, ws_url: str) -> asyncio.Future[None]:
        """Attach straight to a known socket URL and enable the debugger.

        Returns the correlator's open future.
        """
        opened = self._correlator.attach(ws_url)
        enabled = self.send_request(DebuggerMethod.ENABLE)
        enabled.add_done_callback(_log_enable_result)
        return opened

    async def close(self) -> None:
        await self._correlator.close()

    async def __aenter__(self) -> DebuggerClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Request primitive
    # -------------------------------------------------------------------------

    def send_request(
        self,
        method: str | DebuggerMethod,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> asyncio.Future[dict[str, Any]]:
        """Send any remote method with the next request id.

        Returns:
            Future resolving with the full response envelope
        """
        request = Request.create(
            self._next_id,
            method.value if isinstance(method, DebuggerMethod) else method,
            params,
        )
        self._next_id += 1
        return self._correlator.send_message(request.to_envelope(), timeout=timeout)

    # -------------------------------------------------------------------------
    # Debugger domain
    # -------------------------------------------------------------------------

    def set_breakpoint(
        self,
        location: Location | dict[str, Any],
        condition: str | None = None,
    ) -> asyncio.Future[dict[str, Any]]:
        if isinstance(location, Location):
            location = location.to_params()
        return self.send_request(
            DebuggerMethod.SET_BREAKPOINT,
            {"location": location, "condition": condition},
        )

    def remove_breakpoint(self, breakpoint_id: str) -> asyncio.Future[dict[str, Any]]:
        return self.send_request(
            DebuggerMethod.REMOVE_BREAKPOINT,
            {"breakpointId": breakpoint_id},
        )

    def step_over(self) -> asyncio.Future[dict[str, Any]]:
        return self.send_request(DebuggerMethod.STEP_OVER)

    def step_in(self) -> asyncio.Future[dict[str, Any]]:
        return self.send_request(DebuggerMethod.STEP_INTO)

    def step_out(self) -> asyncio.Future[dict[str, Any]]:
        return self.send_request(DebuggerMethod.STEP_OUT)

    def resume(self) -> asyncio.Future[dict[str, Any]]:
        return self.send_request(DebuggerMethod.RESUME)

    def pause(self) -> asyncio.Future[dict[str, Any]]:
        return self.send_request(DebuggerMethod.PAUSE)

    def evaluate_on_call_frame(
        self,
        call_frame_id: str,
        expression: str,
        object_group: str = DEFAULT_OBJECT_GROUP,
        return_by_value: bool | None = None,
    ) -> asyncio.Future[dict[str, Any]]:
        """Evaluate `expression` in the scope of a paused call frame."""
        return self.send_request(
            DebuggerMethod.EVALUATE_ON_CALL_FRAME,
            {
                "callFrameId": call_frame_id,
                "expression": expression,
                "objectGroup": object_group,
                "returnByValue": return_by_value,
            },
        )

    # -------------------------------------------------------------------------
    # Runtime domain
    # -------------------------------------------------------------------------

    def get_properties(
        self,
        object_id: str,
        own_properties: bool = False,
    ) -> asyncio.Future[dict[str, Any]]:
        return self.send_request(
            DebuggerMethod.GET_PROPERTIES,
            {"objectId": object_id, "ownProperties": own_properties},
        )

    def evaluate(
        self,
        expression: str,
        object_group: str = DEFAULT_OBJECT_GROUP,
        context_id: int | None = None,
        return_by_value: bool = False,
    ) -> asyncio.Future[dict[str, Any]]:
        """Evaluate `expression` in the global scope."""
        return self.send_request(
            DebuggerMethod.EVALUATE,
            {
                "expression": expression,
                "objectGroup": object_group,
                "contextId": context_id,
                "returnByValue": return_by_value,
            },
        )


def _log_enable_result(future: asyncio.Future[dict[str, Any]]) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.warning(f"Debugger.enable did not complete: {exc}")
    elif "error" in future.result():
        logger.warning(f"Debugger.enable failed: {future.result()['error']}")
    else:
        logger.debug("Debugger enabled")
