"""WebKit debug protocol client.

Request/response correlation and event routing over a WebSocket, plus a
typed client for the Debugger and Runtime domains.
"""

from .bus import EventBus, Subscription
from .config import ClientConfig
from .errors import (
    AlreadyAttachedError,
    ConnectionClosedError,
    ConnectionFailedError,
    DebugClientError,
    DiscoveryError,
    RequestTimeoutError,
)
from .protocol import DebuggerEvent, DebuggerMethod, Request
from .sdk import (
    ConnectionState,
    Correlator,
    DebuggerClient,
    Location,
    RemoteObject,
    TargetInfo,
    fetch_targets,
    resolve_websocket_url,
)

__version__ = "0.1.0"

__all__ = [
    "DebuggerClient",
    "Correlator",
    "ConnectionState",
    "ClientConfig",
    "EventBus",
    "Subscription",
    "Request",
    "DebuggerMethod",
    "DebuggerEvent",
    "Location",
    "RemoteObject",
    "TargetInfo",
    "fetch_targets",
    "resolve_websocket_url",
    "DebugClientError",
    "DiscoveryError",
    "ConnectionFailedError",
    "ConnectionClosedError",
    "AlreadyAttachedError",
    "RequestTimeoutError",
]
