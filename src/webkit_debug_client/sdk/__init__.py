"""Debugger SDK - discovery, correlation and the typed client.

Layers, leaf first:
- Correlator: socket lifecycle, pending-request table, event dispatch
- DebuggerClient: request ids plus one method per remote operation
- discovery: resolves the socket URL from the HTTP /json listing
"""

from .client import DebuggerClient
from .discovery import fetch_targets, resolve_websocket_url
from .transport import ConnectionState, Connector, Correlator, PendingRequest
from .types import Location, RemoteObject, TargetInfo

__all__ = [
    # Client
    "DebuggerClient",
    # Correlation
    "Correlator",
    "ConnectionState",
    "Connector",
    "PendingRequest",
    # Discovery
    "fetch_targets",
    "resolve_websocket_url",
    # Types
    "Location",
    "RemoteObject",
    "TargetInfo",
]
