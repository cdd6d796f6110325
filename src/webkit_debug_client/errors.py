"""Exception hierarchy for the debugger client.

Transport-level failures derive from ConnectionError so callers can catch
them without importing this module. Message-level anomalies (unmatched
responses, unknown events, malformed frames) are logged, never raised.
"""

from __future__ import annotations


class DebugClientError(Exception):
    """Base class for all client errors."""


class DiscoveryError(DebugClientError, ConnectionError):
    """The /json discovery endpoint was unreachable or returned no usable target."""


class ConnectionFailedError(DebugClientError, ConnectionError):
    """The WebSocket could not be opened."""


class ConnectionClosedError(DebugClientError, ConnectionError):
    """The connection closed while requests were in flight, or was already closed."""


class AlreadyAttachedError(DebugClientError, RuntimeError):
    """attach() was called on a correlator that is not idle."""


class RequestTimeoutError(DebugClientError, TimeoutError):
    """A request passed its deadline without a matching response."""

    def __init__(self, request_id: int, method: str | None, timeout: float):
        self.request_id = request_id
        self.method = method
        self.timeout = timeout
        super().__init__(f"Request {request_id} ({method}) timed out after {timeout}s")
