"""Client configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 9222


@dataclass
class ClientConfig:
    """Settings shared by discovery, the correlator and the client.

    request_timeout is None by default: requests wait for their response
    for as long as the connection stays open.
    """

    # Discovery endpoint (http://<host>:<port>/json)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    discovery_timeout: float = 10.0

    # Per-request deadline in seconds
    request_timeout: float | None = None

    # WebSocket settings
    max_message_size: int | None = None  # None = unlimited
    ping_interval: float | None = None  # debug backends rarely answer pings

    @property
    def discovery_url(self) -> str:
        return f"http://{self.host}:{self.port}/json"

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build a config from WEBKIT_DEBUG_* environment variables."""
        timeout = os.getenv("WEBKIT_DEBUG_REQUEST_TIMEOUT")
        return cls(
            host=os.getenv("WEBKIT_DEBUG_HOST", DEFAULT_HOST),
            port=int(os.getenv("WEBKIT_DEBUG_PORT", str(DEFAULT_PORT))),
            request_timeout=float(timeout) if timeout else None,
        )
