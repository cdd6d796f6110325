"""Target discovery over the backend's HTTP /json endpoint.

The backend lists its debuggable targets as a JSON array; each entry
carries the WebSocket URL to attach to:

    [{"id": "...", "title": "...", "webSocketDebuggerUrl": "ws://..."}]
"""

from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from ..config import DEFAULT_HOST, DEFAULT_PORT
from ..errors import DiscoveryError
from .types import TargetInfo

logger = logging.getLogger(__name__)


async def fetch_targets(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = 10.0,
) -> list[TargetInfo]:
    """GET http://<host>:<port>/json and parse the target list.

    Args:
        host: Debug backend host
        port: Debug backend HTTP port
        client: Optional client to reuse (not closed here)
        timeout: Request timeout when a client is created here

    Raises:
        DiscoveryError: On HTTP failure or an unexpected payload
    """
    url = f"http://{host}:{port}/json"
    owns_client = client is None
    http = client or httpx.AsyncClient(timeout=timeout)

    try:
        response = await http.get(url)
        response.raise_for_status()
        payload = response.json()
    except httpx.HTTPError as e:
        raise DiscoveryError(f"Discovery request to {url} failed: {e}") from e
    except ValueError as e:
        raise DiscoveryError(f"Discovery endpoint {url} returned invalid JSON: {e}") from e
    finally:
        if owns_client:
            await http.aclose()

    if not isinstance(payload, list):
        raise DiscoveryError(f"Expected a JSON array from {url}, got {type(payload).__name__}")

    try:
        targets = [TargetInfo.model_validate(entry) for entry in payload]
    except ValidationError as e:
        raise DiscoveryError(f"Malformed target descriptor from {url}: {e}") from e

    logger.debug(f"Discovered {len(targets)} target(s) at {url}")
    return targets


async def resolve_websocket_url(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = 10.0,
) -> str:
    """Return the socket URL of the first listed target."""
    targets = await fetch_targets(host, port, client=client, timeout=timeout)
    if not targets:
        raise DiscoveryError(f"No debuggable targets at http://{host}:{port}/json")

    ws_url = targets[0].web_socket_debugger_url
    if not ws_url:
        raise DiscoveryError(
            f"First target at http://{host}:{port}/json has no webSocketDebuggerUrl "
            "(is another debugger already attached?)"
        )

    logger.info(f"Resolved debugger socket {ws_url}")
    return ws_url
