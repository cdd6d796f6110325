"""webkit-debug command line.

Usage:
    webkit-debug targets                      # List debuggable targets
    webkit-debug targets --format json        # Same, as JSON
    webkit-debug eval "navigator.userAgent"   # Evaluate in the first target
    webkit-debug watch                        # Print every event
    webkit-debug watch -e Debugger.paused     # Print selected events

    webkit-debug --port 9229 watch            # Other port (default 9222)
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import Any

import click

from .config import ClientConfig
from .errors import DebugClientError
from .protocol.methods import DebuggerEvent
from .sdk.client import DebuggerClient
from .sdk.discovery import fetch_targets
from .sdk.types import RemoteObject

# Output format options
FORMAT_TABLE = "table"
FORMAT_JSON = "json"


def truncate(text: str | None, max_len: int = 50) -> str:
    """Truncate text for display."""
    if not text:
        return ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def _configure_logging(verbose: bool) -> None:
    """Send all logging to stderr so stdout stays machine-readable."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root_logger.addHandler(stderr_handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


@click.group()
@click.option("--host", default=None, help="Debug backend host [env: WEBKIT_DEBUG_HOST]")
@click.option("--port", type=int, default=None, help="Debug backend port [env: WEBKIT_DEBUG_PORT]")
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Per-request timeout in seconds [env: WEBKIT_DEBUG_REQUEST_TIMEOUT]",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every frame to stderr")
@click.pass_context
def main(
    ctx: click.Context,
    host: str | None,
    port: int | None,
    timeout: float | None,
    verbose: bool,
) -> None:
    """Talk to a WebKit-protocol debug backend."""
    _configure_logging(verbose)

    config = ClientConfig.from_env()
    if host:
        config.host = host
    if port is not None:
        config.port = port
    if timeout is not None:
        config.request_timeout = timeout
    ctx.obj = config


# =============================================================================
# targets
# =============================================================================


@main.command()
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)
@click.pass_obj
def targets(config: ClientConfig, output_format: str) -> None:
    """List debuggable targets."""
    try:
        found = asyncio.run(
            fetch_targets(config.host, config.port, timeout=config.discovery_timeout)
        )
    except DebugClientError as e:
        raise click.ClickException(str(e)) from e

    if output_format == FORMAT_JSON:
        click.echo(json.dumps([t.model_dump(by_alias=True) for t in found], indent=2))
        return

    if not found:
        click.echo("No targets found.")
        return

    click.echo(f"{'Type':<10} {'Title':<30} {'URL':<40}")
    click.echo("-" * 82)
    for target in found:
        click.echo(
            f"{truncate(target.type, 10):<10} "
            f"{truncate(target.title, 30):<30} "
            f"{truncate(target.url, 40):<40}"
        )
    click.echo(f"\nTotal: {len(found)} target(s)")


# =============================================================================
# eval
# =============================================================================


@main.command("eval")
@click.argument("expression")
@click.pass_obj
def eval_command(config: ClientConfig, expression: str) -> None:
    """Evaluate EXPRESSION in the global scope of the first target."""
    try:
        response = asyncio.run(_evaluate(config, expression))
    except (DebugClientError, ConnectionError, TimeoutError) as e:
        raise click.ClickException(str(e)) from e

    if "error" in response:
        raise click.ClickException(f"Protocol error: {response['error']}")

    result = response.get("result", {})
    if result.get("exceptionDetails") or result.get("wasThrown"):
        click.echo(f"Uncaught: {_describe(result.get('result'))}", err=True)
        sys.exit(1)

    click.echo(_describe(result.get("result")))


async def _evaluate(config: ClientConfig, expression: str) -> dict[str, Any]:
    async with DebuggerClient(config) as client:
        await client.connect()
        return await client.evaluate(expression, return_by_value=True)


def _describe(raw: dict[str, Any] | None) -> str:
    if not raw:
        return "undefined"
    return RemoteObject.model_validate(raw).display()


# =============================================================================
# watch
# =============================================================================


@main.command()
@click.option(
    "--event",
    "-e",
    "events",
    multiple=True,
    help=f"Event name to print, e.g. {DebuggerEvent.PAUSED.value} (repeatable)",
)
@click.pass_obj
def watch(config: ClientConfig, events: tuple[str, ...]) -> None:
    """Print debugger events as JSON lines until interrupted."""
    try:
        asyncio.run(_watch(config, events))
    except KeyboardInterrupt:
        click.echo("\nStopped", err=True)
    except DebugClientError as e:
        raise click.ClickException(str(e)) from e


async def _watch(config: ClientConfig, events: tuple[str, ...]) -> None:
    def print_event(name: str, params: Any) -> None:
        click.echo(json.dumps({"method": name, "params": params}))

    async with DebuggerClient(config) as client:
        if events:
            for name in events:
                client.on(name, lambda params, name=name: print_event(name, params))
        else:
            client.correlator.on_any(print_event)

        ws_url = await client.connect()
        click.echo(f"Watching {ws_url}", err=True)
        await client.correlator.wait_closed()
        click.echo("Connection closed", err=True)


if __name__ == "__main__":
    main()
