"""Unit tests for the webkit-debug command line."""

from __future__ import annotations

import functools
import json
import logging
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from webkit_debug_client.cli import _configure_logging as configure_logging
from webkit_debug_client.cli import main, truncate
from webkit_debug_client.errors import DiscoveryError
from webkit_debug_client.protocol.methods import DebuggerEvent
from webkit_debug_client.sdk.client import DebuggerClient
from webkit_debug_client.sdk.types import TargetInfo

TARGETS = [
    TargetInfo(
        id="1",
        type="page",
        title="Example Domain",
        url="https://example.com/",
        webSocketDebuggerUrl="ws://localhost:9222/devtools/page/1",
    )
]


@pytest.fixture(autouse=True)
def _no_logging_setup():
    with patch("webkit_debug_client.cli._configure_logging"):
        yield


class TestTargets:
    def test_table_output(self) -> None:
        with patch("webkit_debug_client.cli.fetch_targets", AsyncMock(return_value=TARGETS)):
            result = CliRunner().invoke(main, ["targets"])

        assert result.exit_code == 0
        assert "Example Domain" in result.output
        assert "Total: 1 target(s)" in result.output

    def test_json_output(self) -> None:
        with patch("webkit_debug_client.cli.fetch_targets", AsyncMock(return_value=TARGETS)):
            result = CliRunner().invoke(main, ["targets", "--format", "json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0]["webSocketDebuggerUrl"] == "ws://localhost:9222/devtools/page/1"

    def test_host_and_port_options(self) -> None:
        fetch = AsyncMock(return_value=[])
        with patch("webkit_debug_client.cli.fetch_targets", fetch):
            result = CliRunner().invoke(main, ["--host", "10.0.0.2", "--port", "9229", "targets"])

        assert result.exit_code == 0
        assert "No targets found." in result.output
        assert fetch.call_args[0] == ("10.0.0.2", 9229)

    def test_discovery_error(self) -> None:
        fetch = AsyncMock(side_effect=DiscoveryError("backend unreachable"))
        with patch("webkit_debug_client.cli.fetch_targets", fetch):
            result = CliRunner().invoke(main, ["targets"])

        assert result.exit_code == 1
        assert "backend unreachable" in result.output


class TestEval:
    def test_prints_value(self) -> None:
        response = {"id": 2, "result": {"result": {"type": "number", "value": 2, "description": "2"}}}
        with patch("webkit_debug_client.cli._evaluate", AsyncMock(return_value=response)):
            result = CliRunner().invoke(main, ["eval", "1 + 1"])

        assert result.exit_code == 0
        assert result.output.strip() == "2"

    def test_string_value_without_description(self) -> None:
        response = {"id": 2, "result": {"result": {"type": "string", "value": "hi"}}}
        with patch("webkit_debug_client.cli._evaluate", AsyncMock(return_value=response)):
            result = CliRunner().invoke(main, ["eval", "'hi'"])

        assert result.output.strip() == '"hi"'

    def test_protocol_error(self) -> None:
        response = {"id": 2, "error": {"code": -32000, "message": "Cannot evaluate"}}
        with patch("webkit_debug_client.cli._evaluate", AsyncMock(return_value=response)):
            result = CliRunner().invoke(main, ["eval", "x"])

        assert result.exit_code == 1
        assert "Protocol error" in result.output

    def test_thrown_exception(self) -> None:
        response = {
            "id": 2,
            "result": {
                "result": {"type": "object", "subtype": "error", "description": "ReferenceError"},
                "wasThrown": True,
            },
        }
        with patch("webkit_debug_client.cli._evaluate", AsyncMock(return_value=response)):
            result = CliRunner().invoke(main, ["eval", "nope"])

        assert result.exit_code == 1
        assert "Uncaught: ReferenceError" in result.output

    def test_timeout_option_reaches_config(self) -> None:
        evaluate = AsyncMock(return_value={"id": 2, "result": {"result": {"type": "undefined"}}})
        with patch("webkit_debug_client.cli._evaluate", evaluate):
            result = CliRunner().invoke(main, ["--timeout", "3", "eval", "void 0"])

        assert result.exit_code == 0
        assert result.output.strip() == "undefined"
        config = evaluate.call_args[0][0]
        assert config.request_timeout == 3.0


def test_truncate() -> None:
    assert truncate(None) == ""
    assert truncate("short") == "short"
    assert truncate("x" * 60, 10) == "xxxxxxx..."


WS_URL = "ws://localhost:9222/devtools/page/1"


def _event_lines(output: str) -> list[dict]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


class TestWatch:
    @pytest.fixture
    def backend(self, connector):
        """Debug backend that emits two events and then hangs up."""
        connector.socket.feed(
            {"method": DebuggerEvent.SCRIPT_PARSED.value, "params": {"scriptId": "7"}}
        )
        connector.socket.feed({"method": DebuggerEvent.PAUSED.value, "params": {"reason": "other"}})
        connector.socket.drop()
        with (
            patch(
                "webkit_debug_client.sdk.client.resolve_websocket_url",
                AsyncMock(return_value=WS_URL),
            ),
            patch(
                "webkit_debug_client.cli.DebuggerClient",
                functools.partial(DebuggerClient, connector=connector),
            ),
        ):
            yield connector

    def test_prints_every_event(self, backend) -> None:
        result = CliRunner().invoke(main, ["watch"])

        assert result.exit_code == 0
        assert _event_lines(result.output) == [
            {"method": "Debugger.scriptParsed", "params": {"scriptId": "7"}},
            {"method": "Debugger.paused", "params": {"reason": "other"}},
        ]
        assert "Connection closed" in result.output
        assert backend.urls == [WS_URL]

    def test_event_filter(self, backend) -> None:
        result = CliRunner().invoke(main, ["watch", "-e", DebuggerEvent.PAUSED.value])

        assert result.exit_code == 0
        assert _event_lines(result.output) == [
            {"method": "Debugger.paused", "params": {"reason": "other"}},
        ]
        assert "Connection closed" in result.output

    def test_discovery_error(self) -> None:
        resolve = AsyncMock(side_effect=DiscoveryError("No debuggable targets"))
        with patch("webkit_debug_client.sdk.client.resolve_websocket_url", resolve):
            result = CliRunner().invoke(main, ["watch"])

        assert result.exit_code == 1
        assert "No debuggable targets" in result.output


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _restore_root_logger(self):
        root_logger = logging.getLogger()
        handlers, level = root_logger.handlers[:], root_logger.level
        yield
        root_logger.handlers[:] = handlers
        root_logger.setLevel(level)

    def test_info_by_default(self) -> None:
        configure_logging(verbose=False)

        assert logging.getLogger().level == logging.INFO

    def test_debug_when_verbose(self) -> None:
        configure_logging(verbose=True)

        assert logging.getLogger().level == logging.DEBUG
