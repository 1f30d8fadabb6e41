"""Unit tests for terminal initialization retries and resize delivery."""

import asyncio
import logging
from unittest.mock import call, patch

import httpx

from cloudconsole.config import ConsoleConfig
from cloudconsole.provider.types import ApiResponse, TerminalSession, WindowGeometry
from cloudconsole.session.terminal import initialize_terminal, make_resize_handler, resize_terminal

TOKEN = "test-access-token"
CONSOLE_URI = "https://eastus.console.example.net/c/1234"
GEOMETRY = WindowGeometry(columns=120, rows=40)

TERMINAL_RESPONSE = {
    "id": "8f6c2a1e",
    "socketUri": "wss://eastus.console.example.net/c/1234/terminals/8f6c2a1e",
    "idleTimeout": 1200,
    "tokenUpdated": True,
}


def _init(config=None):
    return asyncio.run(initialize_terminal(TOKEN, CONSOLE_URI, config or ConsoleConfig(), lambda: GEOMETRY))


# ── initialize_terminal ───────────────────────────────────────────


@patch("cloudconsole.session.terminal.asyncio.sleep")
@patch("cloudconsole.provider.api.create_terminal")
def test_initialize_first_attempt(mock_create, mock_sleep):
    mock_create.return_value = ApiResponse(status=200, body=TERMINAL_RESPONSE)

    session = _init()

    assert session == TerminalSession(id="8f6c2a1e", socket_uri=TERMINAL_RESPONSE["socketUri"], idle_timeout=1200)
    mock_create.assert_called_once_with(TOKEN, CONSOLE_URI, GEOMETRY, timeout=60)
    mock_sleep.assert_not_called()


@patch("cloudconsole.session.terminal.asyncio.sleep")
@patch("cloudconsole.provider.api.create_terminal")
def test_initialize_retries_with_linear_backoff(mock_create, mock_sleep):
    mock_create.side_effect = [
        ApiResponse(status=404),
        ApiResponse(status=404),
        ApiResponse(status=200, body=TERMINAL_RESPONSE),
    ]

    session = _init(ConsoleConfig())

    assert session.id == "8f6c2a1e"
    assert mock_create.call_count == 3
    assert mock_sleep.call_args_list == [call(1.0), call(2.0)]


@patch("cloudconsole.session.terminal.asyncio.sleep")
@patch("cloudconsole.provider.api.create_terminal")
def test_initialize_all_404_gives_up_quietly(mock_create, mock_sleep, caplog):
    mock_create.return_value = ApiResponse(status=404, body={"error": {"message": "Console not ready"}})

    with caplog.at_level(logging.INFO):
        assert _init(ConsoleConfig()) is None

    assert mock_create.call_count == 5
    assert mock_sleep.call_args_list == [call(1.0), call(2.0), call(3.0), call(4.0), call(5.0)]
    assert "Console not ready" not in caplog.text
    assert "Failed to connect to the terminal." in caplog.text
    assert [r.getMessage() for r in caplog.records].count(".") == 5


@patch("cloudconsole.session.terminal.asyncio.sleep")
@patch("cloudconsole.provider.api.create_terminal")
def test_initialize_logs_non_404_errors(mock_create, mock_sleep, caplog):
    mock_create.side_effect = [
        ApiResponse(status=500, body={"error": {"message": "Internal error"}}),
        ApiResponse(status=503, body="unavailable"),
        ApiResponse(status=200, body=TERMINAL_RESPONSE),
    ]

    assert _init(ConsoleConfig()) is not None

    assert "Internal error (500)" in caplog.text
    assert "503" in caplog.text
    assert "unavailable" in caplog.text


@patch("cloudconsole.session.terminal.asyncio.sleep")
@patch("cloudconsole.provider.api.create_terminal")
def test_initialize_missing_socket_uri_counts_as_failure(mock_create, mock_sleep):
    mock_create.side_effect = [
        ApiResponse(status=200, body={"id": "t-0"}),
        ApiResponse(status=200, body=TERMINAL_RESPONSE),
    ]

    session = _init(ConsoleConfig())

    assert session.socket_uri == TERMINAL_RESPONSE["socketUri"]
    assert mock_sleep.call_args_list == [call(1.0)]


@patch("cloudconsole.session.terminal.asyncio.sleep")
@patch("cloudconsole.provider.api.create_terminal")
def test_initialize_respects_attempt_cap(mock_create, mock_sleep):
    mock_create.return_value = ApiResponse(status=404)

    assert _init(ConsoleConfig(init_attempts=2, init_backoff=0.5)) is None

    assert mock_create.call_count == 2
    assert mock_sleep.call_args_list == [call(0.5), call(1.0)]


@patch("cloudconsole.session.terminal.asyncio.sleep")
@patch("cloudconsole.provider.api.create_terminal")
def test_initialize_samples_geometry_per_attempt(mock_create, mock_sleep):
    mock_create.side_effect = [ApiResponse(status=404), ApiResponse(status=200, body=TERMINAL_RESPONSE)]
    sizes = iter([WindowGeometry(80, 24), WindowGeometry(132, 43)])

    asyncio.run(initialize_terminal(TOKEN, CONSOLE_URI, ConsoleConfig(), lambda: next(sizes)))

    assert [c.args[2] for c in mock_create.call_args_list] == [WindowGeometry(80, 24), WindowGeometry(132, 43)]


# ── resize ────────────────────────────────────────────────────────


@patch("cloudconsole.provider.api.resize_terminal")
def test_resize_handler_bound_to_session(mock_resize):
    mock_resize.return_value = ApiResponse(status=200)
    session = TerminalSession(id="8f6c2a1e", socket_uri="wss://x")
    on_resize = make_resize_handler(TOKEN, CONSOLE_URI, session, timeout=15)

    asyncio.run(on_resize(GEOMETRY))

    mock_resize.assert_called_once_with(TOKEN, CONSOLE_URI, "8f6c2a1e", GEOMETRY, timeout=15)


@patch("cloudconsole.provider.api.resize_terminal")
def test_resize_failure_is_logged_not_raised(mock_resize, caplog):
    mock_resize.return_value = ApiResponse(status=400, body={"error": {"message": "Invalid size"}})

    asyncio.run(resize_terminal(TOKEN, CONSOLE_URI, "t-1", GEOMETRY))

    assert "Resize to 120x40 failed: Invalid size (400)" in caplog.text
    mock_resize.assert_called_once()


@patch("cloudconsole.provider.api.resize_terminal")
def test_resize_transport_error_is_logged_not_raised(mock_resize, caplog):
    mock_resize.side_effect = httpx.ReadTimeout("timed out")

    asyncio.run(resize_terminal(TOKEN, CONSOLE_URI, "t-1", GEOMETRY))

    assert "Resize to 120x40 failed: timed out" in caplog.text
