"""Top-level flow: settings -> provision -> terminal -> bridge.

Bridge between the CLI layer and the provider/session modules. Each stage
starts only after the previous one finished; a failed stage ends the run.
"""

import logging

import websockets

from cloudconsole.provider import api
from cloudconsole.provisioning import get_user_settings, provision_console
from cloudconsole.session import LocalTerminal, TerminalBridge, initialize_terminal, make_resize_handler

logger = logging.getLogger(__name__)

EXIT_CLEAN = 0
EXIT_FAILED = 1


def _log_dry_run(config, geometry):
    poll_bound = f"up to {config.provision_timeout}s" if config.provision_timeout else "no client timeout"
    waits = ", ".join(f"{config.init_backoff * (i + 1):g}s" for i in range(config.init_attempts))
    logger.info(f"[dry-run] GET {api.settings_url(config)}")
    logger.info(f"[dry-run] PUT {api.console_url(config)}")
    logger.info(f"[dry-run] GET {api.console_url(config)} until provisioningState is Succeeded or Failed ({poll_bound})")
    logger.info(
        f"[dry-run] POST {api.terminals_url('<console-uri>', geometry)} "
        f"(up to {config.init_attempts} attempts, waits {waits} after failures)"
    )
    logger.info("[dry-run] Open websocket <socket-uri> and bridge stdin/stdout until it closes")


async def run_console(access_token, config, terminal=None, dry_run=False, connect=websockets.connect):
    """Provision a cloud console and attach the local terminal to it.

    Args:
        terminal: LocalTerminal-like object supplying geometry, raw mode and
            the input/output/resize handles. Defaults to the process's tty.
        dry_run: log the requests that would be made and return 0.

    Returns:
        0 if the socket closed without a recorded error, None if it closed
        after one (the caller must not force an exit code), 1 if the console
        or terminal could not be set up.
    """
    terminal = terminal or LocalTerminal()

    if dry_run:
        _log_dry_run(config, terminal.geometry())
        return EXIT_CLEAN

    settings = await get_user_settings(access_token, config)

    console = await provision_console(access_token, settings, config)
    if console is None:
        return EXIT_FAILED
    if not console.uri:
        logger.error(f"Console is ready but has no uri. Request correlation id: {console.correlation_id}")
        return EXIT_FAILED

    session = await initialize_terminal(access_token, console.uri, config, terminal.geometry)
    if session is None:
        return EXIT_FAILED
    if session.idle_timeout:
        logger.debug(f"Terminal idle timeout: {session.idle_timeout}s")

    local_input = terminal.input()
    bridge = TerminalBridge(
        session.socket_uri,
        local_input=local_input,
        local_output=terminal.output(),
        resize_events=terminal.resize_events(),
        on_resize=make_resize_handler(access_token, console.uri, session, timeout=config.request_timeout),
        connect=connect,
    )
    try:
        with terminal.raw_mode():
            result = await bridge.run()
    finally:
        local_input.close()

    return None if result.error else EXIT_CLEAN
