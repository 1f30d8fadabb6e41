"""Session Initializer: negotiate an interactive terminal on a ready console."""

import asyncio
import logging

import httpx

from cloudconsole.provider import api
from cloudconsole.provider.types import TerminalSession

logger = logging.getLogger(__name__)


async def initialize_terminal(access_token, console_uri, config, get_geometry):
    """Create a terminal on the console, retrying while it warms up.

    Up to ``config.init_attempts`` sequential attempts. A 404 means the
    console endpoint is not ready yet and is not reported; other failures are
    logged. After failed attempt k (0-based) waits ``init_backoff * (k + 1)``
    seconds before the next one.

    Args:
        get_geometry: callable returning the current WindowGeometry.

    Returns:
        TerminalSession on success, None once all attempts failed.
    """
    logger.info("Connecting terminal...")

    for attempt in range(config.init_attempts):
        response = await api.create_terminal(access_token, console_uri, get_geometry(), timeout=config.request_timeout)

        session = TerminalSession.from_body(response.body) if response.ok else None
        if session is not None:
            logger.debug(f"Terminal {session.id} created (socket: {session.socket_uri})")
            return session

        if response.ok:
            logger.error(f"Terminal response has no socketUri: {response.body}")
        elif response.status != 404:
            logger.error(response.describe())

        await asyncio.sleep(config.init_backoff * (attempt + 1))
        logger.info(".")

    logger.error("Failed to connect to the terminal.")
    return None


async def resize_terminal(access_token, console_uri, term_id, geometry, timeout=60):
    """Send the new terminal size. Best effort: failures are logged, never raised."""
    try:
        response = await api.resize_terminal(access_token, console_uri, term_id, geometry, timeout=timeout)
    except httpx.HTTPError as e:
        logger.error(f"Resize to {geometry.columns}x{geometry.rows} failed: {e}")
        return
    if not response.ok:
        logger.error(f"Resize to {geometry.columns}x{geometry.rows} failed: {response.describe()}")


def make_resize_handler(access_token, console_uri, session, timeout=60):
    """Bind resize delivery to one terminal session.

    Only callable once a session exists, so a resize can never be sent
    without a terminal id and console uri.
    """

    async def on_resize(geometry):
        await resize_terminal(access_token, console_uri, session.id, geometry, timeout=timeout)

    return on_resize
