"""Settings Resolver: fetch the caller's cloud console preferences."""

import logging

import httpx

from cloudconsole.provider import api
from cloudconsole.provider.types import UserSettings

logger = logging.getLogger(__name__)


async def get_user_settings(access_token, config):
    """Fetch the user's preferred location and OS type.

    One request, no retry. A failed or malformed response is not an error:
    it yields None and the caller falls back to defaults.

    Returns:
        UserSettings, or None when the settings are unavailable.
    """
    try:
        response = await api.get_settings(access_token, config)
    except httpx.HTTPError as e:
        logger.debug(f"User settings request failed: {e}")
        return None

    if not response.ok:
        logger.debug(f"No user settings: {response.describe()}")
        return None

    properties = response.body.get("properties") if isinstance(response.body, dict) else None
    if not isinstance(properties, dict):
        logger.debug("User settings response has no 'properties' object.")
        return None
    return UserSettings.from_properties(properties)
