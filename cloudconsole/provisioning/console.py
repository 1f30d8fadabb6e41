"""Provisioning Driver: create the console resource and poll until it settles."""

import logging
from time import monotonic

from cloudconsole.provider import api
from cloudconsole.provider.types import ConsoleResource, ProvisioningState

logger = logging.getLogger(__name__)


def resolve_console_request(settings, config):
    """Pick the OS type and preferred location for the create request.

    Returns:
        (os_type, location) tuple; location may be None.
    """
    if settings is None:
        logger.warning(f"Warning: user settings unavailable, using defaults (osType={config.default_os_type}).")
        return config.default_os_type, config.default_location
    os_type = settings.preferred_os_type or config.default_os_type
    location = settings.preferred_location or config.default_location
    return os_type, location


def _log_failure(response):
    logger.error(response.describe())
    if response.correlation_id:
        logger.error(f"Request correlation id: {response.correlation_id}")


async def provision_console(access_token, settings, config):
    """Request a console and poll it until it is Succeeded or Failed.

    The first request is a PUT (create); every following one is a GET with no
    body, issued as soon as the previous one completes. Polling is unbounded
    unless ``config.provision_timeout`` is set.

    Returns:
        ConsoleResource in the Succeeded state, or None if provisioning was
        aborted (non-2xx response, Failed state, or timeout).
    """
    logger.info("Requesting a Cloud Shell...")
    os_type, location = resolve_console_request(settings, config)
    deadline = None if config.provision_timeout is None else monotonic() + config.provision_timeout

    response = await api.put_console(access_token, config, os_type, location)
    while True:
        if not response.ok:
            _log_failure(response)
            return None

        console = ConsoleResource.from_response(response)
        if console.provisioning_state == ProvisioningState.SUCCEEDED:
            logger.debug(f"Console ready at {console.uri}")
            return console
        if console.provisioning_state == ProvisioningState.FAILED:
            logger.error(
                "Sorry, your Cloud Shell failed to provision. Please retry later. "
                f"Request correlation id: {console.correlation_id}"
            )
            return None

        logger.info(".")
        if deadline is not None and monotonic() >= deadline:
            logger.error(
                f"Timeout after {config.provision_timeout}s waiting for the Cloud Shell "
                f"(last state: '{console.provisioning_state}')"
            )
            return None
        response = await api.get_console(access_token, config, location)
