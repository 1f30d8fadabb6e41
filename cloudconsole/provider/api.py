"""Console provider REST calls (Microsoft.Portal consoles via ARM)."""

import logging

import httpx

from cloudconsole.provider.types import ApiResponse

logger = logging.getLogger(__name__)

PREFERRED_LOCATION_HEADER = "x-ms-console-preferred-location"


# ── URL builders ──────────────────────────────────────────────────


def settings_url(config):
    return (
        f"{config.arm_endpoint}/providers/Microsoft.Portal/userSettings/cloudconsole"
        f"?api-version={config.api_version}"
    )


def console_url(config):
    return f"{config.arm_endpoint}/providers/Microsoft.Portal/consoles/default?api-version={config.api_version}"


def terminals_url(console_uri, geometry):
    return f"{console_uri}/terminals?cols={geometry.columns}&rows={geometry.rows}"


def resize_url(console_uri, term_id, geometry):
    return f"{console_uri}/terminals/{term_id}/size?cols={geometry.columns}&rows={geometry.rows}"


# ── API helpers ───────────────────────────────────────────────────


def _parse_body(resp):
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return resp.text


async def _api_request(method, url, access_token, body=None, headers=None, timeout=60, transport=None):
    """Make an authenticated provider request.

    Never raises on HTTP status; the caller branches on ``ApiResponse.ok``.
    Transport failures propagate as ``httpx.HTTPError``.

    Returns:
        ApiResponse with the status, headers and parsed JSON body.
    """
    request_headers = {
        "Accept": "application/json",
        "Content-Type": "application/json",
        "Authorization": f"Bearer {access_token}",
    }
    if headers:
        request_headers.update(headers)

    logger.debug(f"{method} {url}")
    async with httpx.AsyncClient(transport=transport) as client:
        resp = await client.request(method, url, json=body, headers=request_headers, timeout=timeout)
    response = ApiResponse(status=resp.status_code, headers=dict(resp.headers), body=_parse_body(resp))
    logger.debug(f"{method} {url} -> {response.status}")
    return response


def _location_headers(location):
    return {PREFERRED_LOCATION_HEADER: location} if location else None


async def get_settings(access_token, config):
    """GET the cloud console user settings."""
    return await _api_request("GET", settings_url(config), access_token, timeout=config.request_timeout)


async def put_console(access_token, config, os_type, location=None):
    """PUT the console resource to create it (or fetch the existing one)."""
    body = {"properties": {"osType": os_type}}
    return await _api_request(
        "PUT", console_url(config), access_token, body=body, headers=_location_headers(location), timeout=config.request_timeout
    )


async def get_console(access_token, config, location=None):
    """GET the console resource to poll its provisioning state."""
    return await _api_request(
        "GET", console_url(config), access_token, headers=_location_headers(location), timeout=config.request_timeout
    )


async def create_terminal(access_token, console_uri, geometry, timeout=60):
    """POST a new terminal of the given geometry on a ready console."""
    return await _api_request("POST", terminals_url(console_uri, geometry), access_token, body={"tokens": []}, timeout=timeout)


async def resize_terminal(access_token, console_uri, term_id, geometry, timeout=60):
    """POST the new geometry of an open terminal."""
    return await _api_request("POST", resize_url(console_uri, term_id, geometry), access_token, timeout=timeout)
