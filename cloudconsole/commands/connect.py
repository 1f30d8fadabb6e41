"""CLI handlers for 'connect' and 'settings'."""

import asyncio
import logging
import os
import sys
from dataclasses import asdict, replace

import yaml

from cloudconsole.config import ACCESS_TOKEN_ENV, load_config
from cloudconsole.launcher import run_console
from cloudconsole.provisioning import get_user_settings
from cloudconsole.redact import register_secret

logger = logging.getLogger(__name__)


def _resolve_access_token(args_access_token, dry_run=False):
    """Return the token from the CLI flag or CLOUD_CONSOLE_ACCESS_TOKEN env var.

    Raises SystemExit if neither is set (outside dry-run).
    """
    access_token = args_access_token or os.environ.get(ACCESS_TOKEN_ENV)
    if not access_token and not dry_run:
        logger.error(f"Error: access token required. Use --access-token or set {ACCESS_TOKEN_ENV}.")
        sys.exit(1)
    register_secret(access_token or "")
    return access_token or ""


def _resolve_config(args):
    config = load_config(args.config)
    overrides = {}
    if getattr(args, "arm_endpoint", None):
        overrides["arm_endpoint"] = args.arm_endpoint
    if getattr(args, "provision_timeout", None) is not None:
        overrides["provision_timeout"] = args.provision_timeout
    if not overrides:
        return config
    try:
        return replace(config, **overrides)
    except ValueError as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


# ── CLI handlers ───────────────────────────────────────────────────


def handle_connect(args):
    """CLI handler for 'connect'.

    Exits 0 after a clean socket close and 1 when the console or terminal
    could not be set up. After a socket error the handler returns without
    calling sys.exit, so the process ends with the interpreter's default
    status (0) and the two closes look the same to a caller.
    """
    config = _resolve_config(args)
    access_token = _resolve_access_token(args.access_token, args.dry_run)
    try:
        exit_code = asyncio.run(run_console(access_token, config, dry_run=args.dry_run))
    except Exception as e:
        logger.error(f"Error: {e!r}")
        logger.debug("Traceback:", exc_info=True)
        sys.exit(1)
    # None: the socket closed after an error; leave the exit status alone.
    if exit_code is not None:
        sys.exit(exit_code)


def handle_settings(args):
    """CLI handler for 'settings'."""
    config = _resolve_config(args)
    access_token = _resolve_access_token(args.access_token)
    settings = asyncio.run(get_user_settings(access_token, config))
    if settings is None:
        logger.info("No user settings found; the provider defaults will be used.")
        return
    print(yaml.safe_dump(asdict(settings), sort_keys=False), end="")


# ── Registration ───────────────────────────────────────────────────


def _add_common_arguments(parser):
    parser.add_argument("--config", default=None, help="Path to config YAML (default: ~/.config/cloudconsole/config.yaml)")
    parser.add_argument("--access-token", default=None, help=f"Bearer token (fallback: {ACCESS_TOKEN_ENV} env var)")
    parser.add_argument("--arm-endpoint", default=None, help="Resource manager base URL")


def register_connect_command(subparsers):
    """Register the 'connect' command."""
    parser = subparsers.add_parser("connect", help="Open a Cloud Shell in this terminal")
    _add_common_arguments(parser)
    parser.add_argument(
        "--provision-timeout",
        type=float,
        default=None,
        help="Seconds to wait for the console to provision (default: no limit)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print requests without executing")
    parser.set_defaults(func=handle_connect)


def register_settings_command(subparsers):
    """Register the 'settings' command."""
    parser = subparsers.add_parser("settings", help="Show the Cloud Shell user settings")
    _add_common_arguments(parser)
    parser.set_defaults(func=handle_settings)
