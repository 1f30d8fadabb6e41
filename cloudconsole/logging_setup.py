"""CLI logging setup: plain %(message)s format on stderr."""

import logging
import sys

from cloudconsole.redact import SecretRedactingFilter


class RawModeStreamHandler(logging.StreamHandler):
    """Stream handler that ends records with CRLF.

    While the local terminal is in raw mode a bare LF does not return the
    cursor to column 0.
    """

    terminator = "\r\n"


def setup_cli_logging(verbose=False):
    """Configure root logger with plain message format for CLI commands.

    Diagnostics go to stderr; stdout carries the remote terminal's output.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()
    handler = RawModeStreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.addFilter(SecretRedactingFilter())
    root.addHandler(handler)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
