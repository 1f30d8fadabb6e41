"""Keep the console access token out of everything the launcher logs.

The token is known from ``--access-token`` or the environment, but provider
error bodies and debug output can still echo it back. Every log record passes
through ``SecretRedactingFilter`` on its way to stderr.
"""

import logging
import os
import re

TOKEN_ENV_VARS = ("CLOUD_CONSOLE_ACCESS_TOKEN", "AZURE_ACCESS_TOKEN")
MASK = "***"

_MIN_TOKEN_LENGTH = 8

# Authorization header values, whichever token they carry
_BEARER_RE = re.compile(r"(Bearer\s+)[\w\-.~+/]+=*", re.IGNORECASE)

_registered: set[str] = set()
_token_res: list[re.Pattern] | None = None


def _known_tokens() -> set[str]:
    env_tokens = (os.environ.get(var, "") for var in TOKEN_ENV_VARS)
    return {t for t in (*env_tokens, *_registered) if len(t) >= _MIN_TOKEN_LENGTH}


def _token_patterns() -> list[re.Pattern]:
    global _token_res
    if _token_res is None:
        # longest first: a token containing another one is masked whole
        _token_res = [re.compile(re.escape(t)) for t in sorted(_known_tokens(), key=len, reverse=True)]
    return _token_res


def register_secret(value: str) -> None:
    """Mask *value* as well, e.g. a token given with --access-token."""
    global _token_res
    if value:
        _registered.add(value)
        _token_res = None


def redact_secrets(text: str) -> str:
    """Mask known tokens and any bearer credential in *text*."""
    for pattern in _token_patterns():
        text = pattern.sub(MASK, text)
    return _BEARER_RE.sub(lambda m: m.group(1) + MASK, text)


def _redact_arg(value):
    return redact_secrets(value) if isinstance(value, str) else value


class SecretRedactingFilter(logging.Filter):
    """Masks tokens in a record's message and in its %-style args."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = redact_secrets(str(record.msg))
        if isinstance(record.args, dict):
            record.args = {k: _redact_arg(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(_redact_arg(a) for a in record.args)
        return True
