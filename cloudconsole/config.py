"""Launcher configuration loading and validation."""

import logging
import os
import sys
from dataclasses import dataclass, fields, replace

import yaml

logger = logging.getLogger(__name__)

DEFAULT_ARM_ENDPOINT = "https://management.azure.com"
DEFAULT_API_VERSION = "2017-08-01-preview"
DEFAULT_CONFIG_PATH = "~/.config/cloudconsole/config.yaml"

ACCESS_TOKEN_ENV = "CLOUD_CONSOLE_ACCESS_TOKEN"

_ENV_OVERRIDES = {
    "CLOUD_CONSOLE_ARM_ENDPOINT": "arm_endpoint",
    "CLOUD_CONSOLE_API_VERSION": "api_version",
}


@dataclass(frozen=True)
class ConsoleConfig:
    """Settings that control how a console is requested and connected.

    provision_timeout: seconds to keep polling a pending console. None means
        poll until the provider reports a terminal state.
    init_attempts / init_backoff: terminal initialization retries; the wait
        after failed attempt k (0-based) is init_backoff * (k + 1) seconds.
    default_os_type / default_location: used when the user settings could not
        be fetched.
    """

    arm_endpoint: str = DEFAULT_ARM_ENDPOINT
    api_version: str = DEFAULT_API_VERSION
    provision_timeout: float | None = None
    init_attempts: int = 5
    init_backoff: float = 1.0
    default_os_type: str = "linux"
    default_location: str | None = None
    request_timeout: float = 60

    def __post_init__(self):
        if self.init_attempts < 1:
            raise ValueError(f"init_attempts must be at least 1, got {self.init_attempts}")
        if self.init_backoff < 0:
            raise ValueError(f"init_backoff must not be negative, got {self.init_backoff}")
        if self.provision_timeout is not None and self.provision_timeout <= 0:
            raise ValueError(f"provision_timeout must be positive, got {self.provision_timeout}")
        object.__setattr__(self, "arm_endpoint", self.arm_endpoint.rstrip("/"))


_NUMBER = (int, float)

# Expected YAML types per key; keys in _OPTIONAL_KEYS may also be null.
_KEY_TYPES = {
    "arm_endpoint": str,
    "api_version": str,
    "provision_timeout": _NUMBER,
    "init_attempts": int,
    "init_backoff": _NUMBER,
    "default_os_type": str,
    "default_location": str,
    "request_timeout": _NUMBER,
}
_OPTIONAL_KEYS = {"provision_timeout", "default_location"}


def _check_types(data: dict):
    for key, value in data.items():
        if value is None and key in _OPTIONAL_KEYS:
            continue
        expected = _KEY_TYPES[key]
        if isinstance(value, bool) or not isinstance(value, expected):
            wanted = "a number" if expected is _NUMBER else f"of type {expected.__name__}"
            raise ValueError(f"Config key '{key}' must be {wanted}, got {type(value).__name__} {value!r}")


def config_from_dict(data: dict) -> ConsoleConfig:
    """Build a ConsoleConfig from a parsed YAML mapping.

    Raises ValueError for unknown keys, wrongly typed values and values
    outside their allowed range.
    """
    if data is None:
        return ConsoleConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Config must be a mapping, got {type(data).__name__}")
    known = {f.name for f in fields(ConsoleConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")
    _check_types(data)
    return ConsoleConfig(**data)


def apply_env_overrides(config: ConsoleConfig, environ=None) -> ConsoleConfig:
    """Return *config* with values from CLOUD_CONSOLE_* env vars applied."""
    environ = os.environ if environ is None else environ
    overrides = {attr: environ[var] for var, attr in _ENV_OVERRIDES.items() if environ.get(var)}
    return replace(config, **overrides) if overrides else config


def load_config(config_path: str | None = None) -> ConsoleConfig:
    """Load configuration from a YAML file, then apply env overrides.

    Without an explicit path the default location is used if it exists.
    """
    explicit = config_path is not None
    path = _expand_path(config_path or DEFAULT_CONFIG_PATH)

    data = None
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        if explicit:
            logger.error(f"Error: Config file '{path}' not found.")
            sys.exit(1)
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML config: {e}")
        sys.exit(1)

    try:
        config = config_from_dict(data)
    except ValueError as e:
        logger.error(f"Error: invalid config '{path}': {e}")
        sys.exit(1)
    return apply_env_overrides(config)


def _expand_path(path: str) -> str:
    """Expand user home directory and environment variables in path."""
    return os.path.expanduser(os.path.expandvars(path))
