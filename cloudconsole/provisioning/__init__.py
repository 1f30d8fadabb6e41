"""Console provisioning: user settings lookup and the create/poll driver."""

from cloudconsole.provisioning.console import provision_console
from cloudconsole.provisioning.settings import get_user_settings

__all__ = [
    "get_user_settings",
    "provision_console",
]
