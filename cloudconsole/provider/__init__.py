"""Console provider REST surface: response/resource types and API calls."""

from cloudconsole.provider.types import (
    ApiResponse,
    ConsoleResource,
    ProvisioningState,
    TerminalSession,
    UserSettings,
    WindowGeometry,
)

__all__ = [
    "ApiResponse",
    "ConsoleResource",
    "ProvisioningState",
    "TerminalSession",
    "UserSettings",
    "WindowGeometry",
]
