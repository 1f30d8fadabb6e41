"""Shared data types for the console provider API."""

from dataclasses import dataclass, field
from typing import Any

CORRELATION_HEADER = "x-ms-routing-request-id"


class ProvisioningState:
    """Provider-reported console lifecycle stages.

    Any value other than Succeeded or Failed is treated as still pending.
    """

    CREATING = "Creating"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"

    TERMINAL = frozenset({SUCCEEDED, FAILED})


@dataclass(frozen=True)
class ApiResponse:
    """Result of one provider request: 2xx is success, anything else failure."""

    status: int
    headers: dict = field(default_factory=dict)
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status <= 299

    @property
    def error_message(self) -> str | None:
        """Structured ``{"error": {"message": ...}}`` message, if any."""
        if isinstance(self.body, dict):
            error = self.body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return error["message"]
        return None

    @property
    def correlation_id(self) -> str | None:
        for name, value in self.headers.items():
            if name.lower() == CORRELATION_HEADER:
                return value
        return None

    def describe(self) -> str:
        """Operator-facing summary of a failed response."""
        message = self.error_message
        if message:
            return f"{message} ({self.status})"
        return f"{self.status} {self.headers} {self.body}"


@dataclass(frozen=True)
class UserSettings:
    """The caller's cloud console preferences."""

    preferred_location: str | None
    preferred_os_type: str | None
    storage_profile: Any = None

    @classmethod
    def from_properties(cls, properties: dict) -> "UserSettings":
        return cls(
            preferred_location=properties.get("preferredLocation"),
            preferred_os_type=properties.get("preferredOsType"),
            storage_profile=properties.get("storageProfile"),
        )


@dataclass(frozen=True)
class ConsoleResource:
    """Snapshot of the console resource from one create/poll response."""

    provisioning_state: str | None
    uri: str | None
    correlation_id: str | None = None

    @classmethod
    def from_response(cls, response: ApiResponse) -> "ConsoleResource":
        body = response.body if isinstance(response.body, dict) else {}
        properties = body.get("properties") or {}
        return cls(
            provisioning_state=properties.get("provisioningState"),
            uri=properties.get("uri"),
            correlation_id=response.correlation_id,
        )

    @property
    def is_terminal(self) -> bool:
        return self.provisioning_state in ProvisioningState.TERMINAL


@dataclass(frozen=True)
class TerminalSession:
    """An interactive terminal negotiated on a ready console."""

    id: str
    socket_uri: str
    idle_timeout: float | None = None

    @classmethod
    def from_body(cls, body: dict) -> "TerminalSession | None":
        """Build a session from a terminal payload; None without a socketUri."""
        if not isinstance(body, dict) or not body.get("socketUri"):
            return None
        return cls(id=body.get("id", ""), socket_uri=body["socketUri"], idle_timeout=body.get("idleTimeout"))


@dataclass(frozen=True)
class WindowGeometry:
    """Local terminal size in character cells."""

    columns: int
    rows: int
