"""Exceptions raised by tool handlers.

The tool executor converts any of these into a `{"success": False, "error", "details"}`
payload for the model; they never reach the HTTP layer.
"""

from __future__ import annotations

from typing import Any


class ToolError(Exception):
    """Base class for predictable tool failures."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class UnknownServiceError(ToolError):
    """Raised when a service name does not exist in the store."""

    def __init__(self, service_name: str):
        super().__init__(
            f"Service '{service_name}' not found",
            details={"serviceName": service_name},
        )
        self.service_name = service_name


class HotelSettingsNotFoundError(ToolError):
    """Raised when the company settings row has not been configured."""

    def __init__(self, details: str = "Company settings have not been configured yet"):
        super().__init__("No hotel settings found", details=details)


class UpstreamError(ToolError):
    """Raised when an external API (weather) fails."""
