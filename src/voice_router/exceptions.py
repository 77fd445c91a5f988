"""Exceptions raised inside the router's components.

None of these ever reach the voice platform: each is caught by the
component or by the router's error boundary and turned into a result
string or an acknowledgement.
"""

from typing import Any, Dict, Optional


class RouterError(Exception):
    """Base exception for all webhook router errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "ROUTER_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(RouterError):
    """Raised when a required setting is missing."""

    def __init__(self, setting: str):
        super().__init__(
            message=f"{setting} not configured on server",
            error_code="CONFIGURATION_MISSING",
            details={"setting": setting},
        )


class InvalidToolArguments(RouterError):
    """Raised when a tool call's argument string is not a JSON object."""

    def __init__(self, raw: str):
        super().__init__(
            message="Tool arguments are not a JSON object",
            error_code="INVALID_ARGUMENTS",
            details={"raw": raw},
        )
        self.raw = raw


class SearchInvocationError(RouterError):
    """Raised when the remote search function fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            message=message,
            error_code="SEARCH_FAILED",
            details={"status_code": status_code},
        )
        self.status_code = status_code
