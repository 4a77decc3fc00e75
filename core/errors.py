"""Error taxonomy shared by the signer, the X API client and the tool dispatcher.

Every error carries a stable `type` tag in `to_dict()` so tool callers can tell
a bad argument apart from an upstream failure without parsing messages.
Messages never embed credential values.
"""
from __future__ import annotations

from typing import Any


class XMCPError(Exception):
    """Base class for all errors raised by this server."""

    error_type = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": self.message}


class ConfigurationError(XMCPError):
    """Missing or empty configuration (credentials, endpoints)."""

    error_type = "configuration_error"


class SigningError(ConfigurationError):
    """Raised by the OAuth signer when a credential is empty at signing time."""

    error_type = "signing_error"


class ValidationError(XMCPError):
    """A tool argument is missing, has the wrong type or is out of range."""

    error_type = "invalid_arguments"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.field is not None:
            data["field"] = self.field
        return data


class UnknownToolError(XMCPError):
    error_type = "unknown_tool"

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class TransportError(XMCPError):
    """Network failure, timeout, or a non-2xx response without a structured body."""

    error_type = "transport_error"

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None, timeout: bool = False):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.timeout = timeout

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        data["timeout"] = self.timeout
        if self.body:
            data["body"] = self.body
        return data


class ApiError(XMCPError):
    """Structured error envelope returned by the X API."""

    error_type = "api_error"

    def __init__(self, status_code: int, errors: list[Any]):
        self.status_code = status_code
        self.errors = list(errors)
        messages = [str(e) for e in self.errors] or ["Unknown API error"]
        super().__init__("; ".join(messages))

    @property
    def code(self) -> int | None:
        for err in self.errors:
            code = getattr(err, "code", None)
            if code is not None:
                return code
        return None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        data["code"] = self.code
        data["errors"] = [e.to_dict() if hasattr(e, "to_dict") else e for e in self.errors]
        return data
