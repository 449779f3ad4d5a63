"""Errors raised by the QStash client."""

from typing import Any


class QStashError(Exception):
    """Base error class for QStash client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for structured logging."""
        result: dict[str, Any] = {"error": self.message}
        if self.details:
            result["details"] = self.details
        return result


class ConfigurationError(QStashError):
    """Invalid client or call arguments (token, base URL, version, ids)."""


class TransportError(QStashError):
    """The request never produced an HTTP response."""


class DecodeError(QStashError):
    """The response body is not the JSON we expected."""


class ApplicationError(QStashError):
    """QStash rejected the request, or a single destination of it."""

    def __init__(self, message: str, status_code: int = 0, details: dict | None = None):
        super().__init__(message, details)
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.status_code:
            result["status"] = self.status_code
        return result
