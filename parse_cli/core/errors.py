"""Error types raised by the Parse client."""

from typing import Any


class ParseClientError(Exception):
    """Base error class for Parse client errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result: dict[str, Any] = {"error": self.message, "type": type(self).__name__}
        if self.details:
            result["details"] = self.details
        return result


class InvalidArgumentError(ParseClientError, ValueError):
    """A required argument was missing or empty. Raised before any request is made."""


class KeyNotFoundError(ParseClientError, KeyError):
    """Attribute lookup on a ParseObject for a key it does not hold."""

    def __init__(self, key: str):
        super().__init__(f"Key '{key}' not found", details={"key": key})
        self.key = key


class FormatError(ParseClientError, ValueError):
    """A stored date did not match the backend's ISO-8601 format."""


class TransportError(ParseClientError):
    """The HTTP round trip failed (connection, DNS, timeout).

    The underlying exception is chained as ``__cause__``.
    """


class DecodeError(ParseClientError):
    """The response body was not the JSON shape the operation expects."""


class BackendError(ParseClientError):
    """The backend answered with a non-success status."""

    def __init__(self, message: str, status: int, body: str = "", code: int | None = None):
        details: dict[str, Any] = {}
        if code is not None:
            details["code"] = code
        super().__init__(message, details)
        self.status = status
        self.body = body
        self.code = code

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        result = super().to_dict()
        result["status"] = self.status
        return result
