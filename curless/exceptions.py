"""Exceptions raised by curless.

Every error is raised from the call that detects it and is terminal for that
call. Nothing is retried.
"""

from __future__ import annotations


class CurlessError(Exception):
    """Base class for curless errors."""


class ConfigurationError(CurlessError):
    """Raised when a request is executed without the settings it needs."""


class UnsupportedContentTypeError(CurlessError):
    """Raised when a body is set but Content-Type is missing or unrecognized."""

    def __init__(self, content_type: str | None) -> None:
        self.content_type = content_type
        if content_type is None:
            message = "Content-Type header must be set when sending a request body"
        else:
            message = f"Unsupported Content-Type: {content_type}"
        super().__init__(message)


class EncodingError(CurlessError):
    """Raised when the request body cannot be serialized."""


class AttachmentNotFoundError(CurlessError, FileNotFoundError):
    """Raised when a multipart file field points at a missing path."""

    def __init__(self, field: str, path: str) -> None:
        self.field = field
        self.path = path
        super().__init__(
            f"multipart/form-data error: file not found for field '{field}': {path}"
        )


class TransportError(CurlessError):
    """Raised when the exchange itself fails (connection, TLS, timeout)."""


class JsonDecodeError(CurlessError, ValueError):
    """Raised by ResponseView.json() when the body is not valid JSON."""

    def __init__(self, reason: str, status: int, preview: str) -> None:
        self.reason = reason
        self.status = status
        self.preview = preview
        super().__init__(f"JSON decode error: {reason} Status: {status} {preview}")
