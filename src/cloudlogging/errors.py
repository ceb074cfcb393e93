"""Errors raised while building queries and normalizing log entries."""

from __future__ import annotations


class CloudLoggingError(Exception):
    """Base class for every error raised by this package."""


class UnknownPayloadError(CloudLoggingError):
    """A log entry carries no payload, so there is no message to extract."""

    def __init__(self, payload: object) -> None:
        self.payload = payload
        super().__init__(f"unknown payload type {type(payload).__name__}")


class DecodeFailure(CloudLoggingError):
    """An opaque typed payload could not be decoded.

    Never surfaced to callers of the message/label functions: it only travels
    between the decoder registry and the code that falls back to raw text.
    """

    def __init__(self, type_url: str, reason: str) -> None:
        self.type_url = type_url
        self.reason = reason
        super().__init__(f"cannot decode {type_url!r}: {reason}")


class StreamError(CloudLoggingError):
    """Pagination stopped early because pulling or parsing a record failed."""

    def __init__(self, cause: BaseException, *, yielded: int) -> None:
        self.cause = cause
        self.yielded = yielded
        super().__init__(f"log entry stream stopped after {yielded} entries: {cause}")


class QueryScopeError(CloudLoggingError, ValueError):
    """A logical query is malformed and must not be sent to the provider."""
