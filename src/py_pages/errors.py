"""Rejection reasons: why a request never reaches the filesystem.

Every request passes through two gates before the server looks at a
single file:

    1. **Parser**: is the request line shaped like ``GET /path HTTP/1.1``?
    2. **Sanitizer**: is the target a safe, traversal-free path?

A request that fails either gate is *rejected*.  The rejection carries a
``RejectReason`` so the boundary layer (the server or the web frontend)
can pick the right HTTP status without string-matching messages.

The set of reasons is closed: callers are expected to handle every
member explicitly.
"""

from enum import StrEnum


class RejectReason(StrEnum):
    """The closed set of reasons a request can be rejected."""

    MALFORMED_REQUEST_LINE = "malformed request line"
    UNSUPPORTED_METHOD = "unsupported method"
    UNSUPPORTED_VERSION = "unsupported version"
    TRAVERSAL_ATTEMPT = "traversal attempt"
    INVALID_SEGMENT = "invalid segment"


class RequestRejected(Exception):
    """Raise when a request fails parsing or sanitization."""

    def __init__(self, reason: RejectReason, message: str) -> None:
        """Create a rejection with its reason and a human-readable message."""
        super().__init__(message)
        self.reason = reason


class ParseError(RequestRejected):
    """Raise when the request line is malformed or unsupported."""


class SanitizeError(RequestRejected):
    """Raise when the request target is not a safe relative path."""
