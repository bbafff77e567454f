r"""Request-line parsing: the first gate every request passes.

An HTTP/1.1 request starts with a single line::

    GET /index.html HTTP/1.1\r\n

Three whitespace-separated tokens: the **method**, the **target**, and
the **version**.  This server only speaks one dialect, so anything other
than ``GET`` and ``HTTP/1.1`` is turned away here, before the target is
even looked at.

The parser is deliberately dumb about the target: query strings and
percent-escapes are left untouched for the sanitizer (see ``paths``).
"""

import re
from dataclasses import dataclass

from py_pages.errors import ParseError, RejectReason

SUPPORTED_METHOD = "GET"
SUPPORTED_VERSION = "HTTP/1.1"

_REQUEST_LINE_PARTS = 3

# ASCII whitespace only; Unicode spaces such as \xa0 belong to the target.
_ASCII_WHITESPACE = " \t\n\x0c\r"
_TOKEN_SEPARATOR = re.compile(f"[{_ASCII_WHITESPACE}]+")


@dataclass(frozen=True)
class RequestLine:
    """A validated request line.

    Attributes:
        method: Always ``GET``.
        target: The raw request target (path plus optional query/fragment).
        version: Always ``HTTP/1.1``.

    """

    method: str
    target: str
    version: str

    def __str__(self) -> str:
        """Format as ``METHOD TARGET VERSION``."""
        return f"{self.method} {self.target} {self.version}"


def parse_request_line(raw_line: str) -> RequestLine:
    """Parse one line of text into a RequestLine.

    Surrounding whitespace is stripped and the line is split on runs of
    ASCII whitespace only.  Checks run in order: token count, then
    method, then version.

    Args:
        raw_line: The first line of an HTTP request.

    Returns:
        The validated request line.

    Raises:
        ParseError: If the line does not have exactly three tokens, or
            the method is not ``GET``, or the version is not ``HTTP/1.1``.

    """
    stripped = raw_line.strip(_ASCII_WHITESPACE)
    parts = _TOKEN_SEPARATOR.split(stripped) if stripped else []
    if len(parts) != _REQUEST_LINE_PARTS:
        msg = f"Expected 3 tokens in request line, got {len(parts)}"
        raise ParseError(RejectReason.MALFORMED_REQUEST_LINE, msg)

    method, target, version = parts
    if method != SUPPORTED_METHOD:
        msg = f"Unsupported method: {method}"
        raise ParseError(RejectReason.UNSUPPORTED_METHOD, msg)
    if version != SUPPORTED_VERSION:
        msg = f"Unsupported version: {version}"
        raise ParseError(RejectReason.UNSUPPORTED_VERSION, msg)

    return RequestLine(method=method, target=target, version=version)
