r"""HTTP/1.1 responses: status codes, wire format, content types.

The server only ever *writes* responses; requests are read one line at
a time by ``request.parse_request_line``.  A response on the wire::

    HTTP/1.1 200 OK\r\n
    Content-Type: text/html; charset=utf-8\r\n
    Content-Length: 42\r\n
    \r\n
    <body>

Everything here is a pure function of its inputs, so the formatting is
testable without a socket.
"""

import mimetypes
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import PurePath

HTTP_VERSION = "HTTP/1.1"
DEFAULT_CONTENT_TYPE = "application/octet-stream"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"


class HttpStatus(IntEnum):
    """The status codes this server can send.

    - 200 OK: here is the file.
    - 400 Bad Request: the request line was malformed.
    - 404 Not Found: nothing servable at that path.
    - 405 Method Not Allowed: only GET is supported.
    - 500 Internal Server Error: the file could not be read.
    - 505 HTTP Version Not Supported: only HTTP/1.1 is supported.
    """

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    INTERNAL_SERVER_ERROR = 500
    HTTP_VERSION_NOT_SUPPORTED = 505


_REASON_PHRASES: dict[HttpStatus, str] = {
    HttpStatus.OK: "OK",
    HttpStatus.BAD_REQUEST: "Bad Request",
    HttpStatus.NOT_FOUND: "Not Found",
    HttpStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HttpStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HttpStatus.HTTP_VERSION_NOT_SUPPORTED: "HTTP Version Not Supported",
}


def status_reason(status: HttpStatus) -> str:
    """Return the standard reason phrase for a status code."""
    return _REASON_PHRASES[status]


def _empty_headers() -> dict[str, str]:
    """Return an empty headers dict (typed factory for dataclass fields)."""
    return {}


@dataclass(frozen=True)
class HttpResponse:
    """An HTTP response ready to be written to a client.

    Attributes:
        status: Status code (200, 404, etc.).
        headers: Key-value metadata pairs.
        body: Payload bytes (default empty).

    """

    status: HttpStatus
    headers: dict[str, str] = field(default_factory=_empty_headers)
    body: bytes = b""


_CRLF = b"\r\n"


def format_response(response: HttpResponse) -> bytes:
    """Serialize an HttpResponse to wire-format bytes.

    ``Content-Length`` is always computed from the body, overriding any
    value in ``response.headers``.
    """
    parts: list[bytes] = []

    reason = status_reason(response.status)
    parts.append(f"{HTTP_VERSION} {response.status} {reason}".encode())
    parts.append(_CRLF)

    headers = dict(response.headers)
    headers["Content-Length"] = str(len(response.body))

    for name, value in headers.items():
        parts.append(f"{name}: {value}".encode("latin-1"))
        parts.append(_CRLF)

    # Blank line separates headers from body
    parts.append(_CRLF)

    if response.body:
        parts.append(response.body)

    return b"".join(parts)


def content_type_for(path: PurePath) -> str:
    """Guess the Content-Type header value for *path* from its suffix.

    Text types get an explicit UTF-8 charset; unknown suffixes fall back
    to ``application/octet-stream``.
    """
    guessed, _ = mimetypes.guess_type(path.name)
    if guessed is None:
        return DEFAULT_CONTENT_TYPE
    if guessed.startswith("text/"):
        return f"{guessed}; charset=utf-8"
    return guessed


def error_page(status: HttpStatus) -> bytes:
    """Return a tiny built-in HTML page for an error status."""
    title = f"{int(status)} {status_reason(status)}"
    return f"<html><body><h1>{title}</h1></body></html>\n".encode()
