"""TCP server: accept a connection, answer one request, close.

This is the thin I/O shell around ``handler.handle_request_line``:

1. Read the request line (bounded, so a client cannot make the server
   buffer an endless line).
2. Read and discard header lines up to the blank line.  The server has
   no use for headers, but closing the socket with unread input would
   make some clients see a reset instead of the response.
3. Write the formatted response and close.

Connections are handled one at a time.  Errors on one connection are
logged and the server moves on to the next.
"""

import socketserver
import sys
from typing import BinaryIO

from py_pages.config import ServerConfig
from py_pages.errors import RejectReason
from py_pages.handler import error_response, handle_request_line, status_for
from py_pages.http import HttpResponse, format_response
from py_pages.logging import Logger, LogLevel

MAX_LINE_BYTES = 8192
MAX_HEADER_LINES = 100

_LINE_ENCODING = "utf-8"
_FALLBACK_ENCODING = "latin-1"


class RequestLineTooLongError(Exception):
    """Raise when the request line exceeds ``MAX_LINE_BYTES``."""


def read_request_line(rfile: BinaryIO) -> str | None:
    """Read the request line from *rfile*.

    The line is decoded as UTF-8, falling back to latin-1 for bytes that
    are not valid UTF-8.

    Returns:
        The decoded line with its terminator removed, or None if the
        client closed the connection without sending anything.

    Raises:
        RequestLineTooLongError: If no line terminator arrives within
            ``MAX_LINE_BYTES``.

    """
    raw = rfile.readline(MAX_LINE_BYTES + 1)
    if not raw:
        return None
    if len(raw) > MAX_LINE_BYTES:
        msg = f"Request line longer than {MAX_LINE_BYTES} bytes"
        raise RequestLineTooLongError(msg)
    try:
        line = raw.decode(_LINE_ENCODING)
    except UnicodeDecodeError:
        line = raw.decode(_FALLBACK_ENCODING)
    return line.rstrip("\r\n")


def drain_headers(rfile: BinaryIO) -> None:
    """Consume header lines up to and including the blank line."""
    for _ in range(MAX_HEADER_LINES):
        raw = rfile.readline(MAX_LINE_BYTES + 1)
        if raw in {b"", b"\r\n", b"\n"}:
            return


class PageRequestHandler(socketserver.StreamRequestHandler):
    """Handle exactly one request per connection."""

    server: "PageServer"

    def setup(self) -> None:
        """Apply the configured socket timeout before reading."""
        self.timeout = self.server.config.timeout
        super().setup()

    def handle(self) -> None:
        """Read the request line, answer it, and let the connection close."""
        config = self.server.config
        logger = self.server.logger
        host, port = self.client_address[:2]
        client = f"{host}:{port}"

        try:
            line = read_request_line(self.rfile)
        except RequestLineTooLongError as e:
            status = status_for(RejectReason.MALFORMED_REQUEST_LINE)
            logger.log(LogLevel.WARNING, f"{e} -> {int(status)}", source="request", client=client)
            try:
                # rest of the oversized line, then the headers
                drain_headers(self.rfile)
                self._send(error_response(status))
            except OSError as err:
                logger.log(LogLevel.ERROR, f"write failed: {err}", source="server", client=client)
            return
        except OSError as e:
            logger.log(LogLevel.ERROR, f"read failed: {e}", source="server", client=client)
            return

        if line is None:
            logger.log(LogLevel.DEBUG, "empty request", source="server", client=client)
            return

        try:
            drain_headers(self.rfile)
        except OSError as e:
            logger.log(LogLevel.ERROR, f"read failed: {e}", source="server", client=client)
            return

        response = handle_request_line(line, config, logger, client=client)
        try:
            self._send(response)
        except OSError as e:
            logger.log(LogLevel.ERROR, f"write failed: {e}", source="server", client=client)

    def _send(self, response: HttpResponse) -> None:
        self.wfile.write(format_response(response))
        self.wfile.flush()


class PageServer(socketserver.TCPServer):
    """Sequential TCP server bound to the configured address."""

    allow_reuse_address = True

    def __init__(
        self,
        config: ServerConfig,
        logger: Logger | None = None,
        *,
        bind_and_activate: bool = True,
    ) -> None:
        """Create the server for *config*; binds immediately by default."""
        self.config = config
        self.logger = logger if logger is not None else Logger()
        super().__init__(config.address, PageRequestHandler, bind_and_activate=bind_and_activate)

    def handle_error(self, request: object, client_address: object) -> None:
        """Log an unexpected handler failure instead of printing a traceback."""
        self.logger.log(
            LogLevel.ERROR,
            f"unhandled error for {client_address}: {sys.exception()!r}",
            source="server",
        )


def serve(config: ServerConfig, logger: Logger | None = None) -> None:
    """Validate *config*, bind, and serve until interrupted.

    Raises:
        ConfigError: If the base directory does not exist.
        OSError: If the address cannot be bound.

    """
    config.validate()
    log = logger if logger is not None else Logger()
    with PageServer(config, log) as server:
        host, port = server.server_address[:2]
        log.log(
            LogLevel.INFO,
            f"serving {config.base_dir} on http://{host}:{port}",
            source="server",
        )
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            log.log(LogLevel.INFO, "shutting down", source="server")
