"""Tests for the TCP server.

The line-reading helpers are tested against in-memory streams; the
server itself is started on a free port in a background thread and
talked to over a real socket.
"""

import io
import socket
import threading
from collections.abc import Iterator
from pathlib import Path

import pytest

from py_pages.config import ConfigError, ServerConfig
from py_pages.logging import Logger, LogLevel
from py_pages.server import (
    MAX_LINE_BYTES,
    PageServer,
    RequestLineTooLongError,
    drain_headers,
    read_request_line,
    serve,
)

INDEX_BODY = b"<h1>hello</h1>"
CAFE_BODY = b"<h1>caf\xc3\xa9</h1>"
SOCKET_TIMEOUT = 5.0


class TestReadRequestLine:
    """Verify bounded line reading."""

    def test_crlf(self) -> None:
        """The CRLF terminator is removed."""
        assert read_request_line(io.BytesIO(b"GET / HTTP/1.1\r\nHost: x\r\n")) == "GET / HTTP/1.1"

    def test_eof(self) -> None:
        """An empty stream yields None."""
        assert read_request_line(io.BytesIO(b"")) is None

    def test_too_long(self) -> None:
        """A line without a terminator inside the limit is refused."""
        with pytest.raises(RequestLineTooLongError):
            read_request_line(io.BytesIO(b"G" * (MAX_LINE_BYTES + 10)))

    def test_utf8(self) -> None:
        """UTF-8 bytes decode to the characters they encode."""
        line = read_request_line(io.BytesIO("GET /café.html HTTP/1.1\r\n".encode()))
        assert line == "GET /café.html HTTP/1.1"

    def test_latin1_fallback(self) -> None:
        """Bytes that are not valid UTF-8 fall back to latin-1."""
        line = read_request_line(io.BytesIO(b"GET /caf\xe9 HTTP/1.1\r\n"))
        assert line == "GET /caf\xe9 HTTP/1.1"


class TestDrainHeaders:
    """Verify header consumption."""

    def test_stops_at_blank_line(self) -> None:
        """Reading stops right after the blank line."""
        stream = io.BytesIO(b"Host: x\r\nAccept: */*\r\n\r\nBODY")
        drain_headers(stream)
        assert stream.read() == b"BODY"

    def test_stops_at_eof(self) -> None:
        """A stream that ends without a blank line is fine."""
        stream = io.BytesIO(b"Host: x\r\n")
        drain_headers(stream)
        assert stream.read() == b""


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A base directory holding index.html and two non-ASCII pages."""
    (tmp_path / "index.html").write_bytes(INDEX_BODY)
    (tmp_path / "café.html").write_bytes(CAFE_BODY)
    (tmp_path / "à.html").write_bytes(CAFE_BODY)
    return tmp_path


@pytest.fixture
def running(site: Path) -> Iterator[tuple[PageServer, Logger]]:
    """Run a PageServer on a free port for the duration of a test."""
    logger = Logger()
    server = PageServer(ServerConfig(base_dir=site, port=0), logger)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server, logger
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=SOCKET_TIMEOUT)


def _exchange(server: PageServer, payload: bytes) -> bytes:
    """Send *payload* and read until the server closes the connection."""
    host, port = server.server_address[:2]
    with socket.create_connection((host, port), timeout=SOCKET_TIMEOUT) as conn:
        conn.sendall(payload)
        conn.shutdown(socket.SHUT_WR)
        chunks: list[bytes] = []
        while chunk := conn.recv(4096):
            chunks.append(chunk)
    return b"".join(chunks)


class TestPageServer:
    """Verify request handling over a real socket."""

    def test_serves_index(self, running: tuple[PageServer, Logger]) -> None:
        """GET / returns 200 with the index page."""
        server, _ = running
        data = _exchange(server, b"GET / HTTP/1.1\r\nHost: localhost\r\n\r\n")
        assert data.startswith(b"HTTP/1.1 200 OK\r\n")
        assert data.endswith(b"\r\n\r\n" + INDEX_BODY)
        assert f"Content-Length: {len(INDEX_BODY)}\r\n".encode() in data

    def test_not_found(self, running: tuple[PageServer, Logger]) -> None:
        """A missing page returns 404."""
        server, _ = running
        data = _exchange(server, b"GET /nope.html HTTP/1.1\r\n\r\n")
        assert data.startswith(b"HTTP/1.1 404 Not Found\r\n")

    def test_traversal(self, running: tuple[PageServer, Logger]) -> None:
        """A traversal attempt returns 404 and is logged as a warning."""
        server, logger = running
        data = _exchange(server, b"GET /../../etc/passwd HTTP/1.1\r\n\r\n")
        assert data.startswith(b"HTTP/1.1 404 Not Found\r\n")
        warnings = logger.filter(min_level=LogLevel.WARNING, source="request")
        assert any("traversal attempt" in e.message for e in warnings)

    def test_bad_request(self, running: tuple[PageServer, Logger]) -> None:
        """A malformed line returns 400."""
        server, _ = running
        data = _exchange(server, b"HELLO\r\n\r\n")
        assert data.startswith(b"HTTP/1.1 400 Bad Request\r\n")

    def test_lf_only_request(self, running: tuple[PageServer, Logger]) -> None:
        """Bare LF line endings are accepted."""
        server, _ = running
        data = _exchange(server, b"GET /index.html HTTP/1.1\n\n")
        assert data.startswith(b"HTTP/1.1 200 OK\r\n")

    def test_raw_utf8_target(self, running: tuple[PageServer, Logger]) -> None:
        """A raw UTF-8 path is served from the file of that name."""
        server, _ = running
        data = _exchange(server, "GET /café.html HTTP/1.1\r\n\r\n".encode())
        assert data.startswith(b"HTTP/1.1 200 OK\r\n")
        assert data.endswith(CAFE_BODY)

    def test_raw_utf8_with_space_like_byte(self, running: tuple[PageServer, Logger]) -> None:
        """A character whose encoding contains 0xA0 is not split apart."""
        server, _ = running
        data = _exchange(server, "GET /à.html HTTP/1.1\r\n\r\n".encode())
        assert data.startswith(b"HTTP/1.1 200 OK\r\n")

    def test_percent_encoded_utf8_target(self, running: tuple[PageServer, Logger]) -> None:
        """The percent-encoded form reaches the same file."""
        server, _ = running
        data = _exchange(server, b"GET /caf%C3%A9.html HTTP/1.1\r\n\r\n")
        assert data.startswith(b"HTTP/1.1 200 OK\r\n")

    def test_too_long_line(self, running: tuple[PageServer, Logger]) -> None:
        """An over-long request line gets 400 and a warning entry."""
        server, logger = running
        data = _exchange(server, b"GET /" + b"a" * MAX_LINE_BYTES + b" HTTP/1.1\r\n\r\n")
        assert data.startswith(b"HTTP/1.1 400 Bad Request\r\n")
        warnings = logger.filter(min_level=LogLevel.WARNING, source="request")
        assert any("longer than" in e.message for e in warnings)

    def test_too_long_line_without_terminator(self, running: tuple[PageServer, Logger]) -> None:
        """A line that never ends still gets 400 once the client stops sending."""
        server, _ = running
        data = _exchange(server, b"GET /" + b"a" * MAX_LINE_BYTES)
        assert data.startswith(b"HTTP/1.1 400 Bad Request\r\n")

    def test_empty_connection_then_next(self, running: tuple[PageServer, Logger]) -> None:
        """A client that sends nothing does not stop the server."""
        server, _ = running
        assert _exchange(server, b"") == b""
        data = _exchange(server, b"GET / HTTP/1.1\r\n\r\n")
        assert data.startswith(b"HTTP/1.1 200 OK\r\n")


class TestServe:
    """Verify startup checks."""

    def test_missing_base_dir(self, tmp_path: Path) -> None:
        """serve refuses to start without a base directory."""
        with pytest.raises(ConfigError):
            serve(ServerConfig(base_dir=tmp_path / "missing", port=0))
