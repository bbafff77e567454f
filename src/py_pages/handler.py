"""Request handling: from a raw request line to a complete response.

This module wires the pure pipeline together and adds the two pieces of
I/O it needs: a filesystem check on the resolved path, and reading the
file that ends up being served.

    raw line → parse → sanitize → resolve → inspect → select → response

Rejections from the parser or sanitizer are mapped to a status here, in
one place, so the TCP server and the web frontend answer identically.
"""

from pathlib import Path

from py_pages.config import ServerConfig
from py_pages.errors import RejectReason, RequestRejected
from py_pages.http import (
    HTML_CONTENT_TYPE,
    HttpResponse,
    HttpStatus,
    content_type_for,
    error_page,
)
from py_pages.logging import Logger, LogLevel
from py_pages.paths import resolve, sanitize
from py_pages.request import SUPPORTED_METHOD, parse_request_line
from py_pages.selector import NotFound, ResponseDecision, Serve, select

_REJECT_STATUS: dict[RejectReason, HttpStatus] = {
    RejectReason.MALFORMED_REQUEST_LINE: HttpStatus.BAD_REQUEST,
    RejectReason.UNSUPPORTED_METHOD: HttpStatus.METHOD_NOT_ALLOWED,
    RejectReason.UNSUPPORTED_VERSION: HttpStatus.HTTP_VERSION_NOT_SUPPORTED,
    RejectReason.TRAVERSAL_ATTEMPT: HttpStatus.NOT_FOUND,
    RejectReason.INVALID_SEGMENT: HttpStatus.NOT_FOUND,
}


def status_for(reason: RejectReason) -> HttpStatus:
    """Return the HTTP status a rejection is answered with."""
    return _REJECT_STATUS[reason]


def inspect_path(base: Path, resolved: Path, *, follow_symlinks: bool) -> tuple[bool, bool]:
    """Check *resolved* on disk and return ``(exists, is_file)``.

    Unless *follow_symlinks* is set, a symbolic link anywhere between
    *base* and *resolved* makes the path count as missing, so a link
    inside the base directory cannot expose files outside it.
    """
    if not follow_symlinks:
        current = base
        for part in resolved.relative_to(base).parts:
            current = current / part
            if current.is_symlink():
                return (False, False)
    return (resolved.exists(), resolved.is_file())


def decide(raw_line: str, config: ServerConfig) -> ResponseDecision:
    """Run the full pipeline for one request line.

    Raises:
        RequestRejected: If the line fails parsing or its target fails
            sanitization.  The filesystem is not touched in that case.

    """
    request = parse_request_line(raw_line)
    resolved = resolve(config.base_dir, sanitize(request.target))
    exists, is_file = inspect_path(
        config.base_dir, resolved, follow_symlinks=config.follow_symlinks
    )
    return select(resolved, exists=exists, is_file=is_file)


def error_response(status: HttpStatus) -> HttpResponse:
    """Build a response with the built-in page for *status*."""
    headers = {"Content-Type": HTML_CONTENT_TYPE, "Connection": "close"}
    if status is HttpStatus.METHOD_NOT_ALLOWED:
        headers["Allow"] = SUPPORTED_METHOD
    return HttpResponse(status=status, headers=headers, body=error_page(status))


def not_found_response(config: ServerConfig) -> HttpResponse:
    """Build the 404 response, using the configured 404 page if it exists.

    The page obeys the same symlink policy as any served file; when it
    does not pass, the built-in page is used instead.
    """
    page = config.base_dir / config.not_found_page
    _, is_file = inspect_path(config.base_dir, page, follow_symlinks=config.follow_symlinks)
    if not is_file:
        return error_response(HttpStatus.NOT_FOUND)
    try:
        body = page.read_bytes()
    except OSError:
        return error_response(HttpStatus.NOT_FOUND)
    return HttpResponse(
        status=HttpStatus.NOT_FOUND,
        headers={"Content-Type": content_type_for(page), "Connection": "close"},
        body=body,
    )


def handle_request_line(
    raw_line: str,
    config: ServerConfig,
    logger: Logger | None = None,
    *,
    client: str = "",
) -> HttpResponse:
    """Turn one request line into the response to send back.

    Args:
        raw_line: The request line as read from the client.
        config: Server settings (base directory, 404 page, symlink policy).
        logger: Where to record the outcome, if anywhere.
        client: Peer address for log entries.

    Returns:
        A complete response: 200 with the file, 404, or the status
        mapped from the rejection reason.

    """
    line = raw_line.rstrip("\r\n")

    def _log(level: LogLevel, message: str) -> None:
        if logger is not None:
            logger.log(level, message, source="request", client=client)

    try:
        decision = decide(line, config)
    except RequestRejected as e:
        status = status_for(e.reason)
        _log(LogLevel.WARNING, f"{line!r} -> {int(status)} ({e.reason}: {e})")
        if status is HttpStatus.NOT_FOUND:
            return not_found_response(config)
        return error_response(status)

    match decision:
        case Serve(path=path):
            try:
                body = path.read_bytes()
            except OSError as e:
                _log(LogLevel.ERROR, f"{line!r} -> 500 (cannot read {path}: {e})")
                return error_response(HttpStatus.INTERNAL_SERVER_ERROR)
            _log(LogLevel.INFO, f"{line!r} -> 200")
            return HttpResponse(
                status=HttpStatus.OK,
                headers={"Content-Type": content_type_for(path), "Connection": "close"},
                body=body,
            )
        case NotFound():
            _log(LogLevel.INFO, f"{line!r} -> 404")
            return not_found_response(config)
