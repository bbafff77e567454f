"""Flask application factory for the py-pages web frontend.

``create_app`` returns a Flask app with no routes of its own: a single
``before_request`` hook answers every request before URL routing gets a
say, so Flask never redirects, merges slashes, or answers 405 on its
own.
"""

from __future__ import annotations

from urllib.parse import quote

from flask import Flask, Response, request

from py_pages.config import ServerConfig
from py_pages.handler import handle_request_line
from py_pages.logging import Logger

# Hop-by-hop headers belong to the WSGI server, not the application.
_HOP_BY_HOP = frozenset({"connection"})


def request_line_from_environ() -> str:
    """Rebuild the request line for the current Flask request.

    The path is re-quoted because Werkzeug has already percent-decoded
    it; quoting again means the sanitizer decodes it exactly once.
    """
    target = quote(request.path, safe="/")
    if request.query_string:
        target = f"{target}?{request.query_string.decode('latin-1')}"
    protocol = request.environ.get("SERVER_PROTOCOL", "HTTP/1.1")
    return f"{request.method} {target} {protocol}"


def create_app(config: ServerConfig | None = None, logger: Logger | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Server settings; read from the environment when omitted.
        logger: Request log; a fresh one is created when omitted.

    Returns:
        A configured Flask application ready to serve.

    """
    settings = config if config is not None else ServerConfig.from_environ()
    log = logger if logger is not None else Logger()

    app = Flask(__name__)
    app.config["PY_PAGES"] = settings
    app.config["PY_PAGES_LOGGER"] = log

    @app.before_request
    def serve_page() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Answer the request through the page-serving pipeline."""
        client = request.remote_addr or ""
        page = handle_request_line(request_line_from_environ(), settings, log, client=client)
        headers = {
            name: value for name, value in page.headers.items() if name.lower() not in _HOP_BY_HOP
        }
        return Response(page.body, status=int(page.status), headers=headers)

    return app


def main() -> None:
    """Run the web frontend on the Flask development server.

    This is the ``py-pages-web`` console entry point.
    """
    config = ServerConfig.from_environ()
    config.validate()
    app = create_app(config)
    app.run(host=config.host, port=config.port)
