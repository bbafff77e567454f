"""Command-line entry point: ``py-pages``.

Flags override ``PY_PAGES_*`` environment variables, which override the
built-in defaults (see ``config``).  Log lines go to stderr.
"""

import argparse
import sys
from collections.abc import Mapping, Sequence

from py_pages.config import ConfigError, ServerConfig
from py_pages.logging import Logger, LogLevel
from py_pages.server import serve

EXIT_OK = 0
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for ``py-pages``."""
    parser = argparse.ArgumentParser(
        prog="py-pages",
        description="Serve static HTML pages from a directory over HTTP/1.1.",
    )
    parser.add_argument("--root", help="Directory to serve (env PY_PAGES_ROOT, default ./pages)")
    parser.add_argument("--host", help="Address to bind (env PY_PAGES_HOST, default 127.0.0.1)")
    parser.add_argument(
        "--port", type=int, help="Port to listen on (env PY_PAGES_PORT, default 7878)"
    )
    parser.add_argument(
        "--not-found-page",
        help="File under the root used as the 404 body (default error404.html)",
    )
    parser.add_argument(
        "--follow-symlinks",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Serve files reached through symbolic links (env PY_PAGES_FOLLOW_SYMLINKS)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Per-connection socket timeout in seconds (env PY_PAGES_TIMEOUT, default 10)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Also log debug messages")
    return parser


def _stderr_sink(line: str) -> None:
    print(line, file=sys.stderr, flush=True)


def config_from_args(
    args: argparse.Namespace, environ: Mapping[str, str] | None = None
) -> ServerConfig:
    """Merge parsed flags with the environment into a ServerConfig."""
    return ServerConfig.from_environ(
        environ,
        base_dir=args.root,
        host=args.host,
        port=args.port,
        not_found_page=args.not_found_page,
        follow_symlinks=args.follow_symlinks,
        timeout=args.timeout,
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments and run the server until interrupted.

    Returns:
        ``EXIT_OK`` after a clean shutdown, ``EXIT_USAGE`` for bad
        configuration.

    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logger = Logger(
        sink=_stderr_sink,
        min_level=LogLevel.DEBUG if args.verbose else LogLevel.INFO,
    )

    try:
        config = config_from_args(args)
        serve(config, logger)
    except ConfigError as e:
        print(f"py-pages: {e}", file=sys.stderr)
        return EXIT_USAGE
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
