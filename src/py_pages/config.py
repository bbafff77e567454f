"""Server configuration: base directory, address, and 404 page.

Configuration is read once at startup and never changes afterwards.
It comes from two places, in order of precedence:

1. **Explicit overrides** (command-line flags).
2. **Environment variables** prefixed ``PY_PAGES_``.

Anything not given falls back to the defaults below.  The resulting
``ServerConfig`` is frozen and passed explicitly to whatever needs it;
there is no module-level "current config".
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_BASE_DIR = "pages"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7878
DEFAULT_NOT_FOUND_PAGE = "error404.html"
DEFAULT_TIMEOUT = 10.0

ENV_BASE_DIR = "PY_PAGES_ROOT"
ENV_HOST = "PY_PAGES_HOST"
ENV_PORT = "PY_PAGES_PORT"
ENV_NOT_FOUND_PAGE = "PY_PAGES_NOT_FOUND_PAGE"
ENV_FOLLOW_SYMLINKS = "PY_PAGES_FOLLOW_SYMLINKS"
ENV_TIMEOUT = "PY_PAGES_TIMEOUT"

_MAX_PORT = 65535
_TRUTHY = frozenset({"1", "true", "yes", "on"})


class ConfigError(Exception):
    """Raise when the server configuration is invalid."""


def _parse_port(raw: str | int) -> int:
    """Convert *raw* to a port number in 0..65535."""
    try:
        port = int(raw)
    except ValueError as e:
        msg = f"Port must be an integer, got {raw!r}"
        raise ConfigError(msg) from e
    if not 0 <= port <= _MAX_PORT:
        msg = f"Port must be between 0 and {_MAX_PORT}, got {port}"
        raise ConfigError(msg)
    return port


def _parse_timeout(raw: str | float) -> float:
    """Convert *raw* to a positive number of seconds."""
    try:
        timeout = float(raw)
    except ValueError as e:
        msg = f"Timeout must be a number, got {raw!r}"
        raise ConfigError(msg) from e
    if not timeout > 0:
        msg = f"Timeout must be positive, got {timeout}"
        raise ConfigError(msg)
    return timeout


@dataclass(frozen=True)
class ServerConfig:
    """Read-only settings for one server process.

    Attributes:
        base_dir: Directory all served files live under (made absolute).
        host: Address to bind.
        port: Port to bind (0 picks a free one).
        not_found_page: File under ``base_dir`` used as the 404 body.
        follow_symlinks: Serve files reached through symbolic links.
        timeout: Per-connection socket timeout in seconds.

    """

    base_dir: Path = Path(DEFAULT_BASE_DIR)
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    not_found_page: str = DEFAULT_NOT_FOUND_PAGE
    follow_symlinks: bool = False
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        """Normalize the base directory and check the port and timeout."""
        # frozen dataclass: bypass __setattr__ for normalization
        object.__setattr__(self, "base_dir", Path(self.base_dir).expanduser().absolute())
        object.__setattr__(self, "port", _parse_port(self.port))
        object.__setattr__(self, "timeout", _parse_timeout(self.timeout))

    @property
    def address(self) -> tuple[str, int]:
        """Return the ``(host, port)`` pair to bind."""
        return (self.host, self.port)

    def validate(self) -> None:
        """Check that the base directory exists.

        Raises:
            ConfigError: If ``base_dir`` is not an existing directory.

        """
        if not self.base_dir.is_dir():
            msg = f"Base directory does not exist: {self.base_dir}"
            raise ConfigError(msg)

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        base_dir: str | Path | None = None,
        host: str | None = None,
        port: int | None = None,
        not_found_page: str | None = None,
        follow_symlinks: bool | None = None,
        timeout: float | None = None,
    ) -> "ServerConfig":
        """Build a config from environment variables plus overrides.

        Args:
            environ: Variables to read (defaults to ``os.environ``).
            base_dir: Overrides ``PY_PAGES_ROOT``.
            host: Overrides ``PY_PAGES_HOST``.
            port: Overrides ``PY_PAGES_PORT``.
            not_found_page: Overrides ``PY_PAGES_NOT_FOUND_PAGE``.
            follow_symlinks: Overrides ``PY_PAGES_FOLLOW_SYMLINKS``.
            timeout: Overrides ``PY_PAGES_TIMEOUT``.

        Returns:
            The merged configuration.

        Raises:
            ConfigError: If the port or timeout is invalid.

        """
        env = os.environ if environ is None else environ

        if base_dir is None:
            base_dir = env.get(ENV_BASE_DIR, DEFAULT_BASE_DIR)
        if host is None:
            host = env.get(ENV_HOST, DEFAULT_HOST)
        if port is None:
            port = _parse_port(env.get(ENV_PORT, str(DEFAULT_PORT)))
        if not_found_page is None:
            not_found_page = env.get(ENV_NOT_FOUND_PAGE, DEFAULT_NOT_FOUND_PAGE)
        if follow_symlinks is None:
            follow_symlinks = env.get(ENV_FOLLOW_SYMLINKS, "").strip().lower() in _TRUTHY
        if timeout is None:
            timeout = _parse_timeout(env.get(ENV_TIMEOUT, str(DEFAULT_TIMEOUT)))

        return cls(
            base_dir=Path(base_dir),
            host=host,
            port=port,
            not_found_page=not_found_page,
            follow_symlinks=follow_symlinks,
            timeout=timeout,
        )
