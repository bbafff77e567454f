"""Access and error log for the page server.

The logger records one structured entry per notable event: a request
served, a request rejected, a connection that failed, the server
starting or stopping.

- **LogLevel**: severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry**: a single structured record (level, message, source, client).
- **Logger**: a bounded append-only buffer with filtering, plus an
  optional *sink* that receives each formatted line as it is logged.

The buffer keeps only the most recent ``max_entries`` records, so a
long-running server does not grow without bound.  The sink is how the
CLI gets lines onto stderr; tests usually leave it unset and inspect
``entries`` instead.
"""

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum

DEFAULT_MAX_ENTRIES = 1000


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The part of the server that logged it (e.g. "request").
        client: The peer address as ``host:port``, if there is one.

    """

    level: LogLevel
    message: str
    source: str
    client: str = ""

    def __str__(self) -> str:
        """Format as ``[LEVEL] source: message`` with the client, if known."""
        prefix = f"[{self.level.name}] {self.source}"
        if self.client:
            prefix = f"{prefix} {self.client}"
        return f"{prefix}: {self.message}"


class Logger:
    """Bounded append-only log buffer with filtering."""

    def __init__(
        self,
        *,
        sink: Callable[[str], None] | None = None,
        min_level: LogLevel = LogLevel.INFO,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ) -> None:
        """Create an empty logger.

        Args:
            sink: Called with each formatted entry at or above *min_level*.
            min_level: Threshold for the sink; the buffer keeps everything.
            max_entries: How many recent entries the buffer retains.

        """
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)
        self._sink = sink
        self._min_level = min_level

    @property
    def entries(self) -> list[LogEntry]:
        """Return retained log entries in chronological order."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        client: str = "",
    ) -> None:
        """Append a new entry and forward it to the sink if loud enough."""
        entry = LogEntry(level=level, message=message, source=source, client=client)
        self._entries.append(entry)
        if self._sink is not None and level >= self._min_level:
            self._sink(str(entry))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.

        Returns:
            A filtered list of log entries.

        """
        result = list(self._entries)
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        return result

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()
