"""Tests for the access and error log."""

from py_pages.logging import LogEntry, Logger, LogLevel

SMALL_BUFFER = 3


class TestLogLevel:
    """Verify log level ordering."""

    def test_levels_are_ordered(self) -> None:
        """DEBUG < INFO < WARNING < ERROR."""
        assert LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.WARNING
        assert LogLevel.WARNING < LogLevel.ERROR


class TestLogEntry:
    """Verify log entry formatting."""

    def test_str_without_client(self) -> None:
        """Entries without a client format as [LEVEL] source: message."""
        entry = LogEntry(level=LogLevel.INFO, message="started", source="server")
        assert str(entry) == "[INFO] server: started"

    def test_str_with_client(self) -> None:
        """The client address follows the source."""
        entry = LogEntry(
            level=LogLevel.WARNING, message="bad", source="request", client="127.0.0.1:5000"
        )
        assert str(entry) == "[WARNING] request 127.0.0.1:5000: bad"


class TestLogger:
    """Verify buffering, filtering and the sink."""

    def test_log_appends(self) -> None:
        """Entries are kept in order."""
        logger = Logger()
        logger.log(LogLevel.INFO, "one", source="server")
        logger.log(LogLevel.ERROR, "two", source="request")
        assert [e.message for e in logger.entries] == ["one", "two"]

    def test_filter_by_level_and_source(self) -> None:
        """filter narrows by minimum level and by source."""
        logger = Logger()
        logger.log(LogLevel.DEBUG, "a", source="server")
        logger.log(LogLevel.WARNING, "b", source="request")
        logger.log(LogLevel.ERROR, "c", source="server")
        assert [e.message for e in logger.filter(min_level=LogLevel.WARNING)] == ["b", "c"]
        assert [e.message for e in logger.filter(source="server")] == ["a", "c"]
        assert [
            e.message for e in logger.filter(min_level=LogLevel.ERROR, source="request")
        ] == []

    def test_buffer_is_bounded(self) -> None:
        """Only the most recent max_entries records are kept."""
        logger = Logger(max_entries=SMALL_BUFFER)
        for i in range(5):
            logger.log(LogLevel.INFO, str(i), source="server")
        assert [e.message for e in logger.entries] == ["2", "3", "4"]

    def test_sink_respects_min_level(self) -> None:
        """The sink sees only entries at or above min_level."""
        lines: list[str] = []
        logger = Logger(sink=lines.append, min_level=LogLevel.WARNING)
        logger.log(LogLevel.INFO, "quiet", source="server")
        logger.log(LogLevel.ERROR, "loud", source="server")
        assert lines == ["[ERROR] server: loud"]
        assert len(logger.entries) == 2  # noqa: PLR2004

    def test_clear(self) -> None:
        """clear empties the buffer."""
        logger = Logger()
        logger.log(LogLevel.INFO, "x", source="server")
        logger.clear()
        assert logger.entries == []

    def test_entries_is_a_copy(self) -> None:
        """Mutating the returned list does not affect the logger."""
        logger = Logger()
        logger.log(LogLevel.INFO, "x", source="server")
        logger.entries.clear()
        assert len(logger.entries) == 1
