"""Loggers and the appenders that write their output."""

from __future__ import annotations

import inspect
import sys
import time
from abc import ABC, abstractmethod
from typing import IO, Iterable

from .formatter import DEFAULT_PATTERN, LogEvent, LogFormatter, LogLevel
from .util import get_fiber_id, get_thread_id


def _report_error(message: str) -> None:
    """Send an internal error to the process-wide root logger."""
    from .manager import root_logger

    log_message(root_logger(), LogLevel.ERROR, message)


class LogAppender(ABC):
    """A destination for formatted log events, with its own level threshold."""

    def __init__(self, level: LogLevel = LogLevel.DEBUG) -> None:
        self.level = LogLevel(level)
        self.formatter: LogFormatter | None = None
        self.has_custom_formatter = False

    @abstractmethod
    def log(self, level: LogLevel, event: LogEvent, logger: "Logger") -> None:
        """Write ``event`` if ``level`` passes this appender's threshold."""

    @property
    @abstractmethod
    def appender_type(self) -> str:
        """Short name of the appender kind, as used in configuration."""

    def _render(self, level: LogLevel, event: LogEvent, logger: "Logger") -> str | None:
        if level < self.level or self.formatter is None:
            return None
        return self.formatter.format(logger, level, event)


class StdoutLogAppender(LogAppender):
    """Writes formatted events to standard output."""

    def log(self, level: LogLevel, event: LogEvent, logger: "Logger") -> None:
        text = self._render(level, event, logger)
        if text is not None:
            sys.stdout.write(text)

    @property
    def appender_type(self) -> str:
        return "stdout"


class FileLogAppender(LogAppender):
    """Writes formatted events to a file, opened (and truncated) on first use."""

    def __init__(self, filepath: str, level: LogLevel = LogLevel.DEBUG) -> None:
        super().__init__(level)
        self.filepath = str(filepath)
        self._stream: IO[str] | None = None

    @property
    def appender_type(self) -> str:
        return "file"

    def log(self, level: LogLevel, event: LogEvent, logger: "Logger") -> None:
        if level < self.level:
            return
        try:
            if self._stream is None:
                self.reopen()
            if self._stream is None:
                _report_error(f"Failed to open log file: {self.filepath}")
                return
            text = self._render(level, event, logger)
            if text is not None:
                self._stream.write(text)
                self._stream.flush()
        except (OSError, ValueError) as exc:
            _report_error(f"Error writing to log file: {exc}")

    def reopen(self) -> bool:
        """Close the current file, if any, and open the path afresh."""
        self.close()
        try:
            self._stream = open(self.filepath, "w", encoding="utf-8")
        except OSError:
            self._stream = None
            return False
        return True

    def close(self) -> None:
        """Close the underlying file; the next write reopens it."""
        if self._stream is not None:
            self._stream.close()
            self._stream = None


class Logger:
    """A named logger that passes events at or above its level to its appenders."""

    def __init__(
        self,
        name: str = "root",
        level: LogLevel = LogLevel.DEBUG,
        pattern: str = DEFAULT_PATTERN,
        appenders: Iterable[str] = (),
        output_path: str = "",
    ) -> None:
        self.name = name
        self.level = LogLevel(level)
        self.formatter = LogFormatter(pattern)
        self.root: Logger | None = None
        self._appenders: list[LogAppender] = []
        for kind in appenders:
            if kind == "stdout":
                self.add_appender(StdoutLogAppender())
            elif kind == "file":
                self.add_appender(FileLogAppender(output_path))

    def log(self, level: LogLevel, event: LogEvent) -> None:
        """Hand ``event`` to every appender if ``level`` passes the logger's level."""
        if level >= self.level:
            for appender in list(self._appenders):
                appender.log(level, event, self)

    def debug(self, event: LogEvent) -> None:
        self.log(LogLevel.DEBUG, event)

    def info(self, event: LogEvent) -> None:
        self.log(LogLevel.INFO, event)

    def warn(self, event: LogEvent) -> None:
        self.log(LogLevel.WARN, event)

    def error(self, event: LogEvent) -> None:
        self.log(LogLevel.ERROR, event)

    def fatal(self, event: LogEvent) -> None:
        self.log(LogLevel.FATAL, event)

    def add_appender(self, appender: LogAppender) -> None:
        """Attach an appender; one without a formatter shares the logger's."""
        if appender.formatter is None:
            appender.formatter = self.formatter
        self._appenders.append(appender)

    def del_appender(self, appender: LogAppender) -> None:
        """Detach the given appender object, if attached."""
        for index, current in enumerate(self._appenders):
            if current is appender:
                del self._appenders[index]
                break

    def clear_appenders(self) -> None:
        self._appenders.clear()

    def set_pattern(self, pattern: str) -> None:
        """Replace the logger's formatter with one built from ``pattern``."""
        self.formatter = LogFormatter(pattern)

    @property
    def appenders(self) -> list[LogAppender]:
        """A copy of the attached appenders, in order."""
        return list(self._appenders)


class LogEventWrap:
    """Context manager that logs its event, newline-terminated, on exit."""

    def __init__(self, logger: Logger, event: LogEvent) -> None:
        self.logger = logger
        self.event = event

    def __enter__(self) -> LogEvent:
        return self.event

    def __exit__(self, exc_type, exc, tb) -> None:
        self.event.write("\n")
        self.logger.log(self.event.level, self.event)


def log_message(logger: Logger, level: LogLevel, message: object) -> LogEvent | None:
    """Log ``message`` at ``level`` with the caller's file and line.

    Returns the event that was logged, or ``None`` when the logger's level
    filters it out.
    """
    level = LogLevel(level)
    if logger.level > level:
        return None
    file, line = "", 0
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    if caller is not None:
        file, line = caller.f_code.co_filename, caller.f_lineno
    del frame, caller
    event = LogEvent(
        file=file,
        line=line,
        thread_id=get_thread_id(),
        fiber_id=get_fiber_id(),
        time=int(time.time()),
        level=level,
    )
    with LogEventWrap(logger, event) as wrapped:
        wrapped.write(message)
    return event