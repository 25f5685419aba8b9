"""Log levels, log events and pattern-driven log formatting."""

from __future__ import annotations

import time as _time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, NamedTuple

DEFAULT_PATTERN = "%d{%Y-%m-%d %H:%M:%S}%T%t%T%F%T[%p]%T[%c]%T%f:%l%T%m"
DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class LogLevel(IntEnum):
    """Severity of a log event; higher values are more severe."""

    UNKNOWN = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5

    def to_string(self) -> str:
        """Return the upper-case name of the level."""
        return self.name

    @staticmethod
    def from_string(text: str) -> "LogLevel":
        """Parse a lower-case level name; anything else gives ``UNKNOWN``."""
        return _LEVELS_BY_NAME.get(text, LogLevel.UNKNOWN)


_LEVELS_BY_NAME = {
    "debug": LogLevel.DEBUG,
    "info": LogLevel.INFO,
    "warn": LogLevel.WARN,
    "error": LogLevel.ERROR,
    "fatal": LogLevel.FATAL,
}


def _level_name(level: Any) -> str:
    try:
        return LogLevel(level).to_string()
    except ValueError:
        return "UNKNOWN"


@dataclass
class LogEvent:
    """One log record: where and when it happened, plus the message text."""

    file: str = ""
    line: int = 0
    elapse: int = 0
    thread_id: int = 0
    fiber_id: int = 0
    time: int = 0
    level: LogLevel = LogLevel.DEBUG
    _parts: list[str] = field(default_factory=list, init=False, repr=False, compare=False)

    def write(self, text: Any) -> "LogEvent":
        """Append ``text`` to the message and return the event for chaining."""
        self._parts.append(str(text))
        return self

    @property
    def content(self) -> str:
        """The message written so far."""
        return "".join(self._parts)


_Item = Callable[[Any, LogEvent, Any], str]


class _Token(NamedTuple):
    text: str
    fmt: str
    is_field: bool


def _is_alpha(ch: str) -> bool:
    return ch.isascii() and ch.isalpha()


def _tokenize(pattern: str) -> list[_Token]:
    """Split a pattern into literal text and ``%x`` / ``%x{fmt}`` fields.

    Literal text is emitted only when a following field is met, so text after
    the last field is not kept.
    """
    tokens: list[_Token] = []
    literal: list[str] = []
    n = len(pattern)
    i = 0
    while i < n:
        if pattern[i] != "%":
            literal.append(pattern[i])
            i += 1
            continue
        if i + 1 < n and pattern[i + 1] == "%":
            literal.append("%")
            i += 1
            continue

        j = i + 1
        status = 0
        fmt_begin = 0
        name = ""
        fmt = ""
        while j < n:
            ch = pattern[j]
            if status == 0 and not _is_alpha(ch) and ch not in "{}":
                name = pattern[i + 1:j]
                j -= 1
                break
            if status == 0 and ch == "{":
                name = pattern[i + 1:j]
                status = 1
                fmt_begin = j + 1
                continue
            if status == 1 and ch == "}":
                status = 2
                fmt = pattern[fmt_begin:j]
                break
            j += 1
        if j == n and j - i - 1 > 0:
            name = pattern[i + 1:j]

        if literal:
            tokens.append(_Token("".join(literal), "", False))
            literal.clear()
        if status == 1:
            print(f"pattern parse error: {pattern} - {pattern[i:]}")
            tokens.append(_Token("<<pattern_error>>", fmt, False))
        else:
            tokens.append(_Token(name, fmt, True))
        i = j + 1
    return tokens


def _time_item(fmt: str) -> _Item:
    time_format = fmt or DEFAULT_TIME_FORMAT

    def item(logger: Any, event: LogEvent, level: Any) -> str:
        return _time.strftime(time_format, _time.localtime(event.time))

    return item


def _const(text: str) -> _Item:
    return lambda logger, event, level: text


_FIELD_FACTORIES: dict[str, Callable[[str], _Item]] = {
    "m": lambda fmt: lambda logger, event, level: event.content,
    "p": lambda fmt: lambda logger, event, level: _level_name(level),
    "r": lambda fmt: lambda logger, event, level: str(event.elapse),
    "c": lambda fmt: lambda logger, event, level: str(logger.name),
    "t": lambda fmt: lambda logger, event, level: str(event.thread_id),
    "n": lambda fmt: _const("\n"),
    "d": _time_item,
    "f": lambda fmt: lambda logger, event, level: str(event.file),
    "l": lambda fmt: lambda logger, event, level: str(event.line),
    "T": lambda fmt: _const("\t"),
    "F": lambda fmt: lambda logger, event, level: str(event.fiber_id),
}


class LogFormatter:
    """Renders log events according to a ``%``-field pattern.

    Fields: ``%m`` message, ``%p`` level, ``%r`` elapsed, ``%c`` logger name,
    ``%t`` thread id, ``%n`` newline, ``%d{fmt}`` time, ``%f`` file,
    ``%l`` line, ``%T`` tab, ``%F`` fiber id.
    """

    def __init__(self, pattern: str) -> None:
        self._pattern = pattern
        self._items: list[_Item] = [self._build(token) for token in _tokenize(pattern)]

    @staticmethod
    def _build(token: _Token) -> _Item:
        if not token.is_field:
            return _const(token.text)
        factory = _FIELD_FACTORIES.get(token.text)
        if factory is None:
            return _const(f"<<error_format %{token.text}>>")
        return factory(token.fmt)

    @property
    def pattern(self) -> str:
        """The pattern this formatter was built from."""
        return self._pattern

    def format(self, logger: Any, level: Any, event: LogEvent) -> str:
        """Render ``event`` at ``level`` for ``logger`` (anything with a ``name``)."""
        return "".join(item(logger, event, level) for item in self._items)