"""Registry of named loggers and their YAML description."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache, total_ordering
from typing import Any, Iterable

import yaml

from .formatter import DEFAULT_PATTERN, LogFormatter, LogLevel
from .logger import (
    FileLogAppender,
    LogAppender,
    Logger,
    StdoutLogAppender,
    log_message,
)
from .util import to_lower


@dataclass(eq=False)
class LogAppenderDefine:
    """Configured appender; equality looks only at the type and the path."""

    type: str
    path: str = ""
    level: LogLevel = LogLevel.UNKNOWN
    formatter: str = ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LogAppenderDefine):
            return NotImplemented
        return self.type == other.type and self.path == other.path

    def __hash__(self) -> int:
        return hash((self.type, self.path))

    def has_custom_level(self) -> bool:
        return self.level != LogLevel.UNKNOWN

    def has_custom_formatter(self) -> bool:
        return bool(self.formatter)


@total_ordering
@dataclass(eq=False)
class LogDefine:
    """Configured logger; ordered by name."""

    name: str
    level: LogLevel = LogLevel.UNKNOWN
    formatter: str = ""
    appenders: list[LogAppenderDefine] = field(default_factory=list)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LogDefine):
            return NotImplemented
        return (
            self.name == other.name
            and self.level == other.level
            and self.formatter == other.formatter
            and self.appenders == other.appenders
        )

    def __lt__(self, other: "LogDefine") -> bool:
        if not isinstance(other, LogDefine):
            return NotImplemented
        return self.name < other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def appender_types(self) -> list[str]:
        return [appender.type for appender in self.appenders]

    def output_path(self) -> str:
        """Path of the first file appender, or an empty string."""
        return next((a.path for a in self.appenders if a.type == "file"), "")


def _level_text(level: LogLevel) -> str:
    return to_lower(LogLevel(level).to_string())


def _define_to_node(define: LogDefine) -> dict[str, Any]:
    node: dict[str, Any] = {
        "name": define.name,
        "level": _level_text(define.level),
        "formatter": define.formatter,
    }
    entries = []
    for appender in define.appenders:
        entry: dict[str, Any] = {"type": appender.type}
        if appender.type == "file":
            entry["file"] = appender.path
        if appender.has_custom_level():
            entry["level"] = _level_text(appender.level)
        if appender.has_custom_formatter():
            entry["formatter"] = appender.formatter
        entries.append(entry)
    if entries:
        node["appender"] = entries
    return node


def _dump(node: Any) -> str:
    return yaml.safe_dump(node, sort_keys=False, default_flow_style=False, allow_unicode=True)


def _scalar(node: Any, key: str) -> str:
    if not isinstance(node, dict) or key not in node:
        raise ValueError(f"log define is missing '{key}'")
    value = node[key]
    if isinstance(value, (dict, list)):
        raise ValueError(f"log define field '{key}' is not a scalar")
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def log_define_from_string(text: str) -> LogDefine:
    """Parse one logger definition from YAML text."""
    node = yaml.safe_load(text)
    define = LogDefine(
        name=_scalar(node, "name"),
        level=LogLevel.from_string(to_lower(_scalar(node, "level"))),
        formatter=_scalar(node, "formatter"),
    )
    entries = node.get("appender")
    if entries is None:
        return define
    if not isinstance(entries, list):
        raise ValueError("log define field 'appender' is not a sequence")
    for entry in entries:
        appender = LogAppenderDefine(type=_scalar(entry, "type"))
        if appender.type == "file":
            appender.path = _scalar(entry, "file")
        if "level" in entry:
            appender.level = LogLevel.from_string(to_lower(_scalar(entry, "level")))
        if "formatter" in entry:
            appender.formatter = _scalar(entry, "formatter")
        define.appenders.append(appender)
    return define


def log_define_to_string(define: LogDefine) -> str:
    """Render one logger definition as YAML text."""
    return _dump(_define_to_node(define))


class LoggerManager:
    """Owns the root logger and every named logger."""

    def __init__(self) -> None:
        self._root = Logger("root")
        self._root.add_appender(StdoutLogAppender())
        self._loggers: dict[str, Logger] = {self._root.name: self._root}

    @property
    def root(self) -> Logger:
        return self._root

    @property
    def loggers(self) -> dict[str, Logger]:
        """A copy of the registry, ordered by logger name."""
        return dict(sorted(self._loggers.items()))

    def get_logger(self, name: str) -> Logger:
        """Return the named logger, creating a bare one if it does not exist."""
        logger = self._loggers.get(name)
        if logger is None:
            logger = Logger(name)
            logger.root = self._root
            self._loggers[name] = logger
        return logger

    def to_yaml_string(self) -> str:
        """Describe every logger and its appenders as YAML."""
        nodes = []
        for name, logger in sorted(self._loggers.items()):
            define = LogDefine(name=name, level=logger.level, formatter=logger.formatter.pattern)
            for appender in logger.appenders:
                entry = LogAppenderDefine(type=appender.appender_type, level=appender.level)
                if isinstance(appender, FileLogAppender):
                    entry.path = appender.filepath
                if appender.has_custom_formatter and appender.formatter is not None:
                    entry.formatter = appender.formatter.pattern
                define.appenders.append(entry)
            nodes.append(_define_to_node(define))
        return _dump({"loggers": nodes})

    def create_logger(
        self,
        name: str,
        level: LogLevel = LogLevel.DEBUG,
        pattern: str = DEFAULT_PATTERN,
        appenders: Iterable[str] = ("stdout",),
        output_path: str = "",
    ) -> Logger:
        """Create a logger, or update and return the existing one of that name."""
        appenders = list(appenders)
        existing = self._loggers.get(name)
        if existing is not None:
            log_message(self._root, LogLevel.INFO,
                        f"LoggerManager.create_logger: logger {name} already exists")
            if self.update_logger(name, level, pattern, appenders, output_path):
                log_message(self._root, LogLevel.INFO,
                            f"LoggerManager.create_logger: logger {name} has been updated")
            return existing
        logger = Logger(name, level, pattern, appenders, output_path)
        for appender in logger.appenders:
            appender.level = LogLevel(level)
            appender.formatter = LogFormatter(pattern)
        self._loggers[name] = logger
        return logger

    def update_logger(
        self,
        name: str,
        level: LogLevel,
        pattern: str,
        appenders: Iterable[str],
        output_path: str,
    ) -> bool:
        """Bring an existing logger in line with the arguments; report whether it changed."""
        logger = self._loggers.get(name)
        if logger is None:
            return False
        changed = False
        if level != logger.level:
            logger.level = LogLevel(level)
            changed = True
        if pattern != logger.formatter.pattern:
            logger.set_pattern(pattern)
            for appender in logger.appenders:
                appender.has_custom_formatter = False
                appender.formatter = LogFormatter(pattern)
            changed = True
        for kind in appenders:
            if kind == "stdout":
                if not any(a.appender_type == "stdout" for a in logger.appenders):
                    logger.add_appender(StdoutLogAppender())
                    changed = True
            elif kind == "file":
                files = [a for a in logger.appenders if isinstance(a, FileLogAppender)]
                for appender in files:
                    if appender.filepath != output_path:
                        appender.filepath = output_path
                        changed = True
                if not files:
                    logger.add_appender(FileLogAppender(output_path))
                    changed = True
        return changed

    def configure_logger(self, define: LogDefine) -> None:
        """Create or reconfigure a logger so that it matches ``define``."""
        logger = self._loggers.get(define.name)
        if logger is None:
            logger = Logger(define.name, define.level, define.formatter)
            self._loggers[define.name] = logger
        else:
            logger.level = LogLevel(define.level)
            logger.set_pattern(define.formatter)
        self._rebuild_appenders(logger, define)

    @staticmethod
    def _rebuild_appenders(logger: Logger, define: LogDefine) -> None:
        logger.clear_appenders()
        for entry in define.appenders:
            appender: LogAppender
            if entry.type == "file":
                appender = FileLogAppender(entry.path)
            elif entry.type == "stdout":
                appender = StdoutLogAppender()
            else:
                continue
            appender.level = entry.level if entry.has_custom_level() else LogLevel(define.level)
            if entry.has_custom_formatter():
                appender.formatter = LogFormatter(entry.formatter)
                appender.has_custom_formatter = True
            else:
                appender.formatter = logger.formatter
                appender.has_custom_formatter = False
            logger.add_appender(appender)

    def remove_logger(self, name: str) -> None:
        """Drop a logger from the registry."""
        if name in self._loggers:
            log_message(self._root, LogLevel.INFO,
                        f"LoggerManager.remove_logger: removing logger {name}")
            del self._loggers[name]
        else:
            log_message(self._root, LogLevel.WARN,
                        f"LoggerManager.remove_logger: logger {name} not found")


@lru_cache(maxsize=None)
def get_manager() -> LoggerManager:
    """The process-wide logger manager."""
    return LoggerManager()


def root_logger() -> Logger:
    return get_manager().root


def named_logger(name: str) -> Logger:
    return get_manager().get_logger(name)