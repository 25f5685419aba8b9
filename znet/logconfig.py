"""Connects the ``loggers`` configuration variable to a logger manager."""

from __future__ import annotations

from functools import partial
from typing import Iterable

import yaml

from .config import Config, ConfigVar, default_config
from .formatter import LogLevel
from .logger import log_message
from .manager import (
    LogDefine,
    LoggerManager,
    get_manager,
    log_define_from_string,
    log_define_to_string,
)

LOGGERS_KEY = "loggers"
LISTENER_ID = 1


def _defines_from_string(text: str) -> frozenset[LogDefine]:
    data = yaml.safe_load(text)
    if isinstance(data, dict):
        raise ValueError("expected a YAML sequence of logger definitions")
    if not isinstance(data, list):
        return frozenset()
    chosen: dict[str, LogDefine] = {}
    for item in data:
        define = log_define_from_string(yaml.safe_dump(item))
        chosen.setdefault(define.name, define)
    return frozenset(chosen.values())


def _defines_to_string(defines: Iterable[LogDefine]) -> str:
    nodes = [yaml.safe_load(log_define_to_string(define)) for define in sorted(defines)]
    return yaml.safe_dump(nodes, sort_keys=False, default_flow_style=False, allow_unicode=True)


def apply_log_defines(
    manager: LoggerManager,
    new_value: Iterable[LogDefine],
    old_value: Iterable[LogDefine],
) -> None:
    """Make ``manager`` hold exactly the loggers described by ``new_value``."""
    defines = sorted(new_value)
    wanted = {define.name for define in defines}
    for name in manager.loggers:
        if name not in wanted:
            log_message(manager.root, LogLevel.INFO, f"apply_log_defines: remove logger {name}")
            manager.remove_logger(name)
    for define in defines:
        manager.configure_logger(define)


def install_logger_config(
    config: Config | None = None, manager: LoggerManager | None = None
) -> ConfigVar:
    """Register the ``loggers`` variable and keep ``manager`` in step with it."""
    config = config if config is not None else default_config()
    manager = manager if manager is not None else get_manager()
    var = config.create(
        LOGGERS_KEY,
        frozenset(),
        "loggers",
        value_type=frozenset[LogDefine],
        from_string=_defines_from_string,
        to_string=_defines_to_string,
    )
    var.add_listener(LISTENER_ID, partial(apply_log_defines, manager))
    return var