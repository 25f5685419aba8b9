"""Typed configuration variables that can be loaded from YAML."""

from __future__ import annotations

import re
import typing
from collections.abc import Mapping
from functools import lru_cache, partial
from typing import Any, Callable

import yaml
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from .formatter import LogLevel
from .logger import log_message
from .manager import root_logger

_NAME_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789._"
)
_NULL_TAG = "tag:yaml.org,2002:null"
_STR_TAG = "tag:yaml.org,2002:str"
_SEQ_TAG = "tag:yaml.org,2002:seq"
_MAP_TAG = "tag:yaml.org,2002:map"
_INT_RE = re.compile(r"[+-]?[0-9]+")
_SEQUENCE_TYPES = (list, set, frozenset)

OnChange = Callable[[Any, Any], None]


def _report(level: LogLevel, message: str) -> None:
    log_message(root_logger(), level, message)


def _is_valid_name(name: str) -> bool:
    return all(ch in _NAME_CHARS for ch in name)


def _compose(source: Any) -> Node | None:
    return yaml.compose(source, Loader=yaml.SafeLoader)


def _serialize(node: Node) -> str:
    return yaml.serialize(node, Dumper=yaml.SafeDumper, allow_unicode=True).rstrip("\n")


def _node_text(node: Node | None) -> str:
    """Text of a node: the raw scalar, ``~`` for null, or the dumped YAML."""
    if node is None:
        return "~"
    if isinstance(node, ScalarNode):
        return "~" if node.tag == _NULL_TAG else node.value
    return _serialize(node)


def _sequence_texts(text: str) -> list[str]:
    node = _compose(text)
    if node is None or isinstance(node, ScalarNode):
        return []
    if isinstance(node, SequenceNode):
        return [_node_text(item) for item in node.value]
    raise ValueError("expected a YAML sequence")


def _mapping_texts(text: str) -> list[tuple[str, str]]:
    node = _compose(text)
    if node is None or isinstance(node, ScalarNode):
        return []
    if not isinstance(node, MappingNode):
        raise ValueError("expected a YAML mapping")
    pairs = []
    for key, item in node.value:
        if not isinstance(key, ScalarNode):
            raise ValueError("mapping keys must be scalars")
        pairs.append((key.value, _node_text(item)))
    return pairs


def _parse_scalar(text: str, value_type: type) -> Any:
    if value_type is str:
        return text
    if value_type is bool:
        if text == "1":
            return True
        if text == "0":
            return False
        raise ValueError(f"cannot convert {text!r} to bool")
    if value_type is int:
        if not _INT_RE.fullmatch(text):
            raise ValueError(f"cannot convert {text!r} to int")
        return int(text)
    if text != text.strip() or "_" in text:
        raise ValueError(f"cannot convert {text!r} to float")
    return float(text)


def from_string_cast(text: str, value_type: Any) -> Any:
    """Convert configuration text to a value of ``value_type``.

    Supports ``str``, ``int``, ``float``, ``bool`` (``"1"``/``"0"``),
    ``list[T]``, ``set[T]``, ``frozenset[T]`` and ``dict[str, T]`` read from
    YAML, and any class with a ``from_config_string(text)`` classmethod.
    """
    if value_type in (str, bool, int, float):
        return _parse_scalar(text, value_type)
    origin = typing.get_origin(value_type) or value_type
    args = typing.get_args(value_type)
    if origin in _SEQUENCE_TYPES:
        item_type = args[0] if args else str
        return origin(from_string_cast(item, item_type) for item in _sequence_texts(text))
    if origin is dict:
        key_type, item_type = args if len(args) == 2 else (str, str)
        if key_type is not str:
            raise TypeError("only string-keyed mappings are supported")
        return {key: from_string_cast(item, item_type) for key, item in _mapping_texts(text)}
    parse = getattr(value_type, "from_config_string", None)
    if callable(parse):
        return parse(text)
    raise TypeError(f"no conversion from a string to {value_type!r}")


def _element_node(value: Any) -> Node:
    node = _compose(to_string_cast(value))
    return node if node is not None else ScalarNode(_NULL_TAG, "~")


def _ordered(values: Any) -> list[Any]:
    try:
        return sorted(values)
    except TypeError:
        return list(values)


def to_string_cast(value: Any) -> str:
    """Render a value as configuration text; the inverse of :func:`from_string_cast`.

    Objects with a ``to_config_string()`` method render themselves.
    """
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        return value
    render = getattr(value, "to_config_string", None)
    if callable(render):
        return render()
    if isinstance(value, Mapping):
        pairs = [(ScalarNode(_STR_TAG, str(key)), _element_node(item)) for key, item in value.items()]
        return _serialize(MappingNode(_MAP_TAG, pairs))
    if isinstance(value, (set, frozenset)):
        items = _ordered(value)
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        raise TypeError(f"no conversion from {type(value).__name__} to a string")
    return _serialize(SequenceNode(_SEQ_TAG, [_element_node(item) for item in items]))


def _infer_type(value: Any) -> Any:
    kind = type(value)
    if kind in _SEQUENCE_TYPES:
        return kind[_infer_type(next(iter(value)))] if value else kind
    if kind is dict:
        return dict[str, _infer_type(next(iter(value.values())))] if value else dict
    return kind


class ConfigVar:
    """A named, typed configuration value with change listeners."""

    def __init__(
        self,
        name: str,
        default: Any,
        description: str = "",
        value_type: Any = None,
        from_string: Callable[[str], Any] | None = None,
        to_string: Callable[[Any], str] | None = None,
    ) -> None:
        self.name = name
        self.description = description
        self.value_type = value_type if value_type is not None else _infer_type(default)
        self._value = default
        self._parse = from_string or partial(from_string_cast, value_type=self.value_type)
        self._render = to_string or to_string_cast
        self._listeners: dict[int, OnChange] = {}

    @property
    def value(self) -> Any:
        return self._value

    def set_value(self, value: Any) -> None:
        """Store ``value`` and notify listeners, in id order, if it differs."""
        if self._value == value:
            return
        old_value = self._value
        self._value = value
        for _, callback in sorted(self._listeners.items(), key=lambda pair: pair[0]):
            callback(value, old_value)

    def to_string(self) -> str:
        """Render the current value; an empty string if rendering fails."""
        try:
            return self._render(self._value)
        except Exception as exc:
            _report(LogLevel.ERROR,
                    f"ConfigVar.to_string() error, name={self.name} exception: {exc}")
        return ""

    def from_string(self, text: str) -> bool:
        """Parse ``text`` and store the result; report whether that worked."""
        try:
            self.set_value(self._parse(text))
            return True
        except Exception as exc:
            _report(LogLevel.ERROR,
                    f"ConfigVar.from_string() error, name={self.name} exception: {exc}")
        return False

    def add_listener(self, listener_id: int, callback: OnChange) -> None:
        self._listeners[listener_id] = callback

    def remove_listener(self, listener_id: int) -> None:
        self._listeners.pop(listener_id, None)

    def get_listener(self, listener_id: int) -> OnChange | None:
        return self._listeners.get(listener_id)


class Config:
    """A registry of configuration variables keyed by dotted name."""

    def __init__(self) -> None:
        self._vars: dict[str, ConfigVar] = {}

    def lookup_base(self, name: str) -> ConfigVar | None:
        return self._vars.get(name)

    def lookup(self, name: str, value_type: Any) -> ConfigVar | None:
        """Return the variable only if it exists with exactly ``value_type``."""
        var = self._vars.get(name)
        if var is not None and var.value_type == value_type:
            return var
        return None

    def create(
        self,
        name: str,
        value: Any,
        description: str = "",
        value_type: Any = None,
        from_string: Callable[[str], Any] | None = None,
        to_string: Callable[[Any], str] | None = None,
    ) -> ConfigVar:
        """Return the existing variable of this name and type, or register a new one.

        Raises ``TypeError`` if the name is taken by another type and
        ``ValueError`` if the name has characters outside ``[A-Za-z0-9._]``.
        """
        if value_type is None:
            value_type = _infer_type(value)
        existing = self._vars.get(name)
        if existing is not None:
            if existing.value_type == value_type:
                _report(LogLevel.INFO, f"Config.create name={name} already exists")
                return existing
            raise TypeError(
                f"Config.create: name conflict! {name} already exists, "
                f"but type is not {value_type!r}"
            )
        if not _is_valid_name(name):
            _report(LogLevel.ERROR, f"Config.create name is invalid, name={name}")
            raise ValueError(name)
        var = ConfigVar(name, value, description, value_type, from_string, to_string)
        self._vars[name] = var
        return var

    def list_all_yaml_members(self, node: Node | None, prefix: str = "") -> list[tuple[str, Node | None]]:
        """Every node of a YAML tree paired with its dotted path, parents first.

        Subtrees whose path contains invalid characters are skipped.
        """
        members: list[tuple[str, Node | None]] = []
        self._collect(node, prefix, members)
        return members

    def _collect(self, node: Node | None, prefix: str, members: list) -> None:
        if not _is_valid_name(prefix):
            _report(LogLevel.ERROR,
                    f"Config.list_all_yaml_members prefix is invalid, prefix={prefix}")
            return
        members.append((prefix, node))
        if isinstance(node, MappingNode):
            for key, child in node.value:
                key_text = key.value if isinstance(key, ScalarNode) else ""
                self._collect(child, f"{prefix}.{key_text}" if prefix else key_text, members)

    def load_from_yaml(self, node: Any) -> None:
        """Apply a YAML tree to the registered variables.

        ``node`` may be a composed YAML node, YAML text, or plain Python data.
        """
        if isinstance(node, str):
            node = _compose(node)
        elif node is not None and not isinstance(node, Node):
            node = _compose(yaml.safe_dump(node))
        if node is None:
            return
        for name, member in self.list_all_yaml_members(node):
            var = self._vars.get(name)
            if var is not None:
                var.from_string(_node_text(member))

    def load_from_file(self, filename: str) -> None:
        """Read a YAML file and apply it."""
        with open(filename, encoding="utf-8") as handle:
            node = _compose(handle)
        self.load_from_yaml(node)


@lru_cache(maxsize=None)
def default_config() -> Config:
    """The process-wide configuration registry."""
    return Config()