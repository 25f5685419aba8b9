# znet

A small logging and configuration library.

- **Logging** (`znet.formatter`, `znet.logger`): named loggers send events to stdout or file appenders. Each appender formats events with a `%`-pattern.
- **Logger registry** (`znet.manager`): a process-wide `LoggerManager` holds the root logger and every named logger. It can describe all of them as YAML.
- **Configuration** (`znet.config`): typed configuration variables, registered under dotted names and loaded from YAML. Listeners are called when a value changes.
- **Logging from configuration** (`znet.logconfig`): a `loggers` configuration variable creates, reconfigures and removes loggers when YAML is loaded.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Format patterns

`LogFormatter(pattern)` understands these fields:

| Field | Output |
|-------|--------|
| `%m` | message |
| `%p` | level name (`DEBUG`, `INFO`, `WARN`, `ERROR`, `FATAL`, `UNKNOWN`) |
| `%r` | the event's `elapse` value |
| `%c` | logger name |
| `%t` | thread id |
| `%F` | fiber id |
| `%d{...}` | event time, using a strftime format (default `%Y-%m-%d %H:%M:%S`) |
| `%f` | file name |
| `%l` | line number |
| `%T` | tab |
| `%n` | newline |
| `%%` | a literal `%` |

Special cases:

- An unknown field is rendered as `<<error_format %x>>`.
- A `{` that is never closed is rendered as `<<pattern_error>>`, and a parse error is printed.
- Literal text after the last field is not kept.

The default pattern is:

```
%d{%Y-%m-%d %H:%M:%S}%T%t%T%F%T[%p]%T[%c]%T%f:%l%T%m
```

`LogLevel.from_string` accepts the lower-case names `debug`, `info`, `warn`, `error` and `fatal`. Any other text gives `LogLevel.UNKNOWN`.

## Logging

```python
from znet.formatter import LogLevel
from znet.logger import Logger, StdoutLogAppender, log_message

logger = Logger("app")
logger.add_appender(StdoutLogAppender())
log_message(logger, LogLevel.INFO, "service started")
```

`log_message` records the caller's file and line, the thread id and the current time. It adds a newline to the message and returns the event. If the logger's level filters the event out, it returns `None`.

- A logger drops events below its own level.
- Each appender also has a level, and drops events below it.
- An appender added without a formatter uses the logger's formatter.
- `FileLogAppender(path)` opens its file when it first writes. It truncates the file at that point.
- `FileLogAppender.reopen()` opens the file again, and `close()` closes it.

`LogEventWrap(logger, event)` is a context manager. Text written to the event inside the block is handed to the logger, with a newline added, when the block ends.

## Logger manager

```python
from znet.manager import get_manager, named_logger, root_logger

manager = get_manager()
web = manager.create_logger("web", appenders=["stdout", "file"], output_path="web.log")
print(manager.to_yaml_string())
```

- `get_manager()` returns the process-wide `LoggerManager`.
- `root_logger()` returns its root logger, which writes to stdout.
- `named_logger(name)` returns the logger with that name. If there is none, it first creates one with no appenders.
- `create_logger` on a name that already exists updates that logger and returns it. The update changes the level and the pattern, adds a missing stdout or file appender, and sets the path of any file appenders.
- `configure_logger(define)` applies a `LogDefine` to a logger: its level, its formatter and its appenders, which are rebuilt.
- `remove_logger(name)` drops a logger from the registry.

`log_define_from_string` and `log_define_to_string` convert one `LogDefine` to and from YAML.

## Configuration variables

```python
from znet.config import default_config

config = default_config()
port = config.create("system.port", 8080, "system port")
port.add_listener(1, lambda new, old: print(f"port {old} -> {new}"))
config.load_from_file("config.yml")
print(port.value)
```

Registering variables:

- Names may contain only letters, digits, `.` and `_`. Any other name raises `ValueError`.
- Creating a name that already exists with the same type returns the variable that is already registered.
- Creating a name that already exists with a different type raises `TypeError`.
- `lookup(name, value_type)` returns a variable only when its type matches. `lookup_base(name)` returns it whatever its type.

Values and listeners:

- `set_value` calls the listeners in order of their ids, but only when the value actually changes.
- `from_string` returns `False` and logs an error if the text cannot be parsed.

Supported value types:

- `str`, `int` and `float`.
- `bool`, written as `1` or `0`.
- `list[T]`, `set[T]` and `frozenset[T]`.
- `dict[str, T]`.
- Any class with a `from_config_string` classmethod and a `to_config_string` method.

Custom conversions can also be given to `create` as `from_string=` and `to_string=`.

`load_from_yaml` accepts any of:

- YAML text,
- a composed YAML node,
- plain Python data.

Each dotted path in the tree is matched against the registered names.

## Loggers from YAML

```python
from znet.config import default_config
from znet.logconfig import install_logger_config
from znet.manager import get_manager

config = default_config()
install_logger_config(config, get_manager())
config.load_from_file("log.yml")
```

with `log.yml` such as:

```yaml
loggers:
  - name: root
    level: info
    formatter: "%d%T%p%T%m%n"
    appender:
      - type: stdout
      - type: file
        file: logs/root.log
        level: error
```

When the value changes:

- Loggers that are missing from the new value are removed from the manager.
- Each listed logger is created or reconfigured by `configure_logger`.
- An appender without its own `level` or `formatter` takes those of its logger.

## What it does not do

znet is a library only. It installs no command-line program.

Coroutines are not used, so the fiber id (`%F`) is always `0`.