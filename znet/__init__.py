"""Pattern-based logging with named loggers, appenders and YAML-backed configuration."""

__version__ = "1.0.0"

__all__ = ["util", "formatter", "logger", "manager", "config", "logconfig"]