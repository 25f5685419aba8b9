"""Small process-level helpers shared by the logging and configuration code."""

from __future__ import annotations

import string
import threading

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def get_thread_id() -> int:
    """Return the operating-system id of the calling thread."""
    return threading.get_native_id()


def get_fiber_id() -> int:
    """Return the id of the running coroutine; coroutines are not used, so always 0."""
    return 0


def to_lower(text: str) -> str:
    """Lower-case the ASCII letters of ``text``, leaving every other character alone."""
    return text.translate(_ASCII_LOWER)