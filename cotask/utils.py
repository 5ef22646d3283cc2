"""
Utility functions for the cotask library.
"""

import itertools
import os
import sys
import threading
from types import FrameType
from typing import Optional


def env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None


# Environment variables controlling tracing and engine threads
DEBUG_SWITCHES = env_flag("COTASK_DEBUG")
THREAD_PREFIX = os.environ.get("COTASK_THREAD_PREFIX", "cotask")
JOIN_TIMEOUT = env_float("COTASK_JOIN_TIMEOUT", 5.0)

_task_ids = itertools.count(1)


def next_task_name() -> str:
    """Return a fresh default task name such as ``cotask-3``."""
    return f"{THREAD_PREFIX}-{next(_task_ids)}"


_STDLIB_DIR = os.path.dirname(os.path.abspath(os.__file__))


def _is_stdlib(path: str) -> bool:
    normalized = path.replace("\\", "/").lower()
    if normalized.startswith("<"):
        return False
    return (
        os.path.abspath(path).startswith(_STDLIB_DIR + os.sep)
        or "/lib/python" in normalized
        or "/frameworks/python.framework" in normalized
        or "/.local/share/uv/python" in normalized
    )


_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


def _is_cotask_internal(path: str) -> bool:
    return os.path.abspath(path).startswith(_PACKAGE_DIR + os.sep)


def _is_user_frame(path: str) -> bool:
    if path.startswith("<"):
        return True
    return not (_is_stdlib(path) or _is_cotask_internal(path))


def thread_user_frame(thread: threading.Thread) -> Optional[FrameType]:
    """
    Find the innermost user frame currently executing on ``thread``.

    Frames belonging to the standard library or to cotask itself are skipped,
    so for a suspended task this is the body line that called ``yield_with``.
    """
    if thread.ident is None:
        return None
    frame = sys._current_frames().get(thread.ident)
    while frame is not None:
        if _is_user_frame(frame.f_code.co_filename):
            return frame
        frame = frame.f_back
    return None
