"""
Task observability API.

This module provides types for watching a task's hand-offs with its caller:
the task's lifecycle state, how many switches it has gone through and where
its body is currently suspended.

Public API:
    - TaskState: Lifecycle state of a task
    - CodeLocation: Location of the suspended body line
    - TaskSnapshot: Point-in-time snapshot of a task
    - TaskMonitor: Live, thread-safe view of a task
    - OnSwitchCallback: Callback invoked after every switch

Example usage (callback-based):
    def log_switch(snapshot: TaskSnapshot):
        print(f"Switch {snapshot.switch_count}: {snapshot.state.value}")
        if snapshot.location:
            print(f"  Suspended at {snapshot.location.format()}")

    task = spawn(body, on_switch=log_switch)
"""

from __future__ import annotations

import enum
import linecache
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from types import FrameType

from loguru import logger as loguru_logger

from cotask.utils import DEBUG_SWITCHES

logger = logging.getLogger(__name__)
loguru_logger = loguru_logger.bind(component="cotask.observability")


class TaskState(enum.Enum):
    """Lifecycle state of a task.

    ``CREATED`` and ``SUSPENDED`` accept a resume; the three terminal states
    never do.
    """

    CREATED = "created"
    SUSPENDED = "suspended"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.COMPLETED, TaskState.FAILED, TaskState.CLOSED)


@dataclass(frozen=True)
class CodeLocation:
    """
    Location information for a code point.

    Attributes:
        filename: Source file path.
        line: Line number in the source file.
        function: Function name where the code is located.
        code: Optional source code snippet.
    """

    filename: str
    line: int
    function: str
    code: str | None = None

    @classmethod
    def from_frame(cls, frame: FrameType) -> CodeLocation:
        filename = frame.f_code.co_filename
        line = frame.f_lineno
        code = linecache.getline(filename, line).strip() or None
        return cls(
            filename=filename,
            line=line,
            function=frame.f_code.co_name,
            code=code,
        )

    def format(self) -> str:
        """Format as 'filename:line in function'."""
        return f"{self.filename}:{self.line} in {self.function}"


@dataclass(frozen=True)
class TaskSnapshot:
    """
    Point-in-time snapshot of a task.

    Attributes:
        name: Task name.
        state: Lifecycle state when the snapshot was taken.
        switch_count: Number of completed switches back to the caller.
        location: Body line the task is suspended at, if it is suspended
            mid-body.
    """

    name: str
    state: TaskState
    switch_count: int
    location: CodeLocation | None = None


# Type alias for on_switch callback
OnSwitchCallback = Callable[[TaskSnapshot], None]

LocationProvider = Callable[[], "FrameType | None"]


@dataclass
class TaskMonitor:
    """
    Live monitor for a single task.

    Provides read-only access to the task's state for external observers.
    Only the owning handle updates it.

    Attributes:
        name: Task name.
        state: Current lifecycle state (property).
        switch_count: Number of completed switches (property).
    """

    name: str
    _frame_provider: LocationProvider | None = field(default=None, repr=False)
    _state: TaskState = field(default=TaskState.CREATED)
    _switch_count: int = field(default=0)
    _callbacks: list[OnSwitchCallback] = field(default_factory=list, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def state(self) -> TaskState:
        """Current lifecycle state."""
        with self._lock:
            return self._state

    @property
    def switch_count(self) -> int:
        """Number of completed switches back to the caller."""
        with self._lock:
            return self._switch_count

    def snapshot(self) -> TaskSnapshot:
        """Get current task snapshot."""
        with self._lock:
            location = None
            if self._state is TaskState.SUSPENDED and self._frame_provider is not None:
                frame = self._frame_provider()
                if frame is not None:
                    location = CodeLocation.from_frame(frame)
            return TaskSnapshot(
                name=self.name,
                state=self._state,
                switch_count=self._switch_count,
                location=location,
            )

    def add_callback(self, callback: OnSwitchCallback) -> None:
        """Register ``callback`` to receive a snapshot after every switch."""
        with self._lock:
            self._callbacks.append(callback)

    def _update(self, state: TaskState, *, switched: bool = False) -> None:
        """Internal method to update monitor state (called by the task handle)."""
        with self._lock:
            self._state = state
            if switched:
                self._switch_count += 1
            callbacks = list(self._callbacks)
        if not switched or not (callbacks or DEBUG_SWITCHES):
            return

        snapshot = self.snapshot()
        if DEBUG_SWITCHES:
            loguru_logger.debug(
                "task {} switch #{} -> {} at {}",
                snapshot.name,
                snapshot.switch_count,
                snapshot.state.value,
                snapshot.location.format() if snapshot.location else "-",
            )
        for callback in callbacks:
            try:
                callback(snapshot)
            except Exception:
                logger.exception("on_switch callback failed for task %s", self.name)


__all__ = [
    "CodeLocation",
    "OnSwitchCallback",
    "TaskMonitor",
    "TaskSnapshot",
    "TaskState",
]
