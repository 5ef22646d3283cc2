from __future__ import annotations

import traceback
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cotask.observability import TaskState


class TaskError(Exception):
    """Base class for errors reported by a task handle."""


class DeadTask(TaskError):
    """Raised when ``resume_with`` is called on a task that already finished."""

    def __init__(self, name: str, state: TaskState) -> None:
        self.name = name
        self.state = state
        super().__init__(
            f"Task {name!r} cannot be resumed: it is {state.value}\n"
            "Hint: check `task.is_done` before resuming; a finished task delivers "
            "its final value exactly once"
        )


class TaskFailure(TaskError):
    """Raised when the task body terminated with an exception instead of returning.

    ``error`` is the exception that escaped the body. ``traceback`` holds its
    formatted traceback, captured when the failure is reported, so the frames
    of the task's own stack stay readable after its thread has exited.
    """

    def __init__(self, name: str, error: BaseException) -> None:
        self.name = name
        self.error = error
        self.traceback = format_task_traceback(error)
        super().__init__(
            f"Task {name!r} failed with {type(error).__name__}: {error}"
        )

    def describe(self) -> str:
        """Message followed by the body's traceback."""
        lines = [str(self)]
        if self.traceback:
            lines.append("----- Task Traceback -----")
            lines.append(self.traceback.rstrip())
        return "\n".join(lines)


def format_task_traceback(error: BaseException) -> str:
    """Format ``error`` with the traceback it was raised with."""
    return "".join(traceback.format_exception(type(error), error, error.__traceback__))


class TaskBusy(TaskError):
    """Raised when a task is resumed or closed while it is already running."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Task {name!r} is already running\n"
            "Hint: resume_with() must return before the next switch is issued, "
            "and a task body cannot resume its own handle"
        )


class NotInTask(TaskError):
    """Raised when ``yield_with`` is called outside the task that owns the yielder."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"yield_with() for task {name!r} was called outside its task body"
        )


class ContractViolation(TaskError, TypeError):
    """A transferred value does not match the channel it was sent through.

    Resume and yield types are pinned by the generic parameters of ``spawn``, so
    a type checker rejects mismatched bodies. At run time this is only raised
    when a transfer word does not resolve to a boxed value.
    """


class TaskExit(BaseException):
    """Raised inside a suspended task body when its handle is closed."""


class CoroutineError(RuntimeError):
    """Misuse of the raw coroutine engine."""


class CoroutinePanic(CoroutineError):
    """The coroutine entry point terminated with an exception."""

    def __init__(self, name: str, error: BaseException) -> None:
        self.name = name
        self.error = error
        super().__init__(f"Coroutine {name!r} panicked: {error!r}")


__all__ = [
    "ContractViolation",
    "CoroutineError",
    "CoroutinePanic",
    "DeadTask",
    "NotInTask",
    "TaskBusy",
    "TaskError",
    "TaskExit",
    "TaskFailure",
    "format_task_traceback",
]
