"""
cotask - Typed hand-off between a caller and a stackful task.

A task runs a one-shot body on its own stack. The caller drives it with
``resume_with`` and the body answers with ``yield_with``; exactly one side runs
at a time and every switch moves exactly one value, whose type is pinned by the
``Resumer[R, Y]`` / ``Yielder[R, Y]`` pair created by ``spawn``.

Example:
    >>> from cotask import spawn
    >>>
    >>> def body(yielder, greeting):
    ...     name = yielder.yield_with(f"{greeting}, who is there?")
    ...     return f"hello {name}"
    >>>
    >>> task = spawn(body)
    >>> task.resume_with("hi")
    'hi, who is there?'
    >>> task.resume_with("ada")
    'hello ada'
"""

from cotask.errors import (
    ContractViolation,
    CoroutineError,
    DeadTask,
    NotInTask,
    TaskBusy,
    TaskError,
    TaskExit,
    TaskFailure,
)
from cotask.observability import (
    CodeLocation,
    OnSwitchCallback,
    TaskMonitor,
    TaskSnapshot,
    TaskState,
)
from cotask.result import Err, Ok, Result
from cotask.resumer import Resumer
from cotask.spawn import TaskBody, spawn
from cotask.yielder import Yielder

__all__ = [
    # Core
    "spawn",
    "Resumer",
    "Yielder",
    "TaskBody",
    # Errors
    "TaskError",
    "DeadTask",
    "TaskFailure",
    "TaskBusy",
    "NotInTask",
    "ContractViolation",
    "TaskExit",
    "CoroutineError",
    # Result
    "Result",
    "Ok",
    "Err",
    # Observability
    "TaskState",
    "TaskSnapshot",
    "TaskMonitor",
    "CodeLocation",
    "OnSwitchCallback",
]
