"""
Outcome of one switch on the non-raising task surface.

``Resumer.try_resume_with`` returns ``Ok(value)`` when the task delivered a
value and ``Err(error)`` when the switch was refused or the body failed. The
error is always a :class:`~cotask.errors.TaskError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar

from cotask.errors import TaskError, TaskFailure

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)
U = TypeVar("U")


class Result(Generic[T_co]):
    """Either the value a task delivered or the task error that prevented it."""

    __slots__ = ()

    def is_ok(self) -> bool:
        return isinstance(self, Ok)

    def is_err(self) -> bool:
        return isinstance(self, Err)

    def ok(self) -> T_co | None:
        """Delivered value, or ``None`` for an error."""
        if isinstance(self, Ok):
            return self.value
        return None

    def err(self) -> TaskError | None:
        """Task error, or ``None`` if a value was delivered."""
        if isinstance(self, Err):
            return self.error
        return None

    def unwrap(self) -> T_co:
        """Delivered value; re-raises the task error otherwise."""
        if isinstance(self, Ok):
            return self.value
        raise self.error

    def unwrap_or(self, default: U) -> T_co | U:
        if isinstance(self, Ok):
            return self.value
        return default

    def __bool__(self) -> bool:
        return self.is_ok()


@dataclass(frozen=True)
class Ok(Result[T], Generic[T]):
    """A value the task delivered."""
    value: T


@dataclass(frozen=True)
class Err(Result[NoReturn]):
    """A switch that delivered nothing."""
    error: TaskError

    @property
    def traceback(self) -> str | None:
        """Formatted traceback of the body, when the task failed."""
        if isinstance(self.error, TaskFailure):
            return self.error.traceback
        return None


__all__ = ["Err", "Ok", "Result"]
