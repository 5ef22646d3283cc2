"""Task-side half of the typed hand-off."""

from __future__ import annotations

from typing import Generic, TypeVar, cast

from cotask.engine import Coroutine
from cotask.errors import CoroutineError, NotInTask
from cotask.transfer import TransferSlot

R = TypeVar("R")
Y = TypeVar("Y")


class Yielder(Generic[R, Y]):
    """Passed to a task body to hand values back to its caller.

    ``R`` is the type the caller resumes with and ``Y`` the type the body
    yields and returns. Instances are created by :func:`cotask.spawn` only.
    """

    __slots__ = ("_coroutine", "_slot")

    def __init__(self, coroutine: Coroutine, slot: TransferSlot) -> None:
        self._coroutine = coroutine
        self._slot = slot

    @property
    def name(self) -> str:
        return self._coroutine.name

    def yield_with(self, value: Y) -> R:
        """Send ``value`` to the caller and return the next value it resumes with.

        Raises:
            NotInTask: If called from outside this task's body
            TaskExit: If the task handle was closed while suspended here
        """
        if not self._coroutine.is_current():
            raise NotInTask(self.name)
        word = self._slot.put(value)
        try:
            reply = self._coroutine.yield_with(word)
        except CoroutineError:
            self._slot.discard()
            raise
        # The caller resumes with the R this body was spawned for.
        return cast(R, self._slot.take(reply))

    def __repr__(self) -> str:
        return f"Yielder(name={self.name!r})"


__all__ = ["Yielder"]
