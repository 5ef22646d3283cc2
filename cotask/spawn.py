"""Task spawning: wires a typed body to an untyped raw coroutine."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar, cast

from cotask.engine import Coroutine
from cotask.errors import CoroutineError
from cotask.observability import OnSwitchCallback, TaskMonitor, TaskState
from cotask.resumer import Resumer
from cotask.transfer import TransferSlot, Word
from cotask.yielder import Yielder

logger = logging.getLogger(__name__)

R = TypeVar("R")
Y = TypeVar("Y")

TaskBody = Callable[[Yielder[R, Y], R], Y]


class _Trampoline(Generic[R, Y]):
    """Entry point run on the task's stack by the first switch-in."""

    __slots__ = ("_body", "_slot")

    def __init__(self, body: TaskBody[R, Y], slot: TransferSlot) -> None:
        self._body: TaskBody[R, Y] | None = body
        self._slot = slot

    def __call__(self, coroutine: Coroutine, word: Word) -> Word:
        body, self._body = self._body, None
        if body is None:
            raise CoroutineError(f"body of task {coroutine.name!r} was already started")
        initial = cast(R, self._slot.take(word))
        result = body(Yielder(coroutine, self._slot), initial)
        return self._slot.put(result)


def spawn(
    body: TaskBody[R, Y],
    *,
    name: str | None = None,
    on_switch: OnSwitchCallback | None = None,
) -> Resumer[R, Y]:
    """Create a task running ``body`` and return the handle that drives it.

    ``body`` is called once, on the first ``resume_with``, with a
    :class:`Yielder` and the first resumed value. Each ``yield_with`` hands a
    value back to the caller; the body's return value is the last one.

    Args:
        body: One-shot callable ``(yielder, first_input) -> final_output``.
        name: Task name used for the engine thread and in log records.
        on_switch: Callback receiving a snapshot after every switch.

    Example:
        >>> def body(yielder, first):
        ...     second = yielder.yield_with(first + 1)
        ...     return second * 2
        >>> task = spawn(body)
        >>> task.resume_with(1)
        2
        >>> task.resume_with(10)
        20
    """
    slot = TransferSlot()
    handle = Coroutine.spawn(_Trampoline(body, slot), name=name)
    monitor = TaskMonitor(handle.name, _frame_provider=handle.suspended_frame)
    if on_switch is not None:
        monitor.add_callback(on_switch)
    monitor._update(TaskState.SUSPENDED)
    logger.debug("Spawned task %s", handle.name)
    return Resumer(handle, slot, monitor)


__all__ = ["TaskBody", "spawn"]
