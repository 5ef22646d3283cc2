"""Caller-side half of the typed hand-off."""

from __future__ import annotations

import logging
import threading
import weakref
from types import TracebackType
from typing import Generic, NoReturn, TypeVar, cast

from cotask.engine import Handle
from cotask.errors import (
    CoroutineError,
    CoroutinePanic,
    DeadTask,
    TaskBusy,
    TaskError,
    TaskExit,
    TaskFailure,
)
from cotask.observability import TaskMonitor, TaskState
from cotask.result import Err, Ok, Result
from cotask.transfer import TransferSlot

logger = logging.getLogger(__name__)

R = TypeVar("R")
Y = TypeVar("Y")


def _release_dropped(handle: Handle, slot: TransferSlot) -> None:
    """Unwind a task whose handle was garbage collected while it was suspended."""
    if not handle.is_started or handle.is_finished:
        return
    logger.warning(
        "Task %s was dropped while suspended; unwinding it. "
        "Call close() or use the handle as a context manager to release it explicitly.",
        handle.name,
    )
    try:
        word = handle.unwind()
    except CoroutinePanic as panic:
        logger.warning("Task %s failed while unwinding: %r", handle.name, panic.error)
        return
    except CoroutineError as exc:
        logger.warning("Task %s could not be unwound: %s", handle.name, exc)
        return
    if word is not None:
        slot.take(word)


class Resumer(Generic[R, Y]):
    """Drives a spawned task: resumes it with ``R`` values and receives ``Y`` values.

    Created by :func:`cotask.spawn`. The handle exclusively owns the task's
    raw coroutine. Closing it, or letting it be garbage collected, unwinds a
    task that is still suspended mid-body.

    Example::

        task = spawn(body)
        first = task.resume_with(request)
        while not task.is_done:
            reply = task.resume_with(next_request(reply))
    """

    def __init__(self, handle: Handle, slot: TransferSlot, monitor: TaskMonitor) -> None:
        self._handle = handle
        self._slot = slot
        self._monitor = monitor
        self._lock = threading.Lock()
        self._finalizer = weakref.finalize(self, _release_dropped, handle, slot)

    @property
    def name(self) -> str:
        return self._handle.name

    @property
    def state(self) -> TaskState:
        return self._monitor.state

    @property
    def monitor(self) -> TaskMonitor:
        return self._monitor

    @property
    def is_completed(self) -> bool:
        """Whether the body returned its final value."""
        return self._monitor.state is TaskState.COMPLETED

    @property
    def is_done(self) -> bool:
        """Whether the task reached a terminal state and can no longer be resumed."""
        return self._monitor.state.is_terminal

    def resume_with(self, value: R) -> Y:
        """Switch into the task with ``value`` and return what it yields next.

        The first call starts the body with ``value`` as its initial input.
        When the body returns, its return value is delivered by this call and
        the task becomes completed.

        Raises:
            DeadTask: If the task already completed, failed or was closed
            TaskBusy: If the task is running, e.g. resumed from its own body
            TaskFailure: If the body raised; the task becomes failed
        """
        if not self._lock.acquire(blocking=False):
            raise TaskBusy(self.name)
        try:
            state = self._monitor.state
            if state.is_terminal:
                raise DeadTask(self.name, state)

            word = self._slot.put(value)
            self._monitor._update(TaskState.RUNNING)
            try:
                reply = self._handle.resume(word)
            except CoroutinePanic as panic:
                self._slot.discard()
                self._monitor._update(TaskState.FAILED, switched=True)
                self._raise_failure(panic.error)
            except CoroutineError as exc:
                self._slot.discard()
                self._monitor._update(TaskState.FAILED, switched=True)
                self._raise_failure(exc)

            done = self._handle.is_finished
            result = cast(Y, self._slot.take(reply))
            self._monitor._update(
                TaskState.COMPLETED if done else TaskState.SUSPENDED, switched=True
            )
            if done:
                logger.debug("Task %s completed", self.name)
            return result
        finally:
            self._lock.release()

    def try_resume_with(self, value: R) -> Result[Y]:
        """Like :meth:`resume_with`, but return task errors as ``Err``."""
        try:
            return Ok(self.resume_with(value))
        except TaskError as exc:
            return Err(exc)

    def close(self) -> None:
        """Release the task.

        A task suspended mid-body is force-unwound: ``TaskExit`` is raised at
        its pending ``yield_with`` so that its ``finally`` blocks run. Closing a
        finished or never-started task only marks it closed. Idempotent.

        Raises:
            TaskBusy: If the task is running
            TaskFailure: If the body raised while unwinding, or yielded again
        """
        if not self._lock.acquire(blocking=False):
            raise TaskBusy(self.name)
        try:
            self._finalizer.detach()
            if self._monitor.state.is_terminal:
                return
            try:
                word = self._handle.unwind()
            except CoroutinePanic as panic:
                self._slot.discard()
                self._monitor._update(TaskState.FAILED)
                self._raise_failure(panic.error)
            if word is not None:
                self._slot.take(word)
            self._monitor._update(TaskState.CLOSED)
            logger.debug("Task %s closed", self.name)
        finally:
            self._lock.release()

    def _raise_failure(self, error: BaseException) -> NoReturn:
        if not isinstance(error, (Exception, TaskExit)):
            raise error
        logger.debug("Task %s failed: %r", self.name, error)
        raise TaskFailure(self.name, error) from error

    def __enter__(self) -> Resumer[R, Y]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Resumer(name={self.name!r}, state={self.state.value})"


__all__ = ["Resumer"]
