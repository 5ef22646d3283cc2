"""Raw stackful coroutines backed by dedicated threads.

This module provides the untyped switch primitive the rest of cotask is built
on. Each coroutine runs its entry point on its own thread (its stack), and
control is handed back and forth through single-slot rendezvous points, so the
caller and the coroutine never run at the same time.

Only integer words cross a switch. Giving those words a meaning is left to the
layer above.

Usage:
    def entry(coroutine, word):
        reply = coroutine.yield_with(word + 1)
        return reply * 2

    handle = Coroutine.spawn(entry)
    handle.resume(1)   # -> 2
    handle.resume(10)  # -> 20, coroutine finished
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable
from types import FrameType
from typing import Optional, cast

from cotask.errors import CoroutineError, CoroutinePanic, TaskExit
from cotask.transfer import Word
from cotask.utils import JOIN_TIMEOUT, next_task_name, thread_user_frame

logger = logging.getLogger(__name__)

EntryPoint = Callable[["Coroutine", Word], Word]


class _Signal(enum.Enum):
    RESUME = "resume"
    UNWIND = "unwind"
    YIELD = "yield"
    RETURN = "return"
    UNWOUND = "unwound"
    PANIC = "panic"


class _Rendezvous:
    """One-message hand-off point; the receiver parks until a message arrives."""

    def __init__(self) -> None:
        self._ready = threading.Semaphore(0)
        self._message: tuple[_Signal, object] | None = None

    def put(self, signal: _Signal, payload: object = None) -> None:
        if self._message is not None:
            raise CoroutineError(
                f"rendezvous already holds an undelivered {self._message[0].value} message"
            )
        self._message = (signal, payload)
        self._ready.release()

    def take(self) -> tuple[_Signal, object]:
        self._ready.acquire()
        message, self._message = self._message, None
        if message is None:
            raise CoroutineError("rendezvous released without a message")
        return message


class Coroutine:
    """Execution context of a raw coroutine, as seen from inside its entry point.

    Instances are created by :meth:`spawn`; the entry point receives its own
    ``Coroutine`` and switches back to the caller with :meth:`yield_with`.

    Lifecycle:
        - The thread is allocated at spawn but only started by the first resume
        - Daemon thread, so a coroutine parked forever does not block exit
        - The thread exits right after the final switch back to the caller
    """

    def __init__(self, entry: EntryPoint, name: str) -> None:
        self.name = name
        self._entry: EntryPoint | None = entry
        self._inbox = _Rendezvous()
        self._outbox = _Rendezvous()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._started = False
        self._finished = False
        self._unwinding = False

    @classmethod
    def spawn(cls, entry: EntryPoint, *, name: str | None = None) -> Handle:
        """Allocate a coroutine for ``entry`` and return the handle that drives it."""
        coroutine = cls(entry, name or next_task_name())
        logger.debug("Spawned coroutine %s", coroutine.name)
        return Handle(coroutine)

    def is_current(self) -> bool:
        """Whether the calling code runs on this coroutine's stack."""
        return threading.current_thread() is self._thread

    def yield_with(self, word: Word) -> Word:
        """Switch back to the caller with ``word`` and wait for the next resume."""
        if not self.is_current():
            raise CoroutineError(
                f"yield_with() called outside coroutine {self.name!r}"
            )
        if self._unwinding:
            raise CoroutineError(
                f"coroutine {self.name!r} yielded after TaskExit; "
                "a closed task may only clean up and return"
            )
        self._outbox.put(_Signal.YIELD, word)
        signal, payload = self._inbox.take()
        if signal is _Signal.UNWIND:
            self._unwinding = True
            raise TaskExit(self.name)
        return cast(Word, payload)

    def _run(self) -> None:
        _, word = self._inbox.take()
        entry = cast(EntryPoint, self._entry)
        self._entry = None
        try:
            result = entry(self, cast(Word, word))
        except TaskExit as exc:
            if self._unwinding:
                self._outbox.put(_Signal.UNWOUND)
            else:
                # Raised by the body itself, not by unwind().
                self._outbox.put(_Signal.PANIC, exc)
        except BaseException as exc:
            self._outbox.put(_Signal.PANIC, exc)
        else:
            self._outbox.put(_Signal.RETURN, result)


class Handle:
    """Caller-side handle exclusively owning one raw coroutine.

    Thread Safety:
        - Not reentrant: the owner must serialize resume() and unwind()
        - resume() from inside the coroutine itself raises CoroutineError
    """

    def __init__(self, coroutine: Coroutine) -> None:
        self._coroutine = coroutine

    @property
    def name(self) -> str:
        return self._coroutine.name

    @property
    def is_started(self) -> bool:
        return self._coroutine._started

    @property
    def is_finished(self) -> bool:
        return self._coroutine._finished

    def resume(self, word: Word) -> Word:
        """Switch into the coroutine with ``word``.

        Blocks until the coroutine yields or its entry point returns, and
        returns the word it delivered.

        Raises:
            CoroutineError: If the coroutine already finished or resumes itself
            CoroutinePanic: If the entry point raised; the coroutine is finished
        """
        coroutine = self._coroutine
        if coroutine._finished:
            raise CoroutineError(f"coroutine {coroutine.name!r} already finished")
        if coroutine.is_current():
            raise CoroutineError(f"coroutine {coroutine.name!r} cannot resume itself")

        coroutine._inbox.put(_Signal.RESUME, word)
        if not coroutine._started:
            coroutine._started = True
            coroutine._thread.start()

        signal, payload = coroutine._outbox.take()
        if signal is _Signal.YIELD:
            return cast(Word, payload)

        self._finish()
        if signal is _Signal.RETURN:
            return cast(Word, payload)
        if signal is _Signal.PANIC:
            error = cast(BaseException, payload)
            raise CoroutinePanic(coroutine.name, error) from error
        error = TaskExit(coroutine.name)
        raise CoroutinePanic(coroutine.name, error) from error

    def unwind(self) -> Optional[Word]:
        """Force a suspended coroutine to finish.

        ``TaskExit`` is raised at the point where the coroutine is parked in
        yield_with(). Returns the final word if the entry point still returned
        a value, or None if it exited through ``TaskExit`` or never started.

        Raises:
            CoroutinePanic: If the entry point raised something else while unwinding
        """
        coroutine = self._coroutine
        if coroutine._finished:
            return None
        if coroutine.is_current():
            raise CoroutineError(f"coroutine {coroutine.name!r} cannot unwind itself")
        if not coroutine._started:
            coroutine._finished = True
            coroutine._entry = None
            return None

        logger.debug("Unwinding coroutine %s", coroutine.name)
        coroutine._inbox.put(_Signal.UNWIND)
        signal, payload = coroutine._outbox.take()
        self._finish()
        if signal is _Signal.RETURN:
            return cast(Word, payload)
        if signal is _Signal.PANIC:
            error = cast(BaseException, payload)
            raise CoroutinePanic(coroutine.name, error) from error
        return None

    def suspended_frame(self) -> Optional[FrameType]:
        """Innermost user frame of a started, unfinished coroutine."""
        coroutine = self._coroutine
        if not coroutine._started or coroutine._finished:
            return None
        return thread_user_frame(coroutine._thread)

    def _finish(self) -> None:
        coroutine = self._coroutine
        coroutine._finished = True
        coroutine._thread.join(timeout=JOIN_TIMEOUT)
        if coroutine._thread.is_alive():
            logger.warning(
                "Coroutine thread %s did not exit within %.1fs",
                coroutine.name,
                JOIN_TIMEOUT,
            )


__all__ = ["Coroutine", "EntryPoint", "Handle"]
