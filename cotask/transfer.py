"""Single-value transfer slot shared by a task handle and its body.

The raw engine only carries an integer word across a switch. The sending side
boxes its value into the slot and passes the returned word; the receiving side
unboxes it with :meth:`TransferSlot.take`, which removes the entry so the same
value can never be read twice.
"""

from __future__ import annotations

import itertools
import threading
from typing import Any

from cotask.errors import ContractViolation

Word = int


class TransferSlot:
    """Holds at most one in-flight value, keyed by the word handed to the engine."""

    __slots__ = ("_words", "_word", "_value", "_lock")

    def __init__(self) -> None:
        self._words = itertools.count(1)
        self._word: Word | None = None
        self._value: Any = None
        self._lock = threading.Lock()

    @property
    def is_empty(self) -> bool:
        with self._lock:
            return self._word is None

    def put(self, value: Any) -> Word:
        """Box ``value`` and return the word that identifies it."""
        with self._lock:
            if self._word is not None:
                raise ContractViolation(
                    f"transfer slot already holds word {self._word}; "
                    "a switch must retrieve its value before the next one is sent"
                )
            self._word = next(self._words)
            self._value = value
            return self._word

    def take(self, word: Word) -> Any:
        """Unbox and release the value for ``word``."""
        with self._lock:
            if self._word is None or word != self._word:
                raise ContractViolation(
                    f"word {word} does not refer to a value in the transfer slot"
                )
            value = self._value
            self._word = None
            self._value = None
            return value

    def discard(self) -> None:
        """Drop any in-flight value without delivering it."""
        with self._lock:
            self._word = None
            self._value = None


__all__ = ["TransferSlot", "Word"]
