"""
Pytest configuration for cotask tests.

Provides a ready-made echo task and a collector for switch snapshots.
"""

from collections.abc import Iterator

import pytest

from cotask import Resumer, TaskSnapshot, Yielder, spawn


def echo_body(yielder: Yielder[str, str], first: str) -> str:
    """Echo every input upper-cased until "stop" arrives."""
    current = first
    while current != "stop":
        current = yielder.yield_with(current.upper())
    return "stopped"


@pytest.fixture
def echo_task() -> Iterator[Resumer[str, str]]:
    task = spawn(echo_body, name="echo")
    yield task
    task.close()


@pytest.fixture
def snapshots() -> list[TaskSnapshot]:
    return []
