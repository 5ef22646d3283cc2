"""Tests for the caller-side task handle."""

import threading

import pytest

from cotask import (
    DeadTask,
    Err,
    Ok,
    Resumer,
    TaskBusy,
    TaskExit,
    TaskFailure,
    TaskState,
    Yielder,
    spawn,
)


def test_round_trip(echo_task: Resumer[str, str]) -> None:
    """Each resume returns exactly the value the body yielded."""
    assert echo_task.resume_with("a") == "A"
    assert echo_task.resume_with("bc") == "BC"
    assert echo_task.resume_with("stop") == "stopped"


def test_first_resume_delivers_initial_value() -> None:
    seen: list[int] = []

    def body(yielder: Yielder[int, int], first: int) -> int:
        seen.append(first)
        return first * 10

    task = spawn(body)
    assert seen == []
    assert task.resume_with(7) == 70
    assert seen == [7]


def test_state_transitions(echo_task: Resumer[str, str]) -> None:
    assert echo_task.state is TaskState.SUSPENDED
    echo_task.resume_with("x")
    assert echo_task.state is TaskState.SUSPENDED
    assert not echo_task.is_done

    echo_task.resume_with("stop")
    assert echo_task.state is TaskState.COMPLETED
    assert echo_task.is_completed
    assert echo_task.is_done


def test_final_value_delivered_once_then_dead(echo_task: Resumer[str, str]) -> None:
    assert echo_task.resume_with("stop") == "stopped"

    for _ in range(3):
        with pytest.raises(DeadTask) as exc_info:
            echo_task.resume_with("more")
        assert exc_info.value.state is TaskState.COMPLETED
        assert exc_info.value.name == "echo"


def test_body_runs_on_its_own_thread_without_overlap() -> None:
    """The body runs on a separate stack, but never while the caller runs."""
    caller = threading.current_thread()
    events: list[str] = []

    def body(yielder: Yielder[str, str], first: str) -> str:
        events.append(f"task:{first}")
        assert threading.current_thread() is not caller
        second = yielder.yield_with("one")
        events.append(f"task:{second}")
        return "two"

    task = spawn(body)
    events.append("caller:before")
    assert task.resume_with("a") == "one"
    events.append("caller:between")
    assert task.resume_with("b") == "two"
    events.append("caller:after")

    assert events == [
        "caller:before",
        "task:a",
        "caller:between",
        "task:b",
        "caller:after",
    ]


def test_slot_is_empty_after_each_switch(echo_task: Resumer[str, str]) -> None:
    """A transferred value is released from the slot once the receiver takes it."""
    assert echo_task._slot.is_empty
    echo_task.resume_with("value")
    assert echo_task._slot.is_empty
    echo_task.resume_with("stop")
    assert echo_task._slot.is_empty


def test_resume_from_own_body_is_busy() -> None:
    holder: list[Resumer[int, int]] = []

    def body(yielder: Yielder[int, int], first: int) -> int:
        try:
            holder[0].resume_with(first)
        except TaskBusy:
            return -1
        return first

    task = spawn(body)
    holder.append(task)
    assert task.resume_with(5) == -1
    assert task.is_completed


def test_concurrent_resume_is_busy() -> None:
    entered = threading.Event()
    release = threading.Event()

    def body(yielder: Yielder[str, str], first: str) -> str:
        entered.set()
        release.wait(timeout=5)
        return first

    task = spawn(body)
    results: list[str] = []
    worker = threading.Thread(target=lambda: results.append(task.resume_with("first")))
    worker.start()
    assert entered.wait(timeout=5)

    assert task.state is TaskState.RUNNING
    with pytest.raises(TaskBusy):
        task.resume_with("second")
    with pytest.raises(TaskBusy):
        task.close()

    release.set()
    worker.join(timeout=5)
    assert results == ["first"]
    assert task.is_completed


def test_body_exception_surfaces_as_task_failure() -> None:
    def body(yielder: Yielder[int, int], first: int) -> int:
        yielder.yield_with(first)
        raise ValueError("boom")

    task = spawn(body, name="faulty")
    assert task.resume_with(1) == 1

    with pytest.raises(TaskFailure) as exc_info:
        task.resume_with(2)

    failure = exc_info.value
    assert failure.name == "faulty"
    assert isinstance(failure.error, ValueError)
    assert failure.__cause__ is failure.error
    assert "boom" in str(failure)
    assert task.state is TaskState.FAILED

    with pytest.raises(DeadTask) as dead:
        task.resume_with(3)
    assert dead.value.state is TaskState.FAILED


def test_body_base_exception_propagates_unwrapped() -> None:
    def body(yielder: Yielder[int, int], first: int) -> int:
        raise KeyboardInterrupt

    task = spawn(body)
    with pytest.raises(KeyboardInterrupt):
        task.resume_with(0)
    assert task.state is TaskState.FAILED


def test_body_raising_task_exit_itself_fails() -> None:
    """TaskExit not caused by close() is an ordinary failure, not an unwind."""

    def body(yielder: Yielder[int, int], first: int) -> int:
        raise TaskExit("early")

    task = spawn(body, name="quitter")
    with pytest.raises(TaskFailure) as exc_info:
        task.resume_with(0)

    assert isinstance(exc_info.value.error, TaskExit)
    assert task.state is TaskState.FAILED
    assert task._slot.is_empty

    for _ in range(2):
        with pytest.raises(DeadTask) as dead:
            task.resume_with(1)
        assert dead.value.state is TaskState.FAILED
    assert task._slot.is_empty


def test_body_raising_task_exit_after_yield_fails() -> None:
    def body(yielder: Yielder[int, int], first: int) -> int:
        yielder.yield_with(first)
        raise TaskExit("later")

    task = spawn(body)
    assert task.resume_with(1) == 1

    with pytest.raises(TaskFailure):
        task.resume_with(2)
    assert task.state is TaskState.FAILED
    with pytest.raises(DeadTask):
        task.resume_with(3)


def test_task_failure_keeps_body_traceback() -> None:
    def parse_request(yielder: Yielder[str, int], first: str) -> int:
        return int(first)

    with pytest.raises(TaskFailure) as exc_info:
        spawn(parse_request, name="parser").resume_with("twelve")

    failure = exc_info.value
    assert "parse_request" in failure.traceback
    assert "ValueError: invalid literal for int()" in failure.traceback

    described = failure.describe()
    assert described.startswith("Task 'parser' failed with ValueError")
    assert "----- Task Traceback -----" in described
    assert "parse_request" in described


def test_try_resume_with_returns_results(echo_task: Resumer[str, str]) -> None:
    assert echo_task.try_resume_with("hi") == Ok("HI")
    assert echo_task.try_resume_with("stop") == Ok("stopped")

    result = echo_task.try_resume_with("late")
    assert isinstance(result, Err)
    assert isinstance(result.error, DeadTask)
    assert not result


def test_try_resume_with_reports_failure() -> None:
    def body(yielder: Yielder[int, int], first: int) -> int:
        return 1 // first

    result = spawn(body).try_resume_with(0)
    assert result.is_err()
    assert isinstance(result.err(), TaskFailure)


def test_default_names_are_unique() -> None:
    def body(yielder: Yielder[int, int], first: int) -> int:
        return first

    first, second = spawn(body), spawn(body)
    assert first.name != second.name
    assert first.name.startswith("cotask-")


def test_repr_shows_name_and_state(echo_task: Resumer[str, str]) -> None:
    assert repr(echo_task) == "Resumer(name='echo', state=suspended)"
