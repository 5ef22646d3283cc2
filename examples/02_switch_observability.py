"""
Switch Observability
====================

This example watches a task through its monitor:

1. Observe each switch via an on_switch callback
2. See the body line where the task is suspended
3. Close a task that is still suspended and watch its cleanup run
"""

from cotask import TaskSnapshot, Yielder, spawn


def accumulator(yielder: Yielder[int, int], first: int) -> int:
    total = first
    try:
        while True:
            total += yielder.yield_with(total)
    finally:
        print(f"  cleanup: final total {total}")


def on_switch(snapshot: TaskSnapshot) -> None:
    where = snapshot.location.format() if snapshot.location else "-"
    print(f"  switch {snapshot.switch_count}: {snapshot.state.value} at {where}")


def main() -> None:
    print("=== Observing switches ===")
    with spawn(accumulator, name="accumulator", on_switch=on_switch) as task:
        for value in (1, 2, 3):
            print(f"resume_with({value}) -> {task.resume_with(value)}")
        print("closing while suspended")
    print(f"state after close: {task.state.value}")


if __name__ == "__main__":
    main()
