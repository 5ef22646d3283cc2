"""
Request/Response Task
====================

This example drives a small number parser running as a task. The caller
sends text requests, the task answers with typed responses, and the final
"done" request makes the body return.

1. Typed requests and responses shared by the caller and the body
2. Resuming until the task completes
3. Handling DeadTask after completion
"""

from dataclasses import dataclass

from cotask import DeadTask, Yielder, spawn


@dataclass(frozen=True)
class Parse:
    text: str


@dataclass(frozen=True)
class Parsed:
    value: int | float | None


def parser(yielder: Yielder[Parse, Parsed], request: Parse) -> Parsed:
    """Parse numbers until asked to stop; return how many were parsed."""
    count = 0
    while request.text != "done":
        try:
            value: int | float | None = int(request.text)
        except ValueError:
            try:
                value = float(request.text)
            except ValueError:
                value = None
        if value is not None:
            count += 1
        request = yielder.yield_with(Parsed(value))
    return Parsed(count)


def main() -> None:
    task = spawn(parser, name="parser")

    for text in ["123", "1.23", "abc", "done"]:
        response = task.resume_with(Parse(text))
        print(f"  {text!r:8} -> {response.value!r}  ({task.state.value})")

    try:
        task.resume_with(Parse("again"))
    except DeadTask as exc:
        print(f"\n{exc}")


if __name__ == "__main__":
    main()
