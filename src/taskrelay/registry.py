"""Name-to-handler table used by workers to resolve task names."""

from __future__ import annotations

import inspect
import threading
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TaskHandler(Protocol):
    """Executable capability registered under a task name."""

    def execute(self, args: list[Any]) -> Any:
        """Run the task with positional argument values and return its result."""


class FunctionTask:
    """Adapt a plain callable to the `TaskHandler` protocol."""

    def __init__(self, func: Callable[..., Any]) -> None:
        if not callable(func):
            raise TypeError(f"Task handler must be callable, got {type(func).__name__}")
        self.func = func

    def execute(self, args: list[Any]) -> Any:
        return self.func(*args)

    def __repr__(self) -> str:
        return f"FunctionTask({getattr(self.func, '__qualname__', self.func)!r})"


class _ReadWriteLock:
    """Many concurrent readers or one writer; writers are not starved."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class TaskRegistry:
    """Thread-safe mapping from task name to handler; last write wins."""

    def __init__(self, tasks: Mapping[str, TaskHandler | Callable[..., Any]] | None = None) -> None:
        self._lock = _ReadWriteLock()
        self._tasks: dict[str, TaskHandler] = _coerce_all(tasks or {})

    def register_all(self, tasks: Mapping[str, TaskHandler | Callable[..., Any]]) -> None:
        """Replace the whole table with `tasks`."""

        replacement = _coerce_all(tasks)
        with self._lock.write():
            self._tasks = replacement

    def register(self, name: str, handler: TaskHandler | Callable[..., Any]) -> None:
        """Insert or overwrite a single entry."""

        coerced = _coerce(name, handler)
        with self._lock.write():
            self._tasks[name] = coerced

    def lookup(self, name: str) -> TaskHandler | None:
        """Return the handler registered under `name`, or None."""

        with self._lock.read():
            return self._tasks.get(name)

    def names(self) -> list[str]:
        with self._lock.read():
            return sorted(self._tasks)

    def __contains__(self, name: object) -> bool:
        with self._lock.read():
            return name in self._tasks

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._tasks)


def _coerce(name: str, handler: TaskHandler | Callable[..., Any]) -> TaskHandler:
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"Task name must be a non-empty string, got {name!r}")
    if inspect.isclass(handler):
        raise TypeError(
            f"Task {name!r}: register an instance of {handler.__qualname__}, not the class",
        )
    if isinstance(handler, TaskHandler):
        return handler
    return FunctionTask(handler)


def _coerce_all(tasks: Mapping[str, TaskHandler | Callable[..., Any]]) -> dict[str, TaskHandler]:
    return {name: _coerce(name, handler) for name, handler in tasks.items()}
