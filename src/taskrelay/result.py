"""Caller-held handle for polling a submitted task."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from taskrelay.backends.base import Backend, TaskState, TaskStateView
from taskrelay.errors import BackendNotConfiguredError, ResultTimeoutError, TaskFailedError

DEFAULT_POLL_INTERVAL_SECONDS = 0.1


@dataclass(frozen=True, slots=True)
class AsyncResult:
    """Identity of a submitted task plus the backend that tracks it."""

    task_uuid: str
    backend: Backend | None

    def state(self) -> TaskStateView | None:
        """Last recorded state, or None while the backend has no record."""

        if self.backend is None:
            raise BackendNotConfiguredError(
                f"No result backend configured; cannot poll task {self.task_uuid}.",
            )
        return self.backend.get_state(self.task_uuid)

    def ready(self) -> bool:
        view = self.state()
        return view is not None and view.state.is_terminal

    def get(
        self,
        timeout: float | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> Any:
        """Block until the task finishes and return its result values.

        A single result value is returned unwrapped, several as a list and
        none as None. FAILURE raises `TaskFailedError`.
        """

        deadline = time.monotonic() + timeout if timeout is not None else None
        while True:
            view = self.state()
            if view is not None and view.state == TaskState.SUCCESS:
                values = [item.value for item in view.result.values] if view.result else []
                if not values:
                    return None
                return values[0] if len(values) == 1 else values
            if view is not None and view.state == TaskState.FAILURE:
                error = view.result.error if view.result and view.result.error else "unknown error"
                raise TaskFailedError(
                    f"Task {self.task_uuid} failed: {error}",
                    task_uuid=self.task_uuid,
                )
            if deadline is not None and time.monotonic() >= deadline:
                current = view.state.value if view is not None else "no record"
                raise ResultTimeoutError(
                    f"Task {self.task_uuid} not finished after {timeout}s (state: {current})",
                )
            time.sleep(poll_interval)
