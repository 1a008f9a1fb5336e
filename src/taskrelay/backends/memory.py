"""In-process result backend."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime

from taskrelay.backends.base import TaskResult, TaskState, TaskStateView
from taskrelay.storage.common import expiry_cutoff, utc_now


class InMemoryBackend:
    """Thread-safe dict of last known states; last write wins."""

    def __init__(self, *, result_expires_seconds: int = 3_600) -> None:
        self.result_expires_seconds = result_expires_seconds
        self._states: dict[str, TaskStateView] = {}
        self._lock = threading.Lock()

    def update_state(self, task_uuid: str, state: TaskState, result: TaskResult | None) -> None:
        view = TaskStateView(
            task_uuid=task_uuid,
            state=TaskState(state),
            result=result,
            updated_at=utc_now(),
        )
        with self._lock:
            self._states[task_uuid] = view

    def get_state(self, task_uuid: str) -> TaskStateView | None:
        with self._lock:
            view = self._states.get(task_uuid)
            return replace(view) if view is not None else None

    def forget(self, task_uuid: str) -> bool:
        """Drop the record for `task_uuid`; return whether one existed."""

        with self._lock:
            return self._states.pop(task_uuid, None) is not None

    def purge_expired(self, *, older_than: datetime | None = None) -> int:
        cutoff = older_than or expiry_cutoff(self.result_expires_seconds)
        with self._lock:
            expired = [
                task_uuid
                for task_uuid, view in self._states.items()
                if view.state.is_terminal and view.updated_at < cutoff
            ]
            for task_uuid in expired:
                del self._states[task_uuid]
        return len(expired)
