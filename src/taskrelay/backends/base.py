"""Result backend interface and task state models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from taskrelay.signatures import TaskArg


class TaskState(str, Enum):
    """Task lifecycle states shared by submitters and workers."""

    PENDING = "PENDING"
    STARTED = "STARTED"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    RETRY = "RETRY"

    @property
    def is_terminal(self) -> bool:
        return self in {TaskState.SUCCESS, TaskState.FAILURE}


@dataclass(slots=True)
class TaskResult:
    """Payload attached to a state transition."""

    values: list[TaskArg] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "values": [{"type": item.type, "value": item.value} for item in self.values],
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> TaskResult:
        return cls(
            values=[TaskArg(type=item["type"], value=item.get("value")) for item in raw["values"]],
            error=raw.get("error"),
        )


@dataclass(slots=True)
class TaskStateView:
    """Last recorded state of one task."""

    task_uuid: str
    state: TaskState
    result: TaskResult | None
    updated_at: datetime


class Backend(Protocol):
    """Protocol implemented by result-state stores."""

    def update_state(self, task_uuid: str, state: TaskState, result: TaskResult | None) -> None:
        """Record `state` for `task_uuid`, overwriting the previous one."""

    def get_state(self, task_uuid: str) -> TaskStateView | None:
        """Return the last recorded state, or None if the task is unknown."""
