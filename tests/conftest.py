"""Shared test fixtures."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from taskrelay.backends import TaskResult, TaskState, TaskStateView
from taskrelay.config import BackendSettings, BrokerSettings, Settings
from taskrelay.storage.common import utc_now


@dataclass
class CallLog:
    """Ordered record of collaborator calls across broker and backend."""

    entries: list[tuple[str, ...]] = field(default_factory=list)


class RecordingBroker:
    def __init__(self, log: CallLog, *, error: Exception | None = None) -> None:
        self.log = log
        self.error = error
        self.published: list[tuple[bytes, str]] = []

    def publish(self, payload: bytes, routing_key: str) -> None:
        self.log.entries.append(("publish", routing_key))
        if self.error is not None:
            raise self.error
        self.published.append((payload, routing_key))


class RecordingBackend:
    def __init__(self, log: CallLog, *, fail_states: frozenset[TaskState] = frozenset()) -> None:
        self.log = log
        self.fail_states = fail_states
        self.writes: list[tuple[str, TaskState, TaskResult | None]] = []

    def update_state(self, task_uuid: str, state: TaskState, result: TaskResult | None) -> None:
        self.log.entries.append(("update_state", task_uuid, state.value))
        if state in self.fail_states:
            raise OSError("disk full")
        self.writes.append((task_uuid, state, result))

    def get_state(self, task_uuid: str) -> TaskStateView | None:
        for uuid, state, result in reversed(self.writes):
            if uuid == task_uuid:
                return TaskStateView(
                    task_uuid=uuid,
                    state=state,
                    result=result,
                    updated_at=utc_now(),
                )
        return None


@pytest.fixture()
def call_log() -> CallLog:
    return CallLog()


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        broker=BrokerSettings(url="memory://", default_routing_key="default_queue"),
        backend=BackendSettings(url="memory://"),
    )


@pytest.fixture()
def clean_env(monkeypatch):
    """Drop TASKRELAY_* variables inherited from the developer shell."""
    for name in (
        "TASKRELAY_BROKER_URL",
        "TASKRELAY_DEFAULT_ROUTING_KEY",
        "TASKRELAY_RESULT_BACKEND_URL",
        "TASKRELAY_RESULT_EXPIRES_SECONDS",
        "TASKRELAY_SQLITE_BUSY_TIMEOUT_MS",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def broker(call_log: CallLog) -> RecordingBroker:
    return RecordingBroker(call_log)


@pytest.fixture()
def backend(call_log: CallLog) -> RecordingBackend:
    return RecordingBackend(call_log)
