from __future__ import annotations

import threading

import allure
import pytest

from taskrelay.backends import InMemoryBackend, TaskResult, TaskState
from taskrelay.errors import BackendNotConfiguredError, ResultTimeoutError, TaskFailedError
from taskrelay.result import AsyncResult
from taskrelay.signatures import TaskArg

pytestmark = [
    allure.epic("Task Dispatch"),
    allure.feature("Result Polling"),
]


def test_state_without_backend_raises() -> None:
    with pytest.raises(BackendNotConfiguredError, match="cannot poll task u-1"):
        AsyncResult(task_uuid="u-1", backend=None).state()


def test_state_unknown_task_is_none() -> None:
    result = AsyncResult(task_uuid="u-1", backend=InMemoryBackend())

    assert result.state() is None
    assert result.ready() is False


def test_get_returns_single_value_unwrapped() -> None:
    backend = InMemoryBackend()
    backend.update_state("u-1", TaskState.SUCCESS, TaskResult(values=[TaskArg("int", 7)]))

    assert AsyncResult("u-1", backend).get(timeout=1) == 7


def test_get_returns_list_for_multiple_values_and_none_for_empty() -> None:
    backend = InMemoryBackend()
    backend.update_state(
        "many",
        TaskState.SUCCESS,
        TaskResult(values=[TaskArg("int", 1), TaskArg("str", "two")]),
    )
    backend.update_state("empty", TaskState.SUCCESS, None)

    assert AsyncResult("many", backend).get(timeout=1) == [1, "two"]
    assert AsyncResult("empty", backend).get(timeout=1) is None


def test_get_raises_on_failure_state() -> None:
    backend = InMemoryBackend()
    backend.update_state("u-1", TaskState.FAILURE, TaskResult(error="boom"))

    with pytest.raises(TaskFailedError, match="boom") as excinfo:
        AsyncResult("u-1", backend).get(timeout=1)

    assert excinfo.value.task_uuid == "u-1"


def test_get_times_out_while_pending() -> None:
    backend = InMemoryBackend()
    backend.update_state("u-1", TaskState.PENDING, None)

    with pytest.raises(ResultTimeoutError, match="state: PENDING"):
        AsyncResult("u-1", backend).get(timeout=0.05, poll_interval=0.01)


def test_get_waits_for_worker_driven_transition() -> None:
    backend = InMemoryBackend()
    backend.update_state("u-1", TaskState.PENDING, None)

    def finish() -> None:
        backend.update_state("u-1", TaskState.STARTED, None)
        backend.update_state("u-1", TaskState.SUCCESS, TaskResult(values=[TaskArg("str", "ok")]))

    timer = threading.Timer(0.05, finish)
    timer.start()
    try:
        assert AsyncResult("u-1", backend).get(timeout=5, poll_interval=0.01) == "ok"
    finally:
        timer.cancel()


def test_async_result_is_immutable() -> None:
    result = AsyncResult("u-1", None)

    with pytest.raises(AttributeError):
        result.task_uuid = "other"  # type: ignore[misc]
