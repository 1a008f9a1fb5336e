"""Exception hierarchy for task submission and state tracking."""

from __future__ import annotations


class TaskRelayError(RuntimeError):
    """Base class for all taskrelay errors."""


class EncodingError(TaskRelayError):
    """Task signature could not be serialized or deserialized."""


class PublishError(TaskRelayError):
    """Broker rejected or failed to deliver an encoded task."""

    def __init__(self, message: str, *, task_uuid: str) -> None:
        super().__init__(message)
        self.task_uuid = task_uuid


class ConstructionError(TaskRelayError):
    """Server could not be built because the mandatory broker is unavailable."""


class BackendWriteError(TaskRelayError):
    """Result backend failed to record a task state."""

    def __init__(self, message: str, *, task_uuid: str, state: str) -> None:
        super().__init__(message)
        self.task_uuid = task_uuid
        self.state = state


class UnsupportedUrlError(ValueError):
    """Broker or backend URL uses a scheme no factory understands."""


class BackendNotConfiguredError(TaskRelayError):
    """State polling was requested without a result backend."""


class TaskFailedError(TaskRelayError):
    """Task reached the FAILURE state."""

    def __init__(self, message: str, *, task_uuid: str) -> None:
        super().__init__(message)
        self.task_uuid = task_uuid


class ResultTimeoutError(TaskRelayError):
    """Task did not reach a terminal state before the deadline."""
