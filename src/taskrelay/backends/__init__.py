"""Result backend interface and reference implementations."""

from __future__ import annotations

from urllib.parse import urlparse

from taskrelay.backends.base import Backend, TaskResult, TaskState, TaskStateView
from taskrelay.backends.memory import InMemoryBackend
from taskrelay.backends.sqlite import SQLiteBackend
from taskrelay.config import Settings
from taskrelay.errors import UnsupportedUrlError
from taskrelay.storage.common import sqlite_path_from_url

__all__ = [
    "Backend",
    "InMemoryBackend",
    "SQLiteBackend",
    "TaskResult",
    "TaskState",
    "TaskStateView",
    "backend_factory",
]


def backend_factory(settings: Settings) -> Backend | None:
    """Build the backend named by `settings.backend.url`; None when unset."""

    url = settings.backend.url
    if not url:
        return None
    scheme = urlparse(url).scheme
    if scheme == "memory":
        return InMemoryBackend(result_expires_seconds=settings.backend.result_expires_seconds)
    if scheme == "sqlite":
        backend = SQLiteBackend(
            sqlite_path_from_url(url),
            busy_timeout_ms=settings.storage.busy_timeout_ms,
            result_expires_seconds=settings.backend.result_expires_seconds,
        )
        backend.init_schema()
        return backend
    raise UnsupportedUrlError(
        f"Unsupported result backend URL: {url!r}. Use memory:// or sqlite:///<path>.",
    )
