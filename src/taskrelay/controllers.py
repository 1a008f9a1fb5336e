"""Controllers for taskrelay CLI commands."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from taskrelay.backends import Backend, backend_factory
from taskrelay.config import Settings
from taskrelay.errors import BackendNotConfiguredError
from taskrelay.result import AsyncResult
from taskrelay.server import Server, new_server
from taskrelay.signatures import TaskArg, TaskSignature, decode_signature
from taskrelay.storage.common import expiry_cutoff


@dataclass(slots=True)
class SendTaskCommand:
    """CLI input for task submission."""

    name: str
    routing_key: str
    task_uuid: str
    args: tuple[str, ...]
    headers: tuple[str, ...]
    broker_url: str | None
    backend_url: str | None


@dataclass(slots=True)
class TaskStateCommand:
    """CLI input for state inspection."""

    task_uuid: str
    backend_url: str | None


@dataclass(slots=True)
class PurgeCommand:
    """CLI input for deleting expired task states."""

    backend_url: str | None
    expires_seconds: int | None


@dataclass(slots=True)
class QueueListCommand:
    """CLI input for listing pending broker messages."""

    routing_key: str | None
    broker_url: str | None


class TaskRelayCliController:
    """Coordinates submission and inspection CLI operations."""

    def send(self, command: SendTaskCommand) -> list[str]:
        settings = _settings(broker_url=command.broker_url, backend_url=command.backend_url)
        signature = TaskSignature(
            name=command.name,
            routing_key=command.routing_key,
            args=[parse_task_arg(raw) for raw in command.args],
            uuid=command.task_uuid,
            headers=dict(_parse_header(raw) for raw in command.headers),
        )
        with _server(settings) as server:
            result = server.send_task(signature)
            tracked = "yes" if server.backend is not None else "no"

        return [
            f"Task sent: uuid={result.task_uuid} name={signature.name} "
            f"routing_key={signature.routing_key or settings.broker.default_routing_key}",
            f"State tracking: {tracked}",
        ]

    def state(self, command: TaskStateCommand) -> list[str]:
        settings = _settings(broker_url=None, backend_url=command.backend_url)
        backend = _require_backend(settings)
        try:
            view = AsyncResult(task_uuid=command.task_uuid, backend=backend).state()
        finally:
            _close(backend)

        if view is None:
            return [f"Task not found: {command.task_uuid}"]
        lines = [
            f"Task {view.task_uuid}: state={view.state.value} "
            f"updated_at={view.updated_at.isoformat()}",
        ]
        if view.result is not None and view.result.error:
            lines.append(f"Error: {view.result.error}")
        if view.result is not None and view.result.values:
            values = [item.value for item in view.result.values]
            lines.append(f"Result: {json.dumps(values, ensure_ascii=False)}")
        return lines

    def purge(self, command: PurgeCommand) -> list[str]:
        settings = _settings(broker_url=None, backend_url=command.backend_url)
        if command.expires_seconds is not None:
            settings.backend.result_expires_seconds = command.expires_seconds
            settings.validate()
        backend = _require_backend(settings)
        try:
            purge_expired = getattr(backend, "purge_expired", None)
            if purge_expired is None:
                raise ValueError(f"Backend {settings.backend.url!r} does not support purging.")
            cutoff = expiry_cutoff(settings.backend.result_expires_seconds)
            removed = purge_expired(older_than=cutoff)
        finally:
            _close(backend)

        return [f"Purged {removed} expired task state(s) last updated before {cutoff.isoformat()}"]

    def list_queue(self, command: QueueListCommand) -> list[str]:
        settings = _settings(broker_url=command.broker_url, backend_url="")
        with _server(settings) as server:
            pending = getattr(server.broker, "pending", None)
            if pending is None:
                raise ValueError(f"Broker {settings.broker.url!r} does not support listing.")
            routing_key = command.routing_key or settings.broker.default_routing_key
            messages = pending(routing_key)

        lines = [f"Pending messages on {routing_key}: {len(messages)}"]
        for message in messages:
            signature = decode_signature(message.body)
            lines.append(
                f"- {signature.uuid} {signature.name} "
                f"args={len(signature.args)} published_at={message.published_at.isoformat()}",
            )
        return lines


def parse_task_arg(raw: str) -> TaskArg:
    """Parse a `TYPE:VALUE` CLI token into a typed argument."""

    type_name, sep, value = raw.partition(":")
    if not sep or not type_name:
        raise ValueError(f"Invalid --arg {raw!r}. Expected format '<type>:<value>'.")
    if type_name == "int":
        return TaskArg(type="int", value=int(value))
    if type_name == "float":
        return TaskArg(type="float", value=float(value))
    if type_name == "bool":
        normalized = value.strip().lower()
        if normalized not in {"true", "false", "1", "0"}:
            raise ValueError(f"Invalid bool value for --arg: {value!r}")
        return TaskArg(type="bool", value=normalized in {"true", "1"})
    if type_name == "json":
        return TaskArg(type="json", value=json.loads(value))
    return TaskArg(type=type_name, value=value)


def _parse_header(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise ValueError(f"Invalid --header {raw!r}. Expected format '<key>=<value>'.")
    return key.strip(), value


def _settings(*, broker_url: str | None, backend_url: str | None) -> Settings:
    settings = Settings.from_env(broker_url=broker_url, backend_url=backend_url)
    settings.validate()
    return settings


def _require_backend(settings: Settings) -> Backend:
    backend = backend_factory(settings)
    if backend is None:
        raise BackendNotConfiguredError(
            "No result backend configured. Set TASKRELAY_RESULT_BACKEND_URL "
            "or pass --backend-url.",
        )
    return backend


@contextmanager
def _server(settings: Settings) -> Iterator[Server]:
    server = new_server(settings)
    try:
        yield server
    finally:
        _close(server.broker)
        _close(server.backend)


def _close(resource: object) -> None:
    close = getattr(resource, "close", None)
    if close is not None:
        close()
