"""Server: wires settings, broker, optional backend and task registry.

Submission protocol (`Server.send_task`):

1. assign a UUID if the signature has none;
2. encode the signature, aborting with `EncodingError` before any side effect;
3. record PENDING in the backend;
4. publish to the broker;
5. on publish failure record FAILURE and raise `PublishError`;
6. otherwise return an `AsyncResult`.

The PENDING write and the publish are not atomic. Backend write failures
inside `send_task` are logged and do not abort the submission.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from taskrelay.backends import Backend, TaskResult, TaskState, backend_factory
from taskrelay.brokers import Broker, broker_factory
from taskrelay.config import Settings
from taskrelay.errors import BackendWriteError, ConstructionError, PublishError
from taskrelay.registry import TaskHandler, TaskRegistry
from taskrelay.result import AsyncResult
from taskrelay.signatures import TaskSignature, encode_signature

logger = logging.getLogger(__name__)

BrokerFactory = Callable[[Settings], Broker]
BackendFactory = Callable[[Settings], Backend | None]


class Server:
    """Long-lived orchestrator for task submission."""

    def __init__(
        self,
        settings: Settings,
        *,
        broker: Broker,
        backend: Backend | None = None,
        registry: TaskRegistry | None = None,
    ) -> None:
        self._settings = settings
        self._broker = broker
        self._backend = backend
        self._registry = registry if registry is not None else TaskRegistry()

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def broker(self) -> Broker:
        return self._broker

    @property
    def backend(self) -> Backend | None:
        return self._backend

    @property
    def registry(self) -> TaskRegistry:
        return self._registry

    def register_tasks(self, tasks: Mapping[str, TaskHandler | Callable[..., Any]]) -> None:
        """Replace all registered tasks at once."""

        self._registry.register_all(tasks)

    def register_task(self, name: str, handler: TaskHandler | Callable[..., Any]) -> None:
        self._registry.register(name, handler)

    def get_registered_task(self, name: str) -> TaskHandler | None:
        return self._registry.lookup(name)

    def send_task(self, signature: TaskSignature) -> AsyncResult:
        """Publish `signature` to its routing key and return a polling handle."""

        task_uuid = signature.ensure_uuid()
        message = encode_signature(signature)

        self._record_best_effort(task_uuid, TaskState.PENDING, None)

        try:
            self._broker.publish(message, signature.routing_key)
        except Exception as error:
            self._record_best_effort(
                task_uuid,
                TaskState.FAILURE,
                TaskResult(error=f"Publish message: {error}"),
            )
            logger.error("Publish failed for task %s (%s): %s", task_uuid, signature.name, error)
            raise PublishError(f"Publish message: {error}", task_uuid=task_uuid) from error

        logger.info(
            "Sent task %s (%s) to %s",
            task_uuid,
            signature.name,
            signature.routing_key or "<default>",
        )
        return AsyncResult(task_uuid=task_uuid, backend=self._backend)

    def update_task_state(
        self,
        task_uuid: str,
        state: TaskState,
        result: TaskResult | None = None,
    ) -> None:
        """Forward a state transition to the backend; no-op without one."""

        state = TaskState(state)
        if self._backend is None:
            return
        try:
            self._backend.update_state(task_uuid, state, result)
        except Exception as error:
            raise BackendWriteError(
                f"Update state {state.value} for task {task_uuid}: {error}",
                task_uuid=task_uuid,
                state=state.value,
            ) from error

    def _record_best_effort(
        self,
        task_uuid: str,
        state: TaskState,
        result: TaskResult | None,
    ) -> None:
        try:
            self.update_task_state(task_uuid, state, result)
        except BackendWriteError as error:
            logger.warning("Ignoring result backend failure: %s", error)


def new_server(
    settings: Settings,
    *,
    broker_factory: BrokerFactory = broker_factory,
    backend_factory: BackendFactory = backend_factory,
) -> Server:
    """Build a Server; a broker is mandatory, a result backend is not."""

    try:
        broker = broker_factory(settings)
    except Exception as error:
        raise ConstructionError(f"Broker unavailable ({settings.broker.url}): {error}") from error

    backend: Backend | None
    try:
        backend = backend_factory(settings)
    except Exception as error:  # noqa: BLE001
        logger.warning(
            "Result backend unavailable (%s), task states will not be tracked: %s",
            settings.backend.url,
            error,
        )
        backend = None

    return Server(settings, broker=broker, backend=backend)
