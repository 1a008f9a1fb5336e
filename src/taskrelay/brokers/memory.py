"""In-process broker for tests and single-process deployments."""

from __future__ import annotations

import logging
import threading
from collections import deque

from taskrelay.brokers.base import BrokerMessage
from taskrelay.config import DEFAULT_ROUTING_KEY
from taskrelay.storage.common import utc_now

logger = logging.getLogger(__name__)


class InMemoryBroker:
    """Thread-safe FIFO per routing key. Nothing survives the process."""

    def __init__(self, default_routing_key: str = DEFAULT_ROUTING_KEY) -> None:
        self.default_routing_key = default_routing_key
        self._queues: dict[str, deque[BrokerMessage]] = {}
        self._lock = threading.Lock()

    def publish(self, payload: bytes, routing_key: str) -> None:
        key = routing_key or self.default_routing_key
        message = BrokerMessage(routing_key=key, body=bytes(payload), published_at=utc_now())
        with self._lock:
            self._queues.setdefault(key, deque()).append(message)
        logger.debug("Published %d bytes to %s", len(payload), key)

    def pending(self, routing_key: str | None = None) -> list[BrokerMessage]:
        """Snapshot of queued messages for one key (default key when None)."""

        key = routing_key or self.default_routing_key
        with self._lock:
            return list(self._queues.get(key, ()))

    def pop(self, routing_key: str | None = None) -> BrokerMessage | None:
        """Remove and return the oldest message, or None if the queue is empty."""

        key = routing_key or self.default_routing_key
        with self._lock:
            queue = self._queues.get(key)
            if not queue:
                return None
            return queue.popleft()
