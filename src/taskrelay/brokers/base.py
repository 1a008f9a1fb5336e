"""Broker interface for publishing encoded tasks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(slots=True)
class BrokerMessage:
    """One published payload as held by a reference broker."""

    routing_key: str
    body: bytes
    published_at: datetime


class Broker(Protocol):
    """Protocol implemented by message transports. Must accept concurrent callers."""

    def publish(self, payload: bytes, routing_key: str) -> None:
        """Deliver `payload` to `routing_key`; raise on failure."""
