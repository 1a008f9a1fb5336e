"""Broker interface and reference implementations."""

from __future__ import annotations

from urllib.parse import urlparse

from taskrelay.brokers.base import Broker, BrokerMessage
from taskrelay.brokers.memory import InMemoryBroker
from taskrelay.brokers.sqlite import SQLiteBroker
from taskrelay.config import Settings
from taskrelay.errors import UnsupportedUrlError
from taskrelay.storage.common import sqlite_path_from_url

__all__ = [
    "Broker",
    "BrokerMessage",
    "InMemoryBroker",
    "SQLiteBroker",
    "broker_factory",
]


def broker_factory(settings: Settings) -> Broker:
    """Build the broker named by `settings.broker.url`."""

    url = settings.broker.url
    scheme = urlparse(url).scheme
    if scheme == "memory":
        return InMemoryBroker(default_routing_key=settings.broker.default_routing_key)
    if scheme == "sqlite":
        broker = SQLiteBroker(
            sqlite_path_from_url(url),
            default_routing_key=settings.broker.default_routing_key,
            busy_timeout_ms=settings.storage.busy_timeout_ms,
        )
        broker.init_schema()
        return broker
    raise UnsupportedUrlError(f"Unsupported broker URL: {url!r}. Use memory:// or sqlite:///<path>.")
