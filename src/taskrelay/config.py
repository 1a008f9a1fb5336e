"""Runtime configuration for brokers and result backends."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from urllib.parse import urlparse

DEFAULT_ROUTING_KEY = "taskrelay_tasks"
SUPPORTED_SCHEMES = frozenset({"memory", "sqlite"})


@dataclass(slots=True)
class BrokerSettings:
    """Message transport settings."""

    url: str = "memory://"
    default_routing_key: str = DEFAULT_ROUTING_KEY


@dataclass(slots=True)
class BackendSettings:
    """Result-state store settings. An empty URL means no backend."""

    url: str = ""
    result_expires_seconds: int = 3_600


@dataclass(slots=True)
class StorageSettings:
    """SQLite connection policy shared by durable brokers and backends."""

    busy_timeout_ms: int = 5_000


@dataclass(slots=True)
class Settings:
    """Application settings grouped by collaborator."""

    broker: BrokerSettings = field(default_factory=BrokerSettings)
    backend: BackendSettings = field(default_factory=BackendSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)

    @classmethod
    def from_env(
        cls,
        broker_url: str | None = None,
        backend_url: str | None = None,
    ) -> Settings:
        """Load settings from environment with defaults for local development."""

        return cls(
            broker=BrokerSettings(
                url=broker_url or os.getenv("TASKRELAY_BROKER_URL", "memory://"),
                default_routing_key=os.getenv(
                    "TASKRELAY_DEFAULT_ROUTING_KEY",
                    DEFAULT_ROUTING_KEY,
                ),
            ),
            backend=BackendSettings(
                url=(
                    backend_url
                    if backend_url is not None
                    else os.getenv("TASKRELAY_RESULT_BACKEND_URL", "")
                ),
                result_expires_seconds=int(
                    os.getenv("TASKRELAY_RESULT_EXPIRES_SECONDS", "3600"),
                ),
            ),
            storage=StorageSettings(
                busy_timeout_ms=int(os.getenv("TASKRELAY_SQLITE_BUSY_TIMEOUT_MS", "5000")),
            ),
        )

    def validate(self) -> None:
        """Raise configuration error on malformed URLs or non-positive limits."""

        _validate_url(self.broker.url, name="TASKRELAY_BROKER_URL")
        if self.backend.url:
            _validate_url(self.backend.url, name="TASKRELAY_RESULT_BACKEND_URL")
        if not self.broker.default_routing_key.strip():
            raise ValueError("TASKRELAY_DEFAULT_ROUTING_KEY must be a non-empty string.")
        if self.backend.result_expires_seconds < 0:
            raise ValueError("TASKRELAY_RESULT_EXPIRES_SECONDS must be >= 0.")
        if self.storage.busy_timeout_ms <= 0:
            raise ValueError("TASKRELAY_SQLITE_BUSY_TIMEOUT_MS must be > 0.")


def _validate_url(value: str, *, name: str) -> None:
    parsed = urlparse(value)
    if parsed.scheme not in SUPPORTED_SCHEMES:
        raise ValueError(
            f"Invalid {name}: {value!r}. "
            f"Expected one of: {', '.join(sorted(f'{s}://' for s in SUPPORTED_SCHEMES))}.",
        )
    if parsed.scheme == "sqlite" and not parsed.path.strip("/"):
        raise ValueError(f"Invalid {name}: {value!r}. SQLite URL must include a file path.")
