"""Common helpers for SQLite-backed collaborators."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime, timedelta
from pathlib import Path

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool
from sqlmodel import create_engine


def utc_now() -> datetime:
    """Current UTC timestamp."""

    return datetime.now(tz=UTC)


def expiry_cutoff(result_expires_seconds: int) -> datetime:
    """Timestamp before which terminal task states count as expired."""

    return utc_now() - timedelta(seconds=result_expires_seconds)


def to_db_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def to_utc_aware_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def sqlite_path_from_url(url: str) -> Path:
    """Extract the database file path from a `sqlite:///path` URL."""

    prefix = "sqlite:///"
    if not url.startswith(prefix) or not url[len(prefix) :]:
        raise ValueError(f"Expected sqlite:///<path> URL, got {url!r}")
    return Path(url[len(prefix) :])


def build_sqlite_engine(*, db_path: Path, busy_timeout_ms: int) -> Engine:
    """Engine shared by the SQLite broker and backend.

    Connections are not pooled; every session opens its own connection so
    worker threads and processes can share one database file. Missing parent
    directories are created.
    """

    db_path.parent.mkdir(parents=True, exist_ok=True)
    busy_timeout_ms = max(1, busy_timeout_ms)
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False, "timeout": busy_timeout_ms / 1000.0},
        poolclass=NullPool,
    )

    def on_connect(dbapi_connection: sqlite3.Connection, _record: object) -> None:
        cursor = dbapi_connection.cursor()
        try:
            for pragma in _connection_pragmas(busy_timeout_ms):
                cursor.execute(pragma)
        finally:
            cursor.close()

    event.listen(engine, "connect", on_connect)
    return engine


def _connection_pragmas(busy_timeout_ms: int) -> tuple[str, ...]:
    return (
        "PRAGMA journal_mode = WAL",
        "PRAGMA synchronous = NORMAL",
        f"PRAGMA busy_timeout = {busy_timeout_ms}",
    )
