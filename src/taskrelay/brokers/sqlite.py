"""Durable broker persisting published messages in SQLite."""

from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy import delete as sa_delete
from sqlmodel import Session, col, select

from taskrelay.brokers.base import BrokerMessage
from taskrelay.config import DEFAULT_ROUTING_KEY
from taskrelay.storage.common import (
    build_sqlite_engine,
    to_db_datetime,
    to_utc_aware_datetime,
    utc_now,
)
from taskrelay.storage.migrations import upgrade_head
from taskrelay.storage.models import BrokerMessageRow

logger = logging.getLogger(__name__)


class SQLiteBroker:
    """Queue persistence facade backed by SQLModel + SQLite."""

    def __init__(
        self,
        db_path: Path,
        *,
        default_routing_key: str = DEFAULT_ROUTING_KEY,
        busy_timeout_ms: int = 5_000,
    ) -> None:
        self.db_path = db_path
        self.default_routing_key = default_routing_key
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=busy_timeout_ms)

    def close(self) -> None:
        """Close underlying DB resources."""

        self.engine.dispose()

    def init_schema(self) -> None:
        """Run schema migrations."""

        upgrade_head(self.db_path)

    def publish(self, payload: bytes, routing_key: str) -> None:
        key = routing_key or self.default_routing_key
        with Session(self.engine) as session:
            session.add(
                BrokerMessageRow(
                    routing_key=key,
                    body=bytes(payload),
                    published_at=to_db_datetime(utc_now()),
                ),
            )
            session.commit()
        logger.debug("Persisted %d bytes for %s in %s", len(payload), key, self.db_path)

    def pending(self, routing_key: str | None = None) -> list[BrokerMessage]:
        """Queued messages for one key in publish order."""

        key = routing_key or self.default_routing_key
        with Session(self.engine) as session:
            rows = session.exec(
                select(BrokerMessageRow)
                .where(BrokerMessageRow.routing_key == key)
                .order_by(col(BrokerMessageRow.message_id).asc()),
            ).all()
            return [_to_message(row) for row in rows]

    def pop(self, routing_key: str | None = None) -> BrokerMessage | None:
        """Remove and return the oldest message for one key.

        Concurrent consumers never receive the same message: a candidate is
        only returned if this session's delete removed it.
        """

        key = routing_key or self.default_routing_key
        while True:
            with Session(self.engine) as session:
                candidate = session.exec(
                    select(BrokerMessageRow)
                    .where(BrokerMessageRow.routing_key == key)
                    .order_by(col(BrokerMessageRow.message_id).asc())
                    .limit(1),
                ).one_or_none()
                if candidate is None:
                    return None

                message = _to_message(candidate)
                result = session.exec(
                    sa_delete(BrokerMessageRow).where(
                        col(BrokerMessageRow.message_id) == candidate.message_id,
                    ),
                )
                if result.rowcount != 1:
                    session.rollback()
                    continue
                session.commit()
                return message


def _to_message(row: BrokerMessageRow) -> BrokerMessage:
    return BrokerMessage(
        routing_key=row.routing_key,
        body=row.body,
        published_at=to_utc_aware_datetime(row.published_at),
    )
