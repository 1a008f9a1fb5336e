"""Durable result backend storing task states in SQLite."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

from sqlalchemy import delete as sa_delete
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, col, select

from taskrelay.backends.base import TaskResult, TaskState, TaskStateView
from taskrelay.storage.common import (
    build_sqlite_engine,
    expiry_cutoff,
    to_db_datetime,
    to_utc_aware_datetime,
    utc_now,
)
from taskrelay.storage.migrations import upgrade_head
from taskrelay.storage.models import TaskStateEventRow, TaskStateRow


class SQLiteBackend:
    """Last-write-wins state table plus an append-only transition log."""

    def __init__(
        self,
        db_path: Path,
        *,
        busy_timeout_ms: int = 5_000,
        result_expires_seconds: int = 3_600,
    ) -> None:
        self.db_path = db_path
        self.result_expires_seconds = result_expires_seconds
        self.engine = build_sqlite_engine(db_path=db_path, busy_timeout_ms=busy_timeout_ms)

    def close(self) -> None:
        """Close underlying DB resources."""

        self.engine.dispose()

    def init_schema(self) -> None:
        """Run schema migrations."""

        upgrade_head(self.db_path)

    def update_state(self, task_uuid: str, state: TaskState, result: TaskResult | None) -> None:
        state = TaskState(state)
        now = to_db_datetime(utc_now())
        result_json = (
            json.dumps(result.to_dict(), ensure_ascii=False, sort_keys=True)
            if result is not None
            else None
        )
        with Session(self.engine) as session:
            previous = session.get(TaskStateRow, task_uuid)
            state_from = previous.state if previous is not None else None
            upsert = sqlite_insert(TaskStateRow).values(
                task_uuid=task_uuid,
                state=state.value,
                result_json=result_json,
                created_at=now,
                updated_at=now,
            )
            session.exec(
                upsert.on_conflict_do_update(
                    index_elements=["task_uuid"],
                    set_={
                        "state": upsert.excluded.state,
                        "result_json": upsert.excluded.result_json,
                        "updated_at": upsert.excluded.updated_at,
                    },
                ),
            )
            session.add(
                TaskStateEventRow(
                    task_uuid=task_uuid,
                    state_from=state_from,
                    state_to=state.value,
                    created_at=now,
                ),
            )
            session.commit()

    def get_state(self, task_uuid: str) -> TaskStateView | None:
        with Session(self.engine) as session:
            row = session.get(TaskStateRow, task_uuid)
            if row is None:
                return None
            return _to_state_view(row)

    def history(self, task_uuid: str) -> list[TaskState]:
        """States recorded for `task_uuid`, oldest first."""

        with Session(self.engine) as session:
            rows = session.exec(
                select(TaskStateEventRow)
                .where(TaskStateEventRow.task_uuid == task_uuid)
                .order_by(col(TaskStateEventRow.event_id).asc()),
            ).all()
            return [TaskState(row.state_to) for row in rows]

    def purge_expired(self, *, older_than: datetime | None = None) -> int:
        """Delete terminal states last updated before `older_than`.

        Without `older_than` the cutoff is `result_expires_seconds` ago.
        """

        cutoff = to_db_datetime(older_than or expiry_cutoff(self.result_expires_seconds))
        terminal = [TaskState.SUCCESS.value, TaskState.FAILURE.value]
        with Session(self.engine) as session:
            expired = session.exec(
                select(TaskStateRow.task_uuid).where(
                    col(TaskStateRow.state).in_(terminal),
                    col(TaskStateRow.updated_at) < cutoff,
                ),
            ).all()
            if not expired:
                return 0
            session.exec(
                sa_delete(TaskStateEventRow).where(col(TaskStateEventRow.task_uuid).in_(expired)),
            )
            session.exec(sa_delete(TaskStateRow).where(col(TaskStateRow.task_uuid).in_(expired)))
            session.commit()
            return len(expired)


def _to_state_view(row: TaskStateRow) -> TaskStateView:
    return TaskStateView(
        task_uuid=row.task_uuid,
        state=TaskState(row.state),
        result=TaskResult.from_dict(json.loads(row.result_json)) if row.result_json else None,
        updated_at=to_utc_aware_datetime(row.updated_at),
    )
