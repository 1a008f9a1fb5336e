"""SQLModel ORM tables for the durable broker and result backend."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Column, DateTime, Index, LargeBinary, Text
from sqlmodel import Field, SQLModel


class BrokerMessageRow(SQLModel, table=True):
    __tablename__ = "broker_messages"  # type: ignore[bad-override]
    __table_args__ = (Index("idx_broker_messages_queue", "routing_key", "message_id"),)

    message_id: int | None = Field(default=None, primary_key=True)
    routing_key: str
    body: bytes = Field(sa_column=Column(LargeBinary, nullable=False))
    published_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class TaskStateRow(SQLModel, table=True):
    __tablename__ = "task_states"  # type: ignore[bad-override]

    task_uuid: str = Field(primary_key=True)
    state: str = Field(index=True)
    result_json: str | None = Field(default=None, sa_column=Column(Text))
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
    updated_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))


class TaskStateEventRow(SQLModel, table=True):
    __tablename__ = "task_state_events"  # type: ignore[bad-override]
    __table_args__ = (Index("idx_task_state_events_task_time", "task_uuid", "event_id"),)

    event_id: int | None = Field(default=None, primary_key=True)
    task_uuid: str
    state_from: str | None = None
    state_to: str
    created_at: datetime = Field(sa_column=Column(DateTime(timezone=True), nullable=False))
