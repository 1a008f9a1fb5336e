"""Result backend state table with append-only transition log."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261014_0002"
down_revision = "20261012_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "task_states",
        sa.Column("task_uuid", sa.String(), nullable=False),
        sa.Column("state", sa.String(), nullable=False),
        sa.Column("result_json", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("task_uuid"),
    )
    op.create_index("ix_task_states_state", "task_states", ["state"], unique=False)

    op.create_table(
        "task_state_events",
        sa.Column("event_id", sa.Integer(), nullable=False),
        sa.Column("task_uuid", sa.String(), nullable=False),
        sa.Column("state_from", sa.String(), nullable=True),
        sa.Column("state_to", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("event_id"),
    )
    op.create_index(
        "idx_task_state_events_task_time",
        "task_state_events",
        ["task_uuid", "event_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("idx_task_state_events_task_time", table_name="task_state_events")
    op.drop_table("task_state_events")
    op.drop_index("ix_task_states_state", table_name="task_states")
    op.drop_table("task_states")
