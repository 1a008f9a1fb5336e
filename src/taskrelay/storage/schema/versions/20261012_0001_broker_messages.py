"""Durable broker message table."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "20261012_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "broker_messages",
        sa.Column("message_id", sa.Integer(), nullable=False),
        sa.Column("routing_key", sa.String(), nullable=False),
        sa.Column("body", sa.LargeBinary(), nullable=False),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("message_id"),
    )
    op.create_index(
        "idx_broker_messages_queue",
        "broker_messages",
        ["routing_key", "message_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("idx_broker_messages_queue", table_name="broker_messages")
    op.drop_table("broker_messages")
