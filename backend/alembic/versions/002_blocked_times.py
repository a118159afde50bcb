# backend/alembic/versions/002_blocked_times.py
"""Blocked calendar periods per studio

Revision ID: 002_blocked_times
Revises: 001_massava_foundation
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "002_blocked_times"
down_revision: Union[str, None] = "001_massava_foundation"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "blocked_times",
        sa.Column("id", sa.String(26), primary_key=True),
        sa.Column("studio_id", sa.String(26), sa.ForeignKey("studios.id", ondelete="CASCADE"), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(500), nullable=True),
        sa.Column("is_all_day", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.String(26), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("end_time > start_time", name="ck_blocked_times_range"),
    )
    op.create_index("ix_blocked_times_studio_start", "blocked_times", ["studio_id", "start_time"])


def downgrade() -> None:
    op.drop_index("ix_blocked_times_studio_start", table_name="blocked_times")
    op.drop_table("blocked_times")
