"""meetsync — platforms, athletes, attempts and the sync log

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

Changes:
  - Create platforms table (registry of scoring stations)
  - Create athletes / attempts tables (platform-tagged, no platform FK)
  - Create platform_sync_logs table with a pending-entries index
"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── platforms ─────────────────────────────────────────────────────────────
    op.create_table(
        "platforms",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("competition_id", sa.String(36), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # ── athletes ──────────────────────────────────────────────────────────────
    op.create_table(
        "athletes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("competition_id", sa.String(36), nullable=False, index=True),
        sa.Column("platform_id", sa.String(36), nullable=True),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False),
        sa.Column("gender", sa.String(5), nullable=False),
        sa.Column("weight_class", sa.String(20), nullable=False),
        sa.Column("division", sa.String(50), nullable=False),
        sa.Column("age_category", sa.String(50), nullable=False),
        sa.Column("lot_number", sa.Integer(), nullable=True),
        sa.Column("bodyweight", sa.Float(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # ── attempts ──────────────────────────────────────────────────────────────
    op.create_table(
        "attempts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "athlete_id",
            sa.String(36),
            sa.ForeignKey("athletes.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("platform_id", sa.String(36), nullable=True),
        sa.Column("lift_type", sa.String(20), nullable=False),
        sa.Column("attempt_number", sa.Integer(), nullable=False),
        sa.Column("weight_kg", sa.Float(), nullable=False),
        sa.Column("successful", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # ── platform_sync_logs ────────────────────────────────────────────────────
    op.create_table(
        "platform_sync_logs",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("competition_id", sa.String(36), nullable=False),
        sa.Column("source_platform_id", sa.String(36), nullable=False),
        sa.Column("target_platform_id", sa.String(36), nullable=True),
        sa.Column("sync_type", sa.String(30), nullable=False),
        sa.Column("data", sa.Text(), nullable=False),
        sa.Column("synced", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
    )

    # Pending entries are always read per competition, oldest first
    op.create_index(
        "ix_sync_logs_pending",
        "platform_sync_logs",
        ["competition_id", "synced", "timestamp"],
    )


def downgrade() -> None:
    op.drop_index("ix_sync_logs_pending", table_name="platform_sync_logs")
    op.drop_table("platform_sync_logs")
    op.drop_table("attempts")
    op.drop_table("athletes")
    op.drop_table("platforms")
