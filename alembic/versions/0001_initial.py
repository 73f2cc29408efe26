"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16

Savings ledger table. Entries are append-only; a confirmation is its own
row pointing at the estimate it supersedes through confirms_entry_id.
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial"
down_revision: str | None = None
branch_labels = None
depends_on = None

_CATEGORIES = ("food", "shopping", "entertainment", "transport", "subscription", "other")
_TRIGGERS = (
    "mood_alert",
    "location_alert",
    "ai_suggestion",
    "manual",
    "time_based",
    "weather_based",
)


def upgrade() -> None:
    # ------------------------------------------------------------------
    # savings_entries
    # ------------------------------------------------------------------
    op.create_table(
        "savings_entries",
        sa.Column("id", sa.String(64), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(128), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="EUR"),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "category",
            sa.Enum(*_CATEGORIES, name="savings_category"),
            nullable=False,
        ),
        sa.Column(
            "trigger_type",
            sa.Enum(*_TRIGGERS, name="savings_trigger_type"),
            nullable=False,
            server_default="manual",
        ),
        sa.Column("intervention_type", sa.String(64), nullable=True),
        # confirmations only
        sa.Column("original_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("saved_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("confirms_entry_id", sa.String(64), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("amount >= 0", name="ck_savings_amount_non_negative"),
        sa.CheckConstraint("saved_amount >= 0", name="ck_savings_saved_non_negative"),
        sa.UniqueConstraint("confirms_entry_id", name="uq_savings_confirms_entry"),
    )
    op.create_index(
        "ix_savings_entries_user_created",
        "savings_entries",
        ["user_id", "created_at"],
    )
    op.create_index("ix_savings_entries_category", "savings_entries", ["category"])
    op.create_index(
        "ix_savings_entries_trigger_type", "savings_entries", ["trigger_type"]
    )


def downgrade() -> None:
    op.drop_index("ix_savings_entries_trigger_type", table_name="savings_entries")
    op.drop_index("ix_savings_entries_category", table_name="savings_entries")
    op.drop_index("ix_savings_entries_user_created", table_name="savings_entries")
    op.drop_table("savings_entries")
    sa.Enum(name="savings_trigger_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="savings_category").drop(op.get_bind(), checkfirst=True)
