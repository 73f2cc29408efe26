from __future__ import annotations
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    Index,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from moodwallet.interventions.ledger.models import SavingsCategory, TriggerType


def utc_now():
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class SavingsEntry(Base):
    """Savings ledger row. Append-only: estimates and confirmations are both inserts.

    A confirmation points at the estimate it supersedes through
    confirms_entry_id; the unique constraint makes a second confirmation of the
    same estimate fail at insert time.
    """

    __tablename__ = "savings_entries"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, default=lambda: uuid4().hex
    )
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="EUR", nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    category: Mapped[SavingsCategory] = mapped_column(
        Enum(
            SavingsCategory,
            name="savings_category",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    trigger_type: Mapped[TriggerType] = mapped_column(
        Enum(
            TriggerType,
            name="savings_trigger_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        default=TriggerType.manual,
        nullable=False,
    )
    # originating rule id, when the entry was derived from an intervention
    intervention_type: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # confirmations only: what would have been spent
    original_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(10, 2), nullable=True
    )
    # amount counted by the stats; equals `amount` for non-confirmations
    saved_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    confirms_entry_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    meta: Mapped[dict] = mapped_column("metadata", JSON, default=dict, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("confirms_entry_id", name="uq_savings_confirms_entry"),
        Index("ix_savings_entries_user_created", "user_id", "created_at"),
        Index("ix_savings_entries_category", "category"),
        Index("ix_savings_entries_trigger_type", "trigger_type"),
    )
