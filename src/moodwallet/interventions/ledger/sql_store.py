from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from moodwallet.interventions.db.models import SavingsEntry
from moodwallet.interventions.errors import DuplicateConfirmationError
from moodwallet.interventions.ledger.models import (
    LedgerEntry,
    SavingsCategory,
    TriggerType,
)

logger = logging.getLogger(__name__)


class SqlLedgerStore:
    """LedgerStore backed by the savings_entries table.

    Each add() commits on its own. Storage errors other than the
    confirmation unique constraint propagate unchanged.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, entry: LedgerEntry) -> LedgerEntry:
        row = SavingsEntry(
            id=entry.id,
            user_id=entry.user_id,
            amount=entry.amount,
            currency=entry.currency,
            description=entry.description,
            category=entry.category,
            trigger_type=entry.trigger_type,
            intervention_type=entry.intervention_type,
            original_amount=entry.original_amount,
            saved_amount=entry.saved_amount,
            confirms_entry_id=entry.confirms_entry_id,
            meta=dict(entry.metadata),
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )
        try:
            self.db.add(row)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            if entry.confirms_entry_id is None:
                raise
            # lost the race against a concurrent confirmation of the same estimate
            existing = await self.find_confirmation(entry.confirms_entry_id)
            logger.warning(
                "Duplicate confirmation of estimate %s for user %s",
                entry.confirms_entry_id,
                entry.user_id,
            )
            raise DuplicateConfirmationError(
                entry.confirms_entry_id, existing.id if existing else None
            )

        await self.db.refresh(row)
        return LedgerEntry.model_validate(row)

    async def get(self, user_id: str, entry_id: str) -> LedgerEntry | None:
        res = await self.db.execute(
            select(SavingsEntry).where(
                SavingsEntry.id == entry_id,
                SavingsEntry.user_id == user_id,
            )
        )
        row = res.scalar_one_or_none()
        return LedgerEntry.model_validate(row) if row is not None else None

    async def find_confirmation(self, entry_id: str) -> LedgerEntry | None:
        res = await self.db.execute(
            select(SavingsEntry).where(SavingsEntry.confirms_entry_id == entry_id)
        )
        row = res.scalar_one_or_none()
        return LedgerEntry.model_validate(row) if row is not None else None

    async def list_for_user(
        self,
        user_id: str,
        *,
        since: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
        category: SavingsCategory | None = None,
        trigger_type: TriggerType | None = None,
    ) -> list[LedgerEntry]:
        q = (
            select(SavingsEntry)
            .where(SavingsEntry.user_id == user_id)
            .order_by(SavingsEntry.created_at.desc(), SavingsEntry.id.desc())
            .offset(offset)
        )
        if since is not None:
            q = q.where(SavingsEntry.created_at >= since)
        if category is not None:
            q = q.where(SavingsEntry.category == category)
        if trigger_type is not None:
            q = q.where(SavingsEntry.trigger_type == trigger_type)
        if limit is not None:
            q = q.limit(limit)

        res = await self.db.execute(q)
        return [LedgerEntry.model_validate(row) for row in res.scalars().all()]
