from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable
from uuid import uuid4

from moodwallet.interventions.config.settings import settings
from moodwallet.interventions.db.models import utc_now
from moodwallet.interventions.engine.entitlement import Tier, satisfies
from moodwallet.interventions.engine.rules.models import InterventionResult
from moodwallet.interventions.errors import (
    DuplicateConfirmationError,
    EstimateNotFoundError,
    NoSavingsError,
    ValidationError,
)
from moodwallet.interventions.ledger.models import (
    LedgerEntry,
    NewLedgerEntry,
    SavingsCategory,
    TriggerType,
)
from moodwallet.interventions.ledger.store import LedgerStore
from moodwallet.interventions.utils import to_money

logger = logging.getLogger(__name__)

# metadata flag separating confirmed-actual savings from estimates
ACTUAL_SAVINGS_KEY = "actual_savings"
ORIGINAL_ESTIMATE_KEY = "original_estimate_id"


def _parse_amount(value: Any, label: str, errors: list[str]) -> Decimal | None:
    try:
        amount = to_money(value)
    except ValueError:
        errors.append(f"{label} must be a number")
        return None
    # is_signed() also catches inputs that round to -0.00
    if amount.is_signed():
        errors.append(f"{label} must not be negative")
        return None
    return amount


def _parse_enum(parse, value: Any, errors: list[str]):
    try:
        return parse(value)
    except ValidationError as e:
        errors.extend(e.errors)
        return None


class SavingsLedger:
    """Append-only savings ledger.

    Estimates come from fired interventions or manual entries; a
    confirmation is a separate entry linked to the estimate it supersedes.
    """

    def __init__(self, store: LedgerStore):
        self.store = store

    async def append(self, new: NewLedgerEntry) -> LedgerEntry:
        errors: list[str] = []
        if not isinstance(new.user_id, str) or not new.user_id:
            errors.append("user_id is required")
        amount = _parse_amount(new.amount, "amount", errors)
        if not isinstance(new.description, str) or not new.description.strip():
            errors.append("description is required")
        category = _parse_enum(SavingsCategory.parse, new.category, errors)
        trigger_type = _parse_enum(TriggerType.parse, new.trigger_type, errors)
        if not isinstance(new.metadata, dict):
            errors.append("metadata must be an object")
        if errors:
            raise ValidationError("invalid savings entry", errors)

        entry = self._build(
            user_id=new.user_id,
            amount=amount,
            saved_amount=amount,
            description=new.description.strip(),
            category=category,
            trigger_type=trigger_type,
            intervention_type=new.intervention_type,
            currency=new.currency,
            metadata={**new.metadata, ACTUAL_SAVINGS_KEY: False},
        )
        saved = await self.store.add(entry)
        logger.info(
            "Recorded savings: %s %s for user %s - %s",
            saved.amount,
            saved.currency,
            saved.user_id,
            saved.description,
        )
        return saved

    async def confirm(
        self,
        user_id: str,
        original_estimate_id: str,
        actual_amount: Any,
        original_amount: Any,
        category: Any,
        trigger_type: Any,
        reason: str,
        metadata: dict | None = None,
    ) -> LedgerEntry:
        errors: list[str] = []
        if not original_estimate_id:
            errors.append("original_estimate_id is required")
        actual = _parse_amount(actual_amount, "actual_amount", errors)
        original = _parse_amount(original_amount, "original_amount", errors)
        cat = _parse_enum(SavingsCategory.resolve, category, errors)
        trig = _parse_enum(TriggerType.resolve, trigger_type, errors)
        if not isinstance(reason, str) or not reason.strip():
            errors.append("reason is required")
        if errors:
            raise ValidationError("invalid savings confirmation", errors)

        saved_amount = max(Decimal("0.00"), original - actual)
        if saved_amount <= 0:
            raise NoSavingsError(original, actual)

        estimate = await self.store.get(user_id, original_estimate_id)
        if estimate is None:
            raise EstimateNotFoundError(original_estimate_id)
        if estimate.is_confirmation:
            raise ValidationError(
                f"entry {original_estimate_id} is a confirmation, not an estimate"
            )
        existing = await self.store.find_confirmation(original_estimate_id)
        if existing is not None:
            raise DuplicateConfirmationError(original_estimate_id, existing.id)

        entry = self._build(
            user_id=user_id,
            amount=actual,
            saved_amount=saved_amount,
            original_amount=original,
            description=reason.strip(),
            category=cat,
            trigger_type=trig,
            intervention_type=estimate.intervention_type,
            confirms_entry_id=original_estimate_id,
            currency=estimate.currency,
            metadata={
                **(metadata or {}),
                ORIGINAL_ESTIMATE_KEY: original_estimate_id,
                "estimated_amount": str(estimate.saved_amount),
                "confirmed_at": utc_now().isoformat(),
                ACTUAL_SAVINGS_KEY: True,
            },
        )
        confirmed = await self.store.add(entry)
        logger.info(
            "Confirmed real savings: %s %s saved by user %s - %s",
            confirmed.saved_amount,
            confirmed.currency,
            user_id,
            confirmed.description,
        )
        return confirmed

    async def record_intervention(
        self, user_id: str, result: InterventionResult
    ) -> LedgerEntry | None:
        """Append an estimate for a fired intervention. No-op without estimated savings."""
        if not result.estimated_savings:
            return None
        return await self.append(
            NewLedgerEntry(
                user_id=user_id,
                amount=result.estimated_savings,
                description=result.message,
                category=SavingsCategory.from_intervention(result.intervention_type),
                trigger_type=TriggerType.from_intervention(result.intervention_type),
                intervention_type=result.intervention_type,
                metadata={**result.metadata, "risk_level": result.risk_level.value},
            )
        )

    async def record_interventions(
        self,
        user_id: str,
        results: Iterable[InterventionResult],
        tier: Tier | str | None,
    ) -> list[LedgerEntry]:
        if not settings.AUTO_RECORD_ESTIMATES:
            return []
        if not satisfies(tier, settings.AUTO_RECORD_MIN_TIER):
            return []
        recorded: list[LedgerEntry] = []
        for result in results:
            entry = await self.record_intervention(user_id, result)
            if entry is not None:
                recorded.append(entry)
        return recorded

    async def history(
        self,
        user_id: str,
        limit: int | None = None,
        *,
        offset: int = 0,
        category: Any = None,
        trigger_type: Any = None,
    ) -> list[LedgerEntry]:
        limit = settings.HISTORY_LIMIT_DEFAULT if limit is None else limit
        if limit < 1 or offset < 0:
            raise ValidationError("limit must be positive and offset non-negative")
        return await self.store.list_for_user(
            user_id,
            limit=min(limit, settings.HISTORY_LIMIT_MAX),
            offset=offset,
            category=SavingsCategory.parse(category) if category is not None else None,
            trigger_type=(
                TriggerType.parse(trigger_type) if trigger_type is not None else None
            ),
        )

    @staticmethod
    def _build(
        *,
        user_id: str,
        amount: Decimal,
        saved_amount: Decimal,
        description: str,
        category: SavingsCategory,
        trigger_type: TriggerType,
        metadata: dict,
        intervention_type: str | None = None,
        original_amount: Decimal | None = None,
        confirms_entry_id: str | None = None,
        currency: str | None = None,
        created_at: datetime | None = None,
    ) -> LedgerEntry:
        now = created_at or utc_now()
        return LedgerEntry(
            id=uuid4().hex,
            user_id=user_id,
            amount=amount,
            currency=(currency or settings.DEFAULT_CURRENCY).upper(),
            description=description,
            category=category,
            trigger_type=trigger_type,
            intervention_type=intervention_type,
            original_amount=original_amount,
            saved_amount=saved_amount,
            confirms_entry_id=confirms_entry_id,
            metadata=metadata,
            created_at=now,
            updated_at=now,
        )
