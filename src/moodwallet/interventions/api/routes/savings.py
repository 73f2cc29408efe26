"""Savings ledger endpoints.

All routes are scoped to the caller's own ledger.

POST /savings/record   – append a manual savings entry
POST /savings/confirm  – confirm an estimate with the amount actually spent
GET  /savings/stats    – totals, rollups, projection and achievements
GET  /savings/history  – ledger entries, newest first
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, status

from moodwallet.interventions.api.schemas import (
    ConfirmSavingsRequest,
    RecordSavingsRequest,
    SavingsHistoryResponse,
    SavingsStatsResponse,
    error_responses,
)
from moodwallet.interventions.config.settings import settings
from moodwallet.interventions.ledger.models import (
    LedgerEntry,
    NewLedgerEntry,
    SavingsCategory,
    TriggerType,
)
from moodwallet.interventions.ledger.service import SavingsLedger
from moodwallet.interventions.ledger.stats import SavingsStatsService, achievements
from moodwallet.interventions.security.auth import Caller
from moodwallet.interventions.security.policies import (
    get_current_caller,
    get_ledger,
    get_stats_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/savings", tags=["savings"])


@router.post(
    "/record",
    response_model=LedgerEntry,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(422),
)
async def record_savings(
    body: RecordSavingsRequest,
    caller: Caller = Depends(get_current_caller),
    ledger: SavingsLedger = Depends(get_ledger),
) -> LedgerEntry:
    return await ledger.append(
        NewLedgerEntry(
            user_id=caller.user_id,
            amount=body.amount,
            description=body.description,
            category=body.category,
            trigger_type=body.trigger_type,
            intervention_type=body.intervention_type,
            metadata=body.metadata,
            currency=body.currency,
        )
    )


@router.post(
    "/confirm",
    response_model=LedgerEntry,
    status_code=status.HTTP_201_CREATED,
    responses=error_responses(404, 409, 422),
)
async def confirm_savings(
    body: ConfirmSavingsRequest,
    caller: Caller = Depends(get_current_caller),
    ledger: SavingsLedger = Depends(get_ledger),
) -> LedgerEntry:
    """Record real savings against an earlier estimate. One confirmation per estimate."""
    return await ledger.confirm(
        caller.user_id,
        body.original_estimate_id,
        actual_amount=body.actual_amount,
        original_amount=body.original_amount,
        category=body.category,
        trigger_type=body.trigger_type,
        reason=body.reason,
        metadata=body.metadata,
    )


@router.get(
    "/stats", response_model=SavingsStatsResponse, responses=error_responses(422)
)
async def savings_stats(
    days: int | None = Query(default=None, ge=1, description="Trailing window in days"),
    caller: Caller = Depends(get_current_caller),
    stats: SavingsStatsService = Depends(get_stats_service),
) -> SavingsStatsResponse:
    now = datetime.now(timezone.utc)
    summary = await stats.summarize(caller.user_id, window_days=days, now=now)
    lifetime = (
        summary
        if days is None
        else await stats.summarize(caller.user_id, now=now)
    )
    potential = await stats.potential_savings(caller.user_id, now=now)
    return SavingsStatsResponse(
        **summary.model_dump(),
        window_days=days,
        potential=potential,
        achievements=achievements(lifetime.total_saved),
        generated_at=now,
    )


@router.get(
    "/history", response_model=SavingsHistoryResponse, responses=error_responses(422)
)
async def savings_history(
    limit: int = Query(
        default=settings.HISTORY_LIMIT_DEFAULT, ge=1, le=settings.HISTORY_LIMIT_MAX
    ),
    offset: int = Query(default=0, ge=0),
    category: SavingsCategory | None = Query(default=None),
    trigger_type: TriggerType | None = Query(default=None),
    caller: Caller = Depends(get_current_caller),
    ledger: SavingsLedger = Depends(get_ledger),
) -> SavingsHistoryResponse:
    entries = await ledger.history(
        caller.user_id,
        limit,
        offset=offset,
        category=category,
        trigger_type=trigger_type,
    )
    return SavingsHistoryResponse(entries=entries, limit=limit, offset=offset)
