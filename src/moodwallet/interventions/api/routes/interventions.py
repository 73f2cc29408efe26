"""Intervention evaluation endpoints.

POST /interventions/evaluate  – evaluate the caller's snapshot, record estimates
POST /interventions/test      – evaluate a canned snapshot (nothing recorded)
GET  /interventions/rules     – registered rules and whether the caller's tier unlocks them
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from moodwallet.interventions.api.schemas import (
    EvaluateRequest,
    EvaluateResponse,
    RuleOut,
    error_responses,
)
from moodwallet.interventions.engine.engine_service import (
    EvaluationOutcome,
    InterventionEngine,
)
from moodwallet.interventions.engine.entitlement import satisfies
from moodwallet.interventions.engine.registry import RuleRegistry
from moodwallet.interventions.engine.rules.builtin import sample_snapshot
from moodwallet.interventions.ledger.models import LedgerEntry
from moodwallet.interventions.ledger.service import SavingsLedger
from moodwallet.interventions.security.auth import Caller
from moodwallet.interventions.security.policies import (
    get_current_caller,
    get_engine,
    get_ledger,
    get_registry,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interventions", tags=["interventions"])


def _to_response(
    outcome: EvaluationOutcome, recorded: list[LedgerEntry]
) -> EvaluateResponse:
    return EvaluateResponse(
        results=outcome.results,
        has_interventions=bool(outcome.results),
        overall_risk=outcome.overall_risk,
        skipped_by_tier=outcome.skipped_by_tier,
        failed_rules=outcome.failed_rules,
        recorded=recorded,
    )


@router.post(
    "/evaluate", response_model=EvaluateResponse, responses=error_responses(422)
)
async def evaluate(
    body: EvaluateRequest,
    caller: Caller = Depends(get_current_caller),
    engine: InterventionEngine = Depends(get_engine),
    ledger: SavingsLedger = Depends(get_ledger),
) -> EvaluateResponse:
    """Evaluate the snapshot for the caller and record savings estimates."""
    snapshot = {**body.snapshot, "user_id": caller.user_id}
    outcome = engine.evaluate_detailed(snapshot, caller.tier)
    recorded = await ledger.record_interventions(
        caller.user_id, outcome.results, caller.tier
    )
    if outcome.results:
        logger.info(
            "User %s: %d interventions fired (risk=%d), %d estimates recorded",
            caller.user_id,
            len(outcome.results),
            outcome.overall_risk,
            len(recorded),
        )
    return _to_response(outcome, recorded)


@router.post("/test", response_model=EvaluateResponse)
async def evaluate_sample(
    caller: Caller = Depends(get_current_caller),
    engine: InterventionEngine = Depends(get_engine),
) -> EvaluateResponse:
    """Run the caller's tier against a fixed high-risk snapshot. Read-only."""
    outcome = engine.evaluate_detailed(sample_snapshot(caller.user_id), caller.tier)
    return _to_response(outcome, [])


@router.get("/rules", response_model=list[RuleOut])
async def list_rules(
    caller: Caller = Depends(get_current_caller),
    registry: RuleRegistry = Depends(get_registry),
) -> list[RuleOut]:
    return [
        RuleOut(
            id=rule.id,
            name=rule.name or rule.id,
            minimum_tier=rule.minimum_tier.value,
            priority=rule.priority,
            eligible=satisfies(caller.tier, rule.minimum_tier),
        )
        for rule in registry.all_rules()
    ]
