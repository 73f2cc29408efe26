"""Shared Pydantic schemas for the interventions API.

All request bodies and response models live here so they appear correctly
in the FastAPI/OpenAPI docs and can be reused across routers.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from moodwallet.interventions.engine.rules.models import InterventionResult
from moodwallet.interventions.ledger.models import (
    Achievement,
    LedgerEntry,
    PotentialSavings,
    SavingsCategory,
    SavingsStats,
    TriggerType,
)


# ---------------------------------------------------------------------------
# Common
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Body of every 404 / 409 / 422 raised by the interventions layer."""

    detail: str
    errors: list[str] = Field(default_factory=list)


def error_responses(*codes: int) -> dict[int, dict[str, Any]]:
    descriptions = {
        404: "Estimate not found for this user",
        409: "Estimate already confirmed",
        422: "Invalid input or no savings",
    }
    return {
        code: {"description": descriptions[code], "model": ErrorResponse}
        for code in codes
    }


# ---------------------------------------------------------------------------
# Interventions
# ---------------------------------------------------------------------------


class EvaluateRequest(BaseModel):
    """Context snapshot as supplied by the upstream aggregator.

    user_id is optional here; the caller's identity always wins.
    """

    snapshot: dict[str, Any] = Field(
        ...,
        description="Mood, location, weather, nearby merchants, sleep and recent spending",
    )


class EvaluateResponse(BaseModel):
    results: list[InterventionResult]
    has_interventions: bool
    overall_risk: int = Field(..., ge=0, le=3, description="0 none, 1 low .. 3 high")
    skipped_by_tier: list[str] = Field(default_factory=list)
    failed_rules: list[str] = Field(default_factory=list)
    recorded: list[LedgerEntry] = Field(
        default_factory=list, description="Savings estimates appended for this call"
    )


class RuleOut(BaseModel):
    id: str
    name: str
    minimum_tier: str
    priority: int
    eligible: bool = Field(..., description="Whether the caller's tier unlocks the rule")


# ---------------------------------------------------------------------------
# Savings
# ---------------------------------------------------------------------------


class RecordSavingsRequest(BaseModel):
    amount: Decimal = Field(..., examples=["45.00"])
    description: str = Field(..., min_length=1)
    category: SavingsCategory = SavingsCategory.other
    trigger_type: TriggerType = TriggerType.manual
    intervention_type: str | None = None
    currency: str | None = Field(None, min_length=3, max_length=3)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ConfirmSavingsRequest(BaseModel):
    original_estimate_id: str = Field(..., min_length=1)
    actual_amount: Decimal
    original_amount: Decimal
    # rule ids and legacy category names are accepted and mapped
    category: str = SavingsCategory.shopping.value
    trigger_type: str = TriggerType.manual.value
    reason: str = Field(..., min_length=1)
    metadata: dict[str, Any] = Field(default_factory=dict)


class SavingsStatsResponse(SavingsStats):
    window_days: int | None = None
    potential: PotentialSavings
    achievements: list[Achievement] = Field(default_factory=list)
    generated_at: datetime


class SavingsHistoryResponse(BaseModel):
    entries: list[LedgerEntry]
    limit: int
    offset: int
