from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from moodwallet.interventions.errors import ValidationError


class SavingsCategory(str, Enum):
    food = "food"
    shopping = "shopping"
    entertainment = "entertainment"
    transport = "transport"
    subscription = "subscription"
    other = "other"

    @classmethod
    def parse(cls, value: Any) -> "SavingsCategory":
        """Strict closed-set check for caller-supplied values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                f"invalid category {value!r}, expected one of {[c.value for c in cls]}"
            ) from None

    @classmethod
    def resolve(cls, value: Any) -> "SavingsCategory":
        """Like parse(), but also accepts the legacy intervention category names."""
        legacy = LEGACY_CATEGORY_MAP.get(str(value).strip().lower())
        return legacy if legacy is not None else cls.parse(value)

    @classmethod
    def from_intervention(cls, intervention_type: str) -> "SavingsCategory":
        """Category for an estimate derived from a fired rule. Unknown rules default to other."""
        return INTERVENTION_CATEGORY_MAP.get(intervention_type, cls.other)


class TriggerType(str, Enum):
    mood_alert = "mood_alert"
    location_alert = "location_alert"
    ai_suggestion = "ai_suggestion"
    manual = "manual"
    time_based = "time_based"
    weather_based = "weather_based"

    @classmethod
    def parse(cls, value: Any) -> "TriggerType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                f"invalid trigger_type {value!r}, expected one of {[t.value for t in cls]}"
            ) from None

    @classmethod
    def resolve(cls, value: Any) -> "TriggerType":
        """Like parse(), but also accepts rule ids and legacy trigger names."""
        mapped = INTERVENTION_TRIGGER_MAP.get(str(value).strip().lower())
        return mapped if mapped is not None else cls.parse(value)

    @classmethod
    def from_intervention(cls, intervention_type: str) -> "TriggerType":
        """Trigger for an estimate derived from a fired rule. Unknown rules default to manual."""
        return INTERVENTION_TRIGGER_MAP.get(intervention_type, cls.manual)


# Category names used by the first version of the savings counter.
LEGACY_CATEGORY_MAP: Dict[str, SavingsCategory] = {
    "prevented_purchase": SavingsCategory.shopping,
    "mood_intervention": SavingsCategory.shopping,
    "location_alert": SavingsCategory.shopping,
    "sleep_intervention": SavingsCategory.other,
    "weather_intervention": SavingsCategory.shopping,
}

INTERVENTION_CATEGORY_MAP: Dict[str, SavingsCategory] = {
    "mood_spending_correlation": SavingsCategory.shopping,
    "location_based_intervention": SavingsCategory.shopping,
    "weather_mood_intervention": SavingsCategory.shopping,
    "sleep_deprivation_intervention": SavingsCategory.other,
    "spending_pattern_intervention": SavingsCategory.shopping,
}

INTERVENTION_TRIGGER_MAP: Dict[str, TriggerType] = {
    # rule ids
    "mood_spending_correlation": TriggerType.mood_alert,
    "location_based_intervention": TriggerType.location_alert,
    "weather_mood_intervention": TriggerType.weather_based,
    "sleep_deprivation_intervention": TriggerType.mood_alert,
    "spending_pattern_intervention": TriggerType.time_based,
    # legacy trigger names
    "expensive_store_detection": TriggerType.location_alert,
    "sleep_correlation": TriggerType.mood_alert,
    "weather_mood_correlation": TriggerType.weather_based,
}


@dataclass(frozen=True)
class NewLedgerEntry:
    """Caller input for SavingsLedger.append(); validated there."""

    user_id: str
    amount: Any
    description: str
    category: Any = SavingsCategory.other
    trigger_type: Any = TriggerType.manual
    intervention_type: str | None = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    currency: str | None = None


class LedgerEntry(BaseModel):
    """A persisted savings event. Never updated in place."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    user_id: str
    amount: Decimal
    currency: str
    description: str
    category: SavingsCategory
    trigger_type: TriggerType
    intervention_type: Optional[str] = None
    original_amount: Optional[Decimal] = None
    saved_amount: Decimal
    confirms_entry_id: Optional[str] = None
    # ORM rows expose this column as `meta`; `metadata` is reserved by SQLAlchemy
    metadata: Dict[str, Any] = Field(
        default_factory=dict, validation_alias=AliasChoices("meta", "metadata")
    )
    created_at: datetime
    updated_at: datetime

    @property
    def is_confirmation(self) -> bool:
        return self.confirms_entry_id is not None


# -----------------------------
# Stats
# -----------------------------


class CategoryTotal(BaseModel):
    category: SavingsCategory
    amount: Decimal
    count: int


class MonthTotal(BaseModel):
    month: str  # YYYY-MM
    amount: Decimal
    count: int


class SavingsStats(BaseModel):
    total_saved: Decimal
    savings_this_month: Decimal
    savings_this_week: Decimal
    intervention_count: int
    confirmed_saved: Decimal
    estimated_saved: Decimal
    top_categories: List[CategoryTotal] = Field(default_factory=list)
    monthly_breakdown: List[MonthTotal] = Field(default_factory=list)


class PotentialSavings(BaseModel):
    projected_monthly_savings: Decimal
    projected_yearly_savings: Decimal
    average_intervention_value: Decimal


class Achievement(BaseModel):
    id: str
    title: str
    threshold: int
    unlocked: bool = True
