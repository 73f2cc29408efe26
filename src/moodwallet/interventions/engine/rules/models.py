from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from moodwallet.interventions.errors import ValidationError


class RiskLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"

    @property
    def score(self) -> int:
        return {"low": 1, "medium": 2, "high": 3}[self.value]


class PriceTier(str, Enum):
    budget = "budget"
    moderate = "moderate"
    expensive = "expensive"
    very_expensive = "very_expensive"
    luxury = "luxury"


EXPENSIVE_PRICE_TIERS: frozenset[PriceTier] = frozenset(
    {PriceTier.expensive, PriceTier.very_expensive, PriceTier.luxury}
)

_RAIN_CONDITIONS: frozenset[str] = frozenset(
    {"rain", "rainy", "drizzle", "showers", "thunderstorm"}
)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")


class GeoPoint(_Frozen):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Weather(_Frozen):
    condition: str
    temperature: Optional[float] = None

    @property
    def is_rainy(self) -> bool:
        return self.condition.strip().lower() in _RAIN_CONDITIONS


class NearbyMerchant(_Frozen):
    name: str
    distance_meters: float = Field(..., ge=0)
    price_tier: PriceTier


class SleepSummary(_Frozen):
    duration_hours: float = Field(..., ge=0, le=24)


class Purchase(_Frozen):
    amount: Decimal = Field(..., ge=0)
    occurred_at: datetime


class ContextSnapshot(_Frozen):
    """Situational signals for one evaluation. Built upstream, consumed as-is."""

    user_id: str = Field(..., min_length=1)
    current_mood: int = Field(..., ge=1, le=10)
    location: GeoPoint
    weather: Optional[Weather] = None
    nearby_merchants: Optional[Tuple[NearbyMerchant, ...]] = None
    sleep_summary: Optional[SleepSummary] = None
    recent_spending: Optional[Tuple[Purchase, ...]] = None

    @classmethod
    def parse(cls, data: "ContextSnapshot | Mapping[str, Any]") -> "ContextSnapshot":
        if isinstance(data, ContextSnapshot):
            return data
        if not isinstance(data, Mapping):
            raise ValidationError("snapshot must be an object")
        try:
            return cls.model_validate(dict(data))
        except PydanticValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ValidationError("invalid context snapshot", errors) from e

    def merchants_within(
        self, meters: float, price_tiers: frozenset[PriceTier] | None = None
    ) -> list[NearbyMerchant]:
        """Merchants strictly closer than `meters`, optionally restricted to price tiers."""
        return [
            m
            for m in self.nearby_merchants or ()
            if m.distance_meters < meters
            and (price_tiers is None or m.price_tier in price_tiers)
        ]

    def summary(self) -> dict:
        """Compact, non-identifying view for logs."""
        return {
            "mood": self.current_mood,
            "weather": self.weather.condition if self.weather else None,
            "merchants": len(self.nearby_merchants or ()),
            "sleep_hours": (
                self.sleep_summary.duration_hours if self.sleep_summary else None
            ),
            "purchases": len(self.recent_spending or ()),
        }


class InterventionResult(_Frozen):
    intervention_type: str
    risk_level: RiskLevel
    message: str
    recommendations: Tuple[str, ...] = ()
    estimated_savings: Optional[Decimal] = Field(default=None, ge=0)
    metadata: Dict[str, Any] = Field(default_factory=dict)
