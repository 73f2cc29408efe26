"""Reference intervention rules.

Each rule is a (condition, action) pair of pure functions over a
ContextSnapshot. Conditions carry the whole trigger logic, so an action is
only ever called for a snapshot that warrants an intervention.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from moodwallet.interventions.config.settings import settings
from moodwallet.interventions.engine.entitlement import Tier
from moodwallet.interventions.engine.registry import Rule, RuleRegistry
from moodwallet.interventions.engine.rules.models import (
    EXPENSIVE_PRICE_TIERS,
    ContextSnapshot,
    InterventionResult,
    PriceTier,
    RiskLevel,
)
from moodwallet.interventions.engine.templates.renderer import render
from moodwallet.interventions.utils import to_money

LOW_MOOD_MAX = 4
RAINY_MOOD_MAX = 5
EXPENSIVE_RADIUS_M = 500
LUXURY_RADIUS_M = 200
SLEEP_DEPRIVED_HOURS = 6
FREQUENT_PURCHASES = 3
SPENDING_SAVINGS_RATIO = Decimal("0.20")

_LUXURY = frozenset({PriceTier.luxury})


def _merchants_json(merchants) -> list[dict]:
    return [m.model_dump(mode="json") for m in merchants]


# -----------------------------
# Mood + expensive merchants
# -----------------------------


def mood_spending_condition(snapshot: ContextSnapshot) -> bool:
    return snapshot.current_mood <= LOW_MOOD_MAX and bool(
        snapshot.merchants_within(EXPENSIVE_RADIUS_M, EXPENSIVE_PRICE_TIERS)
    )


def mood_spending_action(snapshot: ContextSnapshot) -> InterventionResult:
    stores = snapshot.merchants_within(EXPENSIVE_RADIUS_M, EXPENSIVE_PRICE_TIERS)
    return InterventionResult(
        intervention_type="mood_spending_correlation",
        risk_level=RiskLevel.high,
        message=render(
            "Your mood is low ({{ mood }}/10) and you're near expensive stores. "
            "Consider waiting before making purchases.",
            {"mood": snapshot.current_mood},
        ),
        recommendations=(
            "Take a 10-minute walk to clear your head",
            "Call a friend or family member",
            "Practice deep breathing exercises",
            "Wait 24 hours before making any purchases",
            "Consider if this purchase aligns with your goals",
        ),
        estimated_savings=Decimal("100.00"),
        metadata={
            "nearby_merchants": _merchants_json(stores),
            "mood": snapshot.current_mood,
            "trigger_type": "low_mood_expensive_stores",
        },
    )


# -----------------------------
# Luxury proximity
# -----------------------------


def luxury_proximity_condition(snapshot: ContextSnapshot) -> bool:
    return bool(snapshot.merchants_within(LUXURY_RADIUS_M, _LUXURY))


def luxury_proximity_action(snapshot: ContextSnapshot) -> InterventionResult:
    stores = snapshot.merchants_within(LUXURY_RADIUS_M, _LUXURY)
    return InterventionResult(
        intervention_type="location_based_intervention",
        risk_level=RiskLevel.high,
        message=render(
            "You're very close to {{ count }} luxury "
            "{{ 'store' if count == 1 else 'stores' }}. High spending risk detected!",
            {"count": len(stores)},
        ),
        recommendations=(
            "Set a strict budget before entering",
            "Make a list of what you actually need",
            "Consider if you can wait 48 hours",
            "Think about your financial goals",
            'Ask yourself: "Will this purchase matter in 6 months?"',
        ),
        estimated_savings=Decimal("250.00"),
        metadata={
            "luxury_merchants": _merchants_json(stores),
            "trigger_type": "luxury_store_proximity",
        },
    )


# -----------------------------
# Rain + low mood
# -----------------------------


def weather_mood_condition(snapshot: ContextSnapshot) -> bool:
    return (
        snapshot.weather is not None
        and snapshot.weather.is_rainy
        and snapshot.current_mood <= RAINY_MOOD_MAX
    )


def weather_mood_action(snapshot: ContextSnapshot) -> InterventionResult:
    return InterventionResult(
        intervention_type="weather_mood_intervention",
        risk_level=RiskLevel.medium,
        message=(
            "Rainy weather + low mood can trigger comfort spending. "
            "Be mindful of your purchases."
        ),
        recommendations=(
            "Try indoor activities instead of shopping",
            "Make a warm drink and relax at home",
            "Watch a favorite movie or read a book",
            "Consider if you're shopping to feel better",
            "Wait until the weather improves to make decisions",
        ),
        estimated_savings=Decimal("75.00"),
        metadata={
            "weather": snapshot.weather.model_dump(mode="json"),
            "mood": snapshot.current_mood,
            "trigger_type": "weather_mood_correlation",
        },
    )


# -----------------------------
# Sleep deprivation
# -----------------------------


def sleep_deprivation_condition(snapshot: ContextSnapshot) -> bool:
    return (
        snapshot.sleep_summary is not None
        and snapshot.sleep_summary.duration_hours < SLEEP_DEPRIVED_HOURS
        and bool(snapshot.nearby_merchants)
    )


def sleep_deprivation_action(snapshot: ContextSnapshot) -> InterventionResult:
    hours = snapshot.sleep_summary.duration_hours
    return InterventionResult(
        intervention_type="sleep_deprivation_intervention",
        risk_level=RiskLevel.high,
        message=render(
            "You're sleep deprived ({{ hours }}h sleep). Poor sleep affects "
            "decision-making and can lead to impulsive purchases.",
            {"hours": f"{hours:g}"},
        ),
        recommendations=(
            "Avoid major purchase decisions when tired",
            "Get some rest before shopping",
            "Stick to your shopping list only",
            "Consider postponing non-essential purchases",
            "Prioritize sleep over shopping trips",
        ),
        estimated_savings=Decimal("150.00"),
        metadata={
            "sleep_hours": hours,
            "trigger_type": "sleep_deprivation",
        },
    )


# -----------------------------
# Frequent purchases
# -----------------------------


def spending_pattern_condition(snapshot: ContextSnapshot) -> bool:
    return len(snapshot.recent_spending or ()) > FREQUENT_PURCHASES


def spending_pattern_action(snapshot: ContextSnapshot) -> InterventionResult:
    purchases = snapshot.recent_spending or ()
    total = sum((p.amount for p in purchases), Decimal("0"))
    return InterventionResult(
        intervention_type="spending_pattern_intervention",
        risk_level=RiskLevel.medium,
        message=render(
            "You've made {{ count }} purchases recently ({{ total }} {{ currency }}). "
            "Consider if this aligns with your budget.",
            {
                "count": len(purchases),
                "total": to_money(total),
                "currency": settings.DEFAULT_CURRENCY,
            },
        ),
        recommendations=(
            "Review your recent purchases",
            "Check if you're staying within budget",
            "Consider a spending freeze for 24 hours",
            "Focus on experiences over material items",
            "Ask yourself if these purchases bring lasting joy",
        ),
        estimated_savings=to_money(total * SPENDING_SAVINGS_RATIO),
        metadata={
            "purchase_count": len(purchases),
            "total_spent": str(to_money(total)),
            "trigger_type": "spending_pattern",
        },
    )


BUILTIN_RULES: tuple[Rule, ...] = (
    Rule(
        id="mood_spending_correlation",
        name="Mood-Based Spending Intervention",
        minimum_tier=Tier.pro,
        priority=1,
        condition=mood_spending_condition,
        action=mood_spending_action,
    ),
    Rule(
        id="location_based_intervention",
        name="Location-Based Spending Alert",
        minimum_tier=Tier.premium,
        priority=2,
        condition=luxury_proximity_condition,
        action=luxury_proximity_action,
    ),
    Rule(
        id="weather_mood_intervention",
        name="Weather-Mood Spending Intervention",
        minimum_tier=Tier.premium,
        priority=3,
        condition=weather_mood_condition,
        action=weather_mood_action,
    ),
    Rule(
        id="sleep_deprivation_intervention",
        name="Sleep-Based Decision Making Alert",
        minimum_tier=Tier.premium,
        priority=4,
        condition=sleep_deprivation_condition,
        action=sleep_deprivation_action,
    ),
    Rule(
        id="spending_pattern_intervention",
        name="Spending Pattern Alert",
        minimum_tier=Tier.pro,
        priority=5,
        condition=spending_pattern_condition,
        action=spending_pattern_action,
    ),
)


def build_default_registry() -> RuleRegistry:
    """Registry with the reference rules, frozen. Call once at startup."""
    return RuleRegistry(BUILTIN_RULES).freeze()


def sample_snapshot(user_id: str, now: datetime | None = None) -> ContextSnapshot:
    """A snapshot that fires every reference rule for a premium caller."""
    now = now or datetime.now(timezone.utc)
    return ContextSnapshot.parse(
        {
            "user_id": user_id,
            "current_mood": 3,
            "location": {"latitude": 40.7128, "longitude": -74.0060},
            "weather": {"condition": "Rain", "temperature": 10},
            "nearby_merchants": [
                {"name": "Luxury Store", "distance_meters": 100, "price_tier": "luxury"},
                {
                    "name": "Expensive Store",
                    "distance_meters": 200,
                    "price_tier": "expensive",
                },
            ],
            "sleep_summary": {"duration_hours": 5},
            "recent_spending": [
                {"amount": "50", "occurred_at": now},
                {"amount": "75", "occurred_at": now},
                {"amount": "100", "occurred_at": now},
                {"amount": "25", "occurred_at": now},
            ],
        }
    )
