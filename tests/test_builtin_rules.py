from datetime import datetime, timezone
from decimal import Decimal

import pytest

from conftest import base_snapshot
from moodwallet.interventions.engine.rules import builtin
from moodwallet.interventions.engine.rules.models import ContextSnapshot, RiskLevel
from moodwallet.interventions.errors import ValidationError

T = datetime(2026, 3, 18, 9, 0, tzinfo=timezone.utc)


def snap(**overrides) -> ContextSnapshot:
    return ContextSnapshot.parse(base_snapshot(**overrides))


def merchant(name, distance, tier):
    return {"name": name, "distance_meters": distance, "price_tier": tier}


class TestSnapshotParsing:
    def test_mood_out_of_range(self):
        with pytest.raises(ValidationError) as exc:
            ContextSnapshot.parse(base_snapshot(current_mood=11))
        assert any("current_mood" in e for e in exc.value.errors)

    def test_missing_location(self):
        data = base_snapshot()
        del data["location"]
        with pytest.raises(ValidationError):
            ContextSnapshot.parse(data)

    def test_negative_purchase(self):
        with pytest.raises(ValidationError):
            ContextSnapshot.parse(
                base_snapshot(recent_spending=[{"amount": -1, "occurred_at": T}])
            )

    def test_unknown_price_tier(self):
        with pytest.raises(ValidationError):
            ContextSnapshot.parse(
                base_snapshot(nearby_merchants=[merchant("x", 10, "cheap-ish")])
            )

    def test_not_a_mapping(self):
        with pytest.raises(ValidationError):
            ContextSnapshot.parse(["not", "a", "snapshot"])

    def test_snapshot_is_immutable(self):
        s = snap(nearby_merchants=[merchant("a", 10, "budget")])
        assert isinstance(s.nearby_merchants, tuple)
        with pytest.raises(Exception):
            s.current_mood = 1


class TestMoodSpending:
    def test_fires_on_low_mood_near_expensive_store(self):
        s = snap(current_mood=4, nearby_merchants=[merchant("Bags", 499, "expensive")])
        assert builtin.mood_spending_condition(s)
        result = builtin.mood_spending_action(s)
        assert result.risk_level is RiskLevel.high
        assert result.estimated_savings == Decimal("100.00")
        assert "4/10" in result.message
        assert result.metadata["nearby_merchants"][0]["name"] == "Bags"

    def test_mood_above_threshold(self):
        s = snap(current_mood=5, nearby_merchants=[merchant("Bags", 100, "luxury")])
        assert not builtin.mood_spending_condition(s)

    def test_distance_boundary_is_exclusive(self):
        s = snap(current_mood=2, nearby_merchants=[merchant("Bags", 500, "luxury")])
        assert not builtin.mood_spending_condition(s)

    def test_cheap_store_does_not_count(self):
        s = snap(current_mood=2, nearby_merchants=[merchant("Deli", 50, "moderate")])
        assert not builtin.mood_spending_condition(s)


class TestLuxuryProximity:
    def test_fires_within_200m(self):
        s = snap(nearby_merchants=[merchant("Maison", 150, "luxury")])
        assert builtin.luxury_proximity_condition(s)
        result = builtin.luxury_proximity_action(s)
        assert result.estimated_savings == Decimal("250.00")
        assert "1 luxury store." in result.message

    def test_only_luxury_tier(self):
        s = snap(nearby_merchants=[merchant("Pricey", 50, "very_expensive")])
        assert not builtin.luxury_proximity_condition(s)

    def test_pluralises(self):
        s = snap(
            nearby_merchants=[merchant("A", 10, "luxury"), merchant("B", 20, "luxury")]
        )
        assert "2 luxury stores" in builtin.luxury_proximity_action(s).message


class TestWeatherMood:
    @pytest.mark.parametrize("condition", ["Rain", "rain", "RAINY", "Drizzle"])
    def test_rain_variants(self, condition):
        s = snap(current_mood=5, weather={"condition": condition, "temperature": 9})
        assert builtin.weather_mood_condition(s)

    def test_sunny(self):
        s = snap(current_mood=2, weather={"condition": "Clear", "temperature": 25})
        assert not builtin.weather_mood_condition(s)

    def test_good_mood(self):
        s = snap(current_mood=6, weather={"condition": "Rain", "temperature": 9})
        assert not builtin.weather_mood_condition(s)

    def test_no_weather(self):
        assert not builtin.weather_mood_condition(snap(current_mood=1))

    def test_action(self):
        s = snap(current_mood=3, weather={"condition": "Rain", "temperature": 9})
        result = builtin.weather_mood_action(s)
        assert result.risk_level is RiskLevel.medium
        assert result.estimated_savings == Decimal("75.00")


class TestSleepDeprivation:
    def test_needs_merchants(self):
        assert not builtin.sleep_deprivation_condition(
            snap(sleep_summary={"duration_hours": 4})
        )

    def test_fires(self):
        s = snap(
            sleep_summary={"duration_hours": 5.5},
            nearby_merchants=[merchant("Deli", 300, "budget")],
        )
        assert builtin.sleep_deprivation_condition(s)
        result = builtin.sleep_deprivation_action(s)
        assert "5.5h" in result.message
        assert result.estimated_savings == Decimal("150.00")

    def test_six_hours_is_enough(self):
        s = snap(
            sleep_summary={"duration_hours": 6},
            nearby_merchants=[merchant("Deli", 300, "budget")],
        )
        assert not builtin.sleep_deprivation_condition(s)


class TestSpendingPattern:
    def _purchases(self, *amounts):
        return [{"amount": a, "occurred_at": T} for a in amounts]

    def test_three_purchases_do_not_fire(self):
        assert not builtin.spending_pattern_condition(
            snap(recent_spending=self._purchases(10, 20, 30))
        )

    def test_estimate_is_twenty_percent(self):
        s = snap(recent_spending=self._purchases("50", "75", "100", "25.55"))
        assert builtin.spending_pattern_condition(s)
        result = builtin.spending_pattern_action(s)
        assert result.estimated_savings == Decimal("50.11")
        assert result.metadata["purchase_count"] == 4
        assert result.metadata["total_spent"] == "250.55"


class TestSampleSnapshot:
    def test_contents(self):
        s = builtin.sample_snapshot("demo", now=T)
        assert s.user_id == "demo"
        assert s.current_mood == 3
        assert len(s.recent_spending) == 4

    def test_every_reference_rule_fires(self):
        s = builtin.sample_snapshot("demo", now=T)
        for rule in builtin.BUILTIN_RULES:
            assert rule.condition(s), rule.id
