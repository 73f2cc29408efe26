import pytest

from moodwallet.interventions.engine.entitlement import Tier
from moodwallet.interventions.engine.registry import Rule, RuleRegistry
from moodwallet.interventions.engine.rules.builtin import (
    BUILTIN_RULES,
    build_default_registry,
)
from moodwallet.interventions.errors import DuplicateRuleError


def _rule(rule_id, priority, tier=Tier.free):
    return Rule(
        id=rule_id,
        minimum_tier=tier,
        priority=priority,
        condition=lambda s: True,
        action=lambda s: None,
    )


class TestRuleRegistry:
    def test_orders_by_priority(self):
        reg = RuleRegistry([_rule("c", 3), _rule("a", 1), _rule("b", 2)])
        assert reg.ids() == ["a", "b", "c"]

    def test_ties_keep_registration_order(self):
        reg = RuleRegistry([_rule("x", 1), _rule("y", 0), _rule("z", 1), _rule("w", 1)])
        assert reg.ids() == ["y", "x", "z", "w"]

    def test_duplicate_id_rejected(self):
        reg = RuleRegistry([_rule("a", 1)])
        with pytest.raises(DuplicateRuleError) as exc:
            reg.register(_rule("a", 2))
        assert exc.value.rule_id == "a"
        assert len(reg) == 1

    def test_frozen_registry_is_read_only(self):
        reg = RuleRegistry([_rule("a", 1)]).freeze()
        assert reg.frozen
        with pytest.raises(RuntimeError):
            reg.register(_rule("b", 2))

    def test_get_and_contains(self):
        reg = RuleRegistry([_rule("a", 1)])
        assert reg.get("a").id == "a"
        assert reg.get("missing") is None
        assert "a" in reg and "missing" not in reg

    def test_unknown_minimum_tier_rejected(self):
        with pytest.raises(ValueError):
            _rule("a", 1, tier="gold")

    def test_empty_id_rejected(self):
        with pytest.raises(ValueError):
            _rule("", 1)


class TestDefaultRegistry:
    def test_reference_rules_in_priority_order(self):
        reg = build_default_registry()
        assert reg.frozen
        assert reg.ids() == [
            "mood_spending_correlation",
            "location_based_intervention",
            "weather_mood_intervention",
            "sleep_deprivation_intervention",
            "spending_pattern_intervention",
        ]

    def test_rule_tiers(self):
        tiers = {r.id: r.minimum_tier for r in BUILTIN_RULES}
        assert tiers["mood_spending_correlation"] is Tier.pro
        assert tiers["spending_pattern_intervention"] is Tier.pro
        assert tiers["location_based_intervention"] is Tier.premium
        assert tiers["weather_mood_intervention"] is Tier.premium
        assert tiers["sleep_deprivation_intervention"] is Tier.premium

    def test_builds_independent_registries(self):
        assert build_default_registry() is not build_default_registry()
