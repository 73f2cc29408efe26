from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from moodwallet.interventions.engine.entitlement import Tier
from moodwallet.interventions.engine.rules.models import (
    ContextSnapshot,
    InterventionResult,
)
from moodwallet.interventions.errors import DuplicateRuleError

logger = logging.getLogger(__name__)

Condition = Callable[[ContextSnapshot], bool]
Action = Callable[[ContextSnapshot], InterventionResult]


@dataclass(frozen=True)
class Rule:
    id: str
    minimum_tier: Tier
    priority: int
    condition: Condition = field(compare=False)
    action: Action = field(compare=False)
    name: str = ""

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("rule id is required")
        # reject unknown tiers here; Tier.coerce would silently open the rule to free
        object.__setattr__(self, "minimum_tier", Tier(self.minimum_tier))


class RuleRegistry:
    """Ordered, id-unique collection of rules.

    Registration order is kept so that rules with equal priority evaluate in
    the order they were registered. Once frozen, the registry is read-only and
    can be shared across concurrent requests.
    """

    def __init__(self, rules: Iterable[Rule] = ()):
        self._rules: list[Rule] = []
        self._by_id: dict[str, Rule] = {}
        self._frozen = False
        for rule in rules:
            self.register(rule)

    def register(self, rule: Rule) -> Rule:
        if self._frozen:
            raise RuntimeError(f"Registry is frozen, cannot register rule {rule.id}")
        if rule.id in self._by_id:
            raise DuplicateRuleError(rule.id)
        self._rules.append(rule)
        self._by_id[rule.id] = rule
        logger.debug(
            "Registered rule %s (tier=%s, priority=%d)",
            rule.id,
            rule.minimum_tier.value,
            rule.priority,
        )
        return rule

    def freeze(self) -> "RuleRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def all_rules(self) -> list[Rule]:
        # sorted() is stable, so ties keep registration order
        return sorted(self._rules, key=lambda r: r.priority)

    def get(self, rule_id: str) -> Rule | None:
        return self._by_id.get(rule_id)

    def ids(self) -> list[str]:
        return [r.id for r in self.all_rules()]

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id
