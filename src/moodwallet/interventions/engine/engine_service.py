# engine/engine_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from moodwallet.interventions.engine.entitlement import Tier, satisfies
from moodwallet.interventions.engine.registry import Rule, RuleRegistry
from moodwallet.interventions.engine.rules.models import (
    ContextSnapshot,
    InterventionResult,
)
from moodwallet.interventions.errors import RuleEvaluationError

logger = logging.getLogger(__name__)


class RuleStatus(str, Enum):
    FIRED = "fired"
    NOT_TRIGGERED = "not_triggered"
    SKIPPED_TIER = "skipped_tier"
    FAILED = "failed"


@dataclass(frozen=True)
class EvaluationOutcome:
    results: list[InterventionResult]
    statuses: dict[str, RuleStatus] = field(default_factory=dict)
    failures: list[RuleEvaluationError] = field(default_factory=list)

    @property
    def skipped_by_tier(self) -> list[str]:
        return [r for r, s in self.statuses.items() if s == RuleStatus.SKIPPED_TIER]

    @property
    def failed_rules(self) -> list[str]:
        return [f.rule_id for f in self.failures]

    @property
    def overall_risk(self) -> int:
        """0 when nothing fired, else the highest risk score (1 low .. 3 high)."""
        return max((r.risk_level.score for r in self.results), default=0)


class InterventionEngine:
    """Evaluates every eligible rule against a snapshot.

    Stateless apart from the registry it is given; safe to share between
    concurrent requests once the registry is frozen.
    """

    def __init__(self, registry: RuleRegistry):
        self.registry = registry

    def evaluate(
        self,
        snapshot: ContextSnapshot | Mapping[str, Any],
        tier: Tier | str | None,
    ) -> list[InterventionResult]:
        return self.evaluate_detailed(snapshot, tier).results

    def evaluate_detailed(
        self,
        snapshot: ContextSnapshot | Mapping[str, Any],
        tier: Tier | str | None,
    ) -> EvaluationOutcome:
        # raises ValidationError before any rule runs
        snapshot = ContextSnapshot.parse(snapshot)
        tier = Tier.coerce(tier)

        results: list[InterventionResult] = []
        statuses: dict[str, RuleStatus] = {}
        failures: list[RuleEvaluationError] = []

        for rule in self.registry.all_rules():
            if not satisfies(tier, rule.minimum_tier):
                statuses[rule.id] = RuleStatus.SKIPPED_TIER
                continue

            try:
                result = self._run_rule(rule, snapshot)
            except RuleEvaluationError as err:
                logger.error(
                    "Rule %s failed during %s, skipping (snapshot=%s)",
                    rule.id,
                    err.stage,
                    snapshot.summary(),
                    exc_info=err.cause,
                )
                statuses[rule.id] = RuleStatus.FAILED
                failures.append(err)
                continue

            if result is None:
                statuses[rule.id] = RuleStatus.NOT_TRIGGERED
                continue

            statuses[rule.id] = RuleStatus.FIRED
            results.append(result)

        logger.debug(
            "Evaluated %d rules for tier=%s: %d fired, %d failed",
            len(statuses),
            tier.value,
            len(results),
            len(failures),
        )
        return EvaluationOutcome(results=results, statuses=statuses, failures=failures)

    @staticmethod
    def _run_rule(rule: Rule, snapshot: ContextSnapshot) -> InterventionResult | None:
        try:
            triggered = bool(rule.condition(snapshot))
        except Exception as e:
            raise RuleEvaluationError(rule.id, "condition", e) from e

        if not triggered:
            return None

        try:
            result = rule.action(snapshot)
        except Exception as e:
            raise RuleEvaluationError(rule.id, "action", e) from e

        if not isinstance(result, InterventionResult):
            raise RuleEvaluationError(
                rule.id,
                "action",
                TypeError(f"expected InterventionResult, got {type(result).__name__}"),
            )
        return result
