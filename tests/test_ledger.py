import asyncio
from decimal import Decimal

import pytest

from moodwallet.interventions.config.settings import settings
from moodwallet.interventions.engine.engine_service import InterventionEngine
from moodwallet.interventions.engine.rules.builtin import (
    build_default_registry,
    sample_snapshot,
)
from moodwallet.interventions.engine.rules.models import InterventionResult, RiskLevel
from moodwallet.interventions.errors import (
    DuplicateConfirmationError,
    EstimateNotFoundError,
    NoSavingsError,
    ValidationError,
)
from moodwallet.interventions.ledger.models import (
    NewLedgerEntry,
    SavingsCategory,
    TriggerType,
)


def run(coro):
    return asyncio.run(coro)


def _estimate(ledger, amount="80.00", user_id="u1"):
    return run(
        ledger.append(
            NewLedgerEntry(
                user_id=user_id,
                amount=amount,
                description="skipped the handbag",
                category="shopping",
                trigger_type="location_alert",
                intervention_type="location_based_intervention",
            )
        )
    )


def _confirm(ledger, estimate_id, actual="25.00", original="80.00", user_id="u1"):
    return run(
        ledger.confirm(
            user_id,
            estimate_id,
            actual_amount=actual,
            original_amount=original,
            category="shopping",
            trigger_type="manual",
            reason="bought the cheaper one",
        )
    )


class TestAppend:
    def test_record_manual_saving(self, ledger):
        entry = run(
            ledger.append(
                NewLedgerEntry(
                    user_id="u1",
                    amount="45.00",
                    description="cooked at home",
                    category="shopping",
                    trigger_type="manual",
                )
            )
        )
        assert entry.amount == Decimal("45.00")
        assert entry.saved_amount == Decimal("45.00")
        assert entry.category is SavingsCategory.shopping
        assert entry.trigger_type is TriggerType.manual
        assert entry.currency == settings.DEFAULT_CURRENCY
        assert entry.metadata["actual_savings"] is False
        assert not entry.is_confirmation

        history = run(ledger.history("u1"))
        assert [e.id for e in history] == [entry.id]

    def test_amount_is_rounded_to_cents(self, ledger):
        entry = run(ledger.append(NewLedgerEntry("u1", 12.345, "coffee")))
        assert entry.amount == Decimal("12.35")

    def test_zero_is_allowed(self, ledger):
        assert run(ledger.append(NewLedgerEntry("u1", "0", "nothing"))).amount == 0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"amount": "-1"},
            {"amount": "-0.004"},
            {"amount": "lots"},
            {"amount": True},
            {"category": "groceries"},
            {"trigger_type": "gut_feeling"},
            {"description": "   "},
            {"user_id": ""},
        ],
    )
    def test_rejects_invalid_input(self, ledger, store, kwargs):
        fields = {"user_id": "u1", "amount": "10", "description": "x", **kwargs}
        with pytest.raises(ValidationError):
            run(ledger.append(NewLedgerEntry(**fields)))
        assert len(store) == 0

    def test_collects_every_problem(self, ledger):
        with pytest.raises(ValidationError) as exc:
            run(
                ledger.append(
                    NewLedgerEntry("u1", "-5", "x", category="nope", trigger_type="nope")
                )
            )
        assert len(exc.value.errors) == 3


class TestConfirm:
    def test_confirm_records_actual_savings(self, ledger):
        estimate = _estimate(ledger)
        confirmed = _confirm(ledger, estimate.id)

        assert confirmed.amount == Decimal("25.00")
        assert confirmed.saved_amount == Decimal("55.00")
        assert confirmed.original_amount == Decimal("80.00")
        assert confirmed.confirms_entry_id == estimate.id
        assert confirmed.metadata["actual_savings"] is True
        assert confirmed.metadata["original_estimate_id"] == estimate.id
        assert "confirmed_at" in confirmed.metadata
        assert confirmed.intervention_type == "location_based_intervention"

    def test_estimate_is_left_untouched(self, ledger, store):
        estimate = _estimate(ledger)
        _confirm(ledger, estimate.id)
        assert run(store.get("u1", estimate.id)) == estimate
        assert len(store) == 2

    @pytest.mark.parametrize("actual", ["80.00", "95.00"])
    def test_no_savings_is_rejected(self, ledger, store, actual):
        estimate = _estimate(ledger)
        with pytest.raises(NoSavingsError):
            _confirm(ledger, estimate.id, actual=actual)
        assert len(store) == 1

    def test_second_confirmation_is_rejected(self, ledger, store):
        estimate = _estimate(ledger)
        first = _confirm(ledger, estimate.id)
        with pytest.raises(DuplicateConfirmationError) as exc:
            _confirm(ledger, estimate.id, actual="10.00")
        assert exc.value.existing_id == first.id
        assert len(store) == 2

    def test_unknown_estimate(self, ledger):
        with pytest.raises(EstimateNotFoundError):
            _confirm(ledger, "does-not-exist")

    def test_other_users_estimate_is_not_found(self, ledger):
        estimate = _estimate(ledger, user_id="someone-else")
        with pytest.raises(EstimateNotFoundError):
            _confirm(ledger, estimate.id, user_id="u1")

    def test_cannot_confirm_a_confirmation(self, ledger):
        estimate = _estimate(ledger)
        confirmed = _confirm(ledger, estimate.id)
        with pytest.raises(ValidationError):
            _confirm(ledger, confirmed.id)

    def test_legacy_category_and_rule_trigger_are_mapped(self, ledger):
        estimate = _estimate(ledger)
        confirmed = run(
            ledger.confirm(
                "u1",
                estimate.id,
                actual_amount="0",
                original_amount="80",
                category="prevented_purchase",
                trigger_type="weather_mood_intervention",
                reason="walked away",
            )
        )
        assert confirmed.category is SavingsCategory.shopping
        assert confirmed.trigger_type is TriggerType.weather_based

    def test_store_enforces_uniqueness_on_its_own(self, ledger, store):
        estimate = _estimate(ledger)
        first = _confirm(ledger, estimate.id)
        with pytest.raises(DuplicateConfirmationError):
            run(store.add(first.model_copy(update={"id": "another-id"})))


class TestRecordInterventions:
    def _results(self):
        engine = InterventionEngine(build_default_registry())
        return engine.evaluate(sample_snapshot("u1"), "premium")

    def test_records_an_estimate_per_result(self, ledger):
        recorded = run(ledger.record_interventions("u1", self._results(), "premium"))
        assert len(recorded) == 5
        by_rule = {e.intervention_type: e for e in recorded}
        sleep = by_rule["sleep_deprivation_intervention"]
        assert sleep.category is SavingsCategory.other
        assert sleep.trigger_type is TriggerType.mood_alert
        assert sleep.amount == Decimal("150.00")
        assert by_rule["spending_pattern_intervention"].trigger_type is TriggerType.time_based
        assert all(e.metadata["actual_savings"] is False for e in recorded)

    def test_below_minimum_tier_records_nothing(self, ledger, store):
        assert run(ledger.record_interventions("u1", self._results(), "free")) == []
        assert len(store) == 0

    def test_disabled_by_setting(self, ledger, store, monkeypatch):
        monkeypatch.setattr(settings, "AUTO_RECORD_ESTIMATES", False)
        assert run(ledger.record_interventions("u1", self._results(), "premium")) == []
        assert len(store) == 0

    def test_unknown_rule_defaults(self, ledger):
        result = InterventionResult(
            intervention_type="custom_rule",
            risk_level=RiskLevel.low,
            message="custom",
            estimated_savings=Decimal("5"),
        )
        entry = run(ledger.record_intervention("u1", result))
        assert entry.category is SavingsCategory.other
        assert entry.trigger_type is TriggerType.manual

    def test_result_without_savings_is_skipped(self, ledger):
        result = InterventionResult(
            intervention_type="custom_rule", risk_level=RiskLevel.low, message="m"
        )
        assert run(ledger.record_intervention("u1", result)) is None


class TestHistory:
    def test_newest_first_with_paging_and_filters(self, ledger):
        a = run(ledger.append(NewLedgerEntry("u1", "1", "a", category="food")))
        b = run(ledger.append(NewLedgerEntry("u1", "2", "b", category="shopping")))
        c = run(ledger.append(NewLedgerEntry("u1", "3", "c", category="food")))
        run(ledger.append(NewLedgerEntry("u2", "4", "other user")))

        assert [e.id for e in run(ledger.history("u1"))] == [c.id, b.id, a.id]
        assert [e.id for e in run(ledger.history("u1", 1, offset=1))] == [b.id]
        assert [e.id for e in run(ledger.history("u1", category="food"))] == [c.id, a.id]

    def test_invalid_filter(self, ledger):
        with pytest.raises(ValidationError):
            run(ledger.history("u1", category="groceries"))

    def test_limit_must_be_positive(self, ledger):
        with pytest.raises(ValidationError):
            run(ledger.history("u1", 0))

    def test_limit_is_capped(self, ledger, monkeypatch):
        monkeypatch.setattr(settings, "HISTORY_LIMIT_MAX", 2)
        for i in range(3):
            run(ledger.append(NewLedgerEntry("u1", "1", f"e{i}")))
        assert len(run(ledger.history("u1", 100))) == 2
