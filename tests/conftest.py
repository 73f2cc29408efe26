from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from moodwallet.interventions.ledger.models import (
    LedgerEntry,
    SavingsCategory,
    TriggerType,
)
from moodwallet.interventions.ledger.service import SavingsLedger
from moodwallet.interventions.ledger.store import InMemoryLedgerStore
from moodwallet.interventions.main import create_app
from moodwallet.interventions.security.policies import get_ledger_store

NOW = datetime(2026, 3, 18, 12, 0, tzinfo=timezone.utc)  # a Wednesday


def make_entry(
    entry_id: str,
    amount: str,
    created_at: datetime,
    *,
    user_id: str = "u1",
    category: SavingsCategory = SavingsCategory.shopping,
    saved_amount: str | None = None,
    confirms_entry_id: str | None = None,
) -> LedgerEntry:
    return LedgerEntry(
        id=entry_id,
        user_id=user_id,
        amount=Decimal(amount),
        currency="EUR",
        description=f"entry {entry_id}",
        category=category,
        trigger_type=TriggerType.manual,
        saved_amount=Decimal(saved_amount if saved_amount is not None else amount),
        confirms_entry_id=confirms_entry_id,
        metadata={},
        created_at=created_at,
        updated_at=created_at,
    )


def base_snapshot(**overrides) -> dict:
    data = {
        "user_id": "u1",
        "current_mood": 7,
        "location": {"latitude": 45.46, "longitude": 9.19},
    }
    data.update(overrides)
    return data


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def ledger(store) -> SavingsLedger:
    return SavingsLedger(store)


@pytest.fixture
def app(store):
    app = create_app()
    app.dependency_overrides[get_ledger_store] = lambda: store
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def headers(user_id: str = "u1", tier: str = "premium") -> dict:
    return {"X-User-Id": user_id, "X-Subscription-Tier": tier}
