"""Read-side rollups over the savings ledger.

Every call re-derives the numbers from the ledger slice; nothing is cached.
Each entry contributes its ``saved_amount`` (the amount for estimates and
manual entries, ``original - actual`` for confirmations). An estimate whose
confirmation is in the same slice is left out: the confirmation replaces it.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Sequence

from moodwallet.interventions.config.settings import settings
from moodwallet.interventions.errors import ValidationError
from moodwallet.interventions.ledger.models import (
    Achievement,
    CategoryTotal,
    LedgerEntry,
    MonthTotal,
    PotentialSavings,
    SavingsCategory,
    SavingsStats,
)
from moodwallet.interventions.ledger.store import LedgerStore, as_utc
from moodwallet.interventions.utils import to_money

ZERO = Decimal("0.00")

ACHIEVEMENT_TITLES = {
    "first_fifty": "First 50 Saved",
    "century": "Century Saver",
    "savings_expert": "Savings Expert",
    "savings_master": "Savings Master",
}


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def week_start(now: datetime) -> datetime:
    """Midnight of the most recent Sunday."""
    day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    # weekday(): Monday=0 .. Sunday=6
    return day - timedelta(days=(now.weekday() + 1) % 7)


def effective_entries(entries: Iterable[LedgerEntry]) -> list[LedgerEntry]:
    """Drop estimates superseded by a confirmation present in the same slice.

    Order is preserved.
    """
    entries = list(entries)
    confirmed = {e.confirms_entry_id for e in entries if e.is_confirmation}
    return [e for e in entries if e.id not in confirmed]


def top_categories(
    entries: Sequence[LedgerEntry], limit: int | None = None
) -> list[CategoryTotal]:
    limit = settings.TOP_CATEGORIES_LIMIT if limit is None else limit
    totals: dict[SavingsCategory, list] = {}
    for e in effective_entries(entries):
        bucket = totals.setdefault(e.category, [ZERO, 0])
        bucket[0] += e.saved_amount
        bucket[1] += 1
    # dicts keep first-occurrence order and sorted() is stable
    ranked = sorted(totals.items(), key=lambda kv: kv[1][0], reverse=True)
    return [
        CategoryTotal(category=cat, amount=to_money(amount), count=count)
        for cat, (amount, count) in ranked[:limit]
    ]


def monthly_breakdown(
    entries: Iterable[LedgerEntry], months: int | None = None
) -> list[MonthTotal]:
    months = settings.MONTHLY_BREAKDOWN_MONTHS if months is None else months
    totals: dict[str, list] = {}
    for e in effective_entries(entries):
        key = as_utc(e.created_at).strftime("%Y-%m")
        bucket = totals.setdefault(key, [ZERO, 0])
        bucket[0] += e.saved_amount
        bucket[1] += 1
    return [
        MonthTotal(month=key, amount=to_money(amount), count=count)
        for key, (amount, count) in sorted(totals.items(), reverse=True)[:months]
    ]


def summarize_entries(
    entries: Sequence[LedgerEntry], now: datetime | None = None
) -> SavingsStats:
    """Fold a newest-first ledger slice into SavingsStats."""
    now = as_utc(now or datetime.now(timezone.utc))
    this_month = month_start(now)
    this_week = week_start(now)
    entries = effective_entries(entries)

    total = confirmed = month = week = ZERO
    for e in entries:
        created = as_utc(e.created_at)
        total += e.saved_amount
        if e.is_confirmation:
            confirmed += e.saved_amount
        if created >= this_month:
            month += e.saved_amount
        if created >= this_week:
            week += e.saved_amount

    return SavingsStats(
        total_saved=to_money(total),
        savings_this_month=to_money(month),
        savings_this_week=to_money(week),
        intervention_count=len(entries),
        confirmed_saved=to_money(confirmed),
        estimated_saved=to_money(total - confirmed),
        top_categories=top_categories(entries),
        monthly_breakdown=monthly_breakdown(entries),
    )


def potential_savings(entries: Sequence[LedgerEntry]) -> PotentialSavings:
    """Project monthly and yearly savings from a trailing window of entries."""
    entries = effective_entries(entries)
    monthly = sum((e.saved_amount for e in entries), ZERO)
    average = monthly / len(entries) if entries else ZERO
    return PotentialSavings(
        projected_monthly_savings=to_money(monthly),
        projected_yearly_savings=to_money(monthly * 12),
        average_intervention_value=to_money(average),
    )


def achievements(total_saved: Decimal) -> list[Achievement]:
    """Milestones reached by a running total, lowest threshold first."""
    out = []
    for key, threshold in sorted(
        settings.ACHIEVEMENT_THRESHOLDS.items(), key=lambda kv: kv[1]
    ):
        if total_saved >= threshold:
            out.append(
                Achievement(
                    id=key,
                    title=ACHIEVEMENT_TITLES.get(key, key.replace("_", " ").title()),
                    threshold=threshold,
                )
            )
    return out


class SavingsStatsService:
    def __init__(self, store: LedgerStore):
        self.store = store

    async def summarize(
        self,
        user_id: str,
        window_days: int | None = None,
        now: datetime | None = None,
    ) -> SavingsStats:
        if window_days is not None and window_days < 1:
            raise ValidationError("window_days must be a positive number of days")
        now = as_utc(now or datetime.now(timezone.utc))
        since = now - timedelta(days=window_days) if window_days is not None else None
        entries = await self.store.list_for_user(user_id, since=since)
        return summarize_entries(entries, now=now)

    async def potential_savings(
        self, user_id: str, now: datetime | None = None
    ) -> PotentialSavings:
        now = as_utc(now or datetime.now(timezone.utc))
        since = now - timedelta(days=settings.POTENTIAL_SAVINGS_WINDOW_DAYS)
        entries = await self.store.list_for_user(user_id, since=since)
        return potential_savings(entries)

    async def achievements(self, user_id: str) -> list[Achievement]:
        stats = await self.summarize(user_id)
        return achievements(stats.total_saved)
