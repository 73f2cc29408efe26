from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

from moodwallet.interventions.errors import DuplicateConfirmationError
from moodwallet.interventions.ledger.models import (
    LedgerEntry,
    SavingsCategory,
    TriggerType,
)


class LedgerStore(Protocol):
    """Append/read capability the ledger needs from storage.

    list_for_user() returns entries newest first.
    add() raises DuplicateConfirmationError when the entry confirms an
    estimate that already has a confirmation.
    """

    async def add(self, entry: LedgerEntry) -> LedgerEntry: ...

    async def get(self, user_id: str, entry_id: str) -> LedgerEntry | None: ...

    async def find_confirmation(self, entry_id: str) -> LedgerEntry | None: ...

    async def list_for_user(
        self,
        user_id: str,
        *,
        since: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
        category: SavingsCategory | None = None,
        trigger_type: TriggerType | None = None,
    ) -> list[LedgerEntry]: ...


def as_utc(dt: datetime) -> datetime:
    """Naive datetimes coming back from storage are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class InMemoryLedgerStore:
    """Process-local LedgerStore used by the test suite."""

    def __init__(self) -> None:
        self._entries: list[LedgerEntry] = []
        self._by_id: dict[str, LedgerEntry] = {}
        self._confirmations: dict[str, LedgerEntry] = {}

    async def add(self, entry: LedgerEntry) -> LedgerEntry:
        if entry.id in self._by_id:
            raise ValueError(f"duplicate ledger entry id: {entry.id}")
        if entry.confirms_entry_id is not None:
            existing = self._confirmations.get(entry.confirms_entry_id)
            if existing is not None:
                raise DuplicateConfirmationError(entry.confirms_entry_id, existing.id)
            self._confirmations[entry.confirms_entry_id] = entry
        self._entries.append(entry)
        self._by_id[entry.id] = entry
        return entry

    async def get(self, user_id: str, entry_id: str) -> LedgerEntry | None:
        entry = self._by_id.get(entry_id)
        if entry is None or entry.user_id != user_id:
            return None
        return entry

    async def find_confirmation(self, entry_id: str) -> LedgerEntry | None:
        return self._confirmations.get(entry_id)

    async def list_for_user(
        self,
        user_id: str,
        *,
        since: datetime | None = None,
        limit: int | None = None,
        offset: int = 0,
        category: SavingsCategory | None = None,
        trigger_type: TriggerType | None = None,
    ) -> list[LedgerEntry]:
        # newest first; equal timestamps keep reverse insertion order
        rows = [
            (i, e)
            for i, e in enumerate(self._entries)
            if e.user_id == user_id
            and (since is None or as_utc(e.created_at) >= since)
            and (category is None or e.category == category)
            and (trigger_type is None or e.trigger_type == trigger_type)
        ]
        rows.sort(key=lambda r: (as_utc(r[1].created_at), r[0]), reverse=True)
        out = [e for _, e in rows][offset:]
        return out if limit is None else out[:limit]

    def __len__(self) -> int:
        return len(self._entries)
