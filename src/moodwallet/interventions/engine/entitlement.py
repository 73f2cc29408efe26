from __future__ import annotations

from enum import Enum
from typing import Any


class Tier(str, Enum):
    free = "free"
    pro = "pro"
    premium = "premium"

    @property
    def rank(self) -> int:
        return _RANK[self]

    @classmethod
    def coerce(cls, value: Any) -> "Tier":
        """Resolve a tier from an enum, string or None. Unknown values fail closed to free."""
        if isinstance(value, Tier):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.free
        return cls.free


_RANK: dict[Tier, int] = {
    Tier.free: 0,
    Tier.pro: 1,
    Tier.premium: 2,
}


def satisfies(tier: Tier | str | None, minimum: Tier | str | None) -> bool:
    """True when `tier` is at or above `minimum` in free < pro < premium."""
    return Tier.coerce(tier).rank >= Tier.coerce(minimum).rank
