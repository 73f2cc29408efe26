"""Gateway identity middleware.

Authentication happens upstream; the gateway forwards the resolved user id
and subscription tier as headers. Requests without a user id are rejected
except on health/OpenAPI routes. Attaches a Caller to request.state.caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from moodwallet.interventions.engine.entitlement import Tier

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-Id"
TIER_HEADER = "X-Subscription-Tier"

# Routes that don't require an identity (FastAPI / OpenAPI meta)
_OPEN_PATHS: frozenset[str] = frozenset(
    {
        "/health",
        "/docs",
        "/redoc",
        "/openapi.json",
        "/favicon.ico",
    }
)


@dataclass(frozen=True)
class Caller:
    user_id: str
    tier: Tier


def _is_open(path: str) -> bool:
    """Return True if the path should bypass the identity check."""
    return path in _OPEN_PATHS or path.startswith("/docs/")


class GatewayIdentityMiddleware(BaseHTTPMiddleware):
    """Starlette middleware resolving the caller from gateway headers."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if _is_open(request.url.path):
            return await call_next(request)

        user_id = request.headers.get(USER_ID_HEADER, "").strip()
        if not user_id:
            logger.warning("Rejected request to %s without %s", request.url.path, USER_ID_HEADER)
            return JSONResponse(
                status_code=401,
                content={"detail": f"Missing {USER_ID_HEADER} header"},
            )

        raw_tier = request.headers.get(TIER_HEADER)
        tier = Tier.coerce(raw_tier)
        if raw_tier and tier.value != raw_tier.strip().lower():
            logger.warning(
                "Unknown subscription tier %r for user %s, treating as free",
                raw_tier,
                user_id,
            )

        request.state.caller = Caller(user_id=user_id, tier=tier)
        return await call_next(request)
