"""FastAPI dependencies for the resolved caller and the services it uses.

Provides:
  - get_current_caller : injects the Caller set by GatewayIdentityMiddleware
  - get_engine         : the InterventionEngine over the registry built at startup
  - get_ledger_store   : a LedgerStore bound to the request's DB session
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from moodwallet.interventions.db.session import get_db
from moodwallet.interventions.engine.engine_service import InterventionEngine
from moodwallet.interventions.engine.registry import RuleRegistry
from moodwallet.interventions.ledger.service import SavingsLedger
from moodwallet.interventions.ledger.sql_store import SqlLedgerStore
from moodwallet.interventions.ledger.stats import SavingsStatsService
from moodwallet.interventions.ledger.store import LedgerStore
from moodwallet.interventions.security.auth import Caller


def get_current_caller(request: Request) -> Caller:
    """Inject the Caller attached by the middleware. Always present on protected routes."""
    caller: Caller | None = getattr(request.state, "caller", None)
    if caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return caller


def get_registry(request: Request) -> RuleRegistry:
    registry: RuleRegistry | None = getattr(request.app.state, "registry", None)
    if registry is None:
        raise RuntimeError("Rule registry not initialised (app lifespan not run)")
    return registry


def get_engine(registry: RuleRegistry = Depends(get_registry)) -> InterventionEngine:
    return InterventionEngine(registry)


def get_ledger_store(db: AsyncSession = Depends(get_db)) -> LedgerStore:
    return SqlLedgerStore(db)


def get_ledger(store: LedgerStore = Depends(get_ledger_store)) -> SavingsLedger:
    return SavingsLedger(store)


def get_stats_service(
    store: LedgerStore = Depends(get_ledger_store),
) -> SavingsStatsService:
    return SavingsStatsService(store)
