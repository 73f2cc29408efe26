from __future__ import annotations

import logging

from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)

router = APIRouter(tags=["meta"])


@router.get("/health")
async def health(request: Request):
    registry = getattr(request.app.state, "registry", None)
    return {"status": "ok", "rules": len(registry) if registry is not None else 0}
