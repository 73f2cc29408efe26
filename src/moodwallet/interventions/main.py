from contextlib import asynccontextmanager
import logging

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from moodwallet.interventions.api.routes import api_routers
from moodwallet.interventions.api.schemas import ErrorResponse
from moodwallet.interventions.config.settings import settings
from moodwallet.interventions.db.session import dispose_engine
from moodwallet.interventions.engine.rules.builtin import build_default_registry
from moodwallet.interventions.errors import (
    DuplicateConfirmationError,
    EstimateNotFoundError,
    InterventionError,
    NoSavingsError,
    ValidationError,
)
from moodwallet.interventions.security.auth import GatewayIdentityMiddleware

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[InterventionError], int]] = [
    (ValidationError, 422),
    (NoSavingsError, 422),
    (EstimateNotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateConfirmationError, status.HTTP_409_CONFLICT),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: build and freeze the rule registry once."""
    app.state.registry = build_default_registry()
    logger.info("Rule registry ready – rules: %s", app.state.registry.ids())
    yield
    await dispose_engine()


async def intervention_error_handler(request: Request, exc: InterventionError):
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            break
    else:
        # DuplicateRuleError / RuleEvaluationError are server-side faults
        logger.error("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc)
        code = status.HTTP_500_INTERNAL_SERVER_ERROR

    body = ErrorResponse(
        detail=str(exc),
        errors=exc.errors if isinstance(exc, ValidationError) else [],
    )
    return JSONResponse(status_code=code, content=body.model_dump())


def create_app():

    load_dotenv()

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="moodwallet-interventions-api", version="0.1.0", lifespan=lifespan)

    app.add_middleware(GatewayIdentityMiddleware)
    app.add_exception_handler(InterventionError, intervention_error_handler)

    for router in api_routers:
        app.include_router(router)

    return app


if __name__ == "__main__":
    app = create_app()
