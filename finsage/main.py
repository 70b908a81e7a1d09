# =============================================================================
# FastAPI Application Factory
# =============================================================================
#
# Wires routers, shared services and the error boundary together.
#
# ERROR BOUNDARY:
# Services raise FinSageError subclasses. One exception handler turns them
# into `{"detail", "code", "error"}` JSON with the status the class declares,
# which the frontend shows as a transient notification. Nothing is fatal.
#
# USAGE:
#   uvicorn finsage.main:app --reload
# =============================================================================

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from finsage.api import chat, ingest, insights
from finsage.api import settings as settings_api
from finsage.config import Settings, settings
from finsage.errors import FinSageError
from finsage.models.responses import ErrorResponse, HealthResponse
from finsage.services.ingestion import IngestionPipeline
from finsage.services.latency import get_delay
from finsage.services.resolver import QueryResolver
from finsage.services.session import SessionRegistry

logger = logging.getLogger(__name__)


def configure_logging(config: Settings) -> None:
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def finsage_error_handler(request: Request, exc: FinSageError) -> JSONResponse:
    logger.warning(
        "%s on %s %s: %s",
        type(exc).__name__, request.method, request.url.path, exc.message,
    )
    body = ErrorResponse(detail=exc.message, code=exc.code, error=type(exc).__name__)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


def create_app(
    config: Settings | None = None,
    registry: SessionRegistry | None = None,
    resolver: QueryResolver | None = None,
    pipeline: IngestionPipeline | None = None,
) -> FastAPI:
    """
    Build the application.

    Every collaborator can be injected; tests pass a no-delay resolver and
    pipeline so they run without simulated latency.
    """
    config = config or settings
    configure_logging(config)

    app = FastAPI(
        title=config.app_name,
        version=config.app_version,
        debug=config.debug,
        description=(
            "Backend for the FinancialSage dashboard: statement ingestion, "
            "chart recommendations, automated insights and a chat assistant."
        ),
    )

    delay = get_delay(config)
    app.state.config = config
    app.state.registry = registry or SessionRegistry(config=config)
    app.state.resolver = resolver or QueryResolver(delay=delay)
    app.state.pipeline = pipeline or IngestionPipeline(config=config, delay=delay)

    app.add_exception_handler(FinSageError, finsage_error_handler)

    app.include_router(ingest.router)
    app.include_router(chat.router)
    app.include_router(insights.router)
    app.include_router(settings_api.router)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(version=config.app_version, service=config.app_name)

    logger.info(
        "%s %s ready (session backend=%s, latency=%s)",
        config.app_name,
        config.app_version,
        config.session_backend,
        "simulated" if config.simulate_latency else "off",
    )
    return app


app = create_app()
