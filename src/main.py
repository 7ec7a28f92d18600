"""Femora API: FastAPI application entry point.

Run locally:
    uvicorn src.main:app --reload --port 8081
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from src.config import Settings, get_settings
from src.cycles.config_loader import get_cycle_config, load_cycle_config
from src.cycles.engine import CycleEngine
from src.middleware.rate_limit import RateLimitMiddleware
from src.middleware.security import SecurityHeadersMiddleware
from src.models.base import FailureResponse
from src.routers import health, period, periods
from src.services.period_store import InMemoryPeriodStore, PeriodStore

# ---------- Logging ----------

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("femora")


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings = get_settings()
    logger.info(
        "Starting Femora API v%s [%s] with cycle config v%s",
        settings.app_version,
        settings.environment,
        app.state.cycle_engine.config.version,
    )
    yield
    logger.info("Femora API shut down")


# ---------- Error shape for the period endpoints ----------

def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid request: " + "; ".join(parts)


def _install_error_handlers(app: FastAPI, period_prefix: str) -> None:
    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> Response:
        # The period endpoints always answer with {success, message}
        if request.url.path.startswith(period_prefix):
            body = FailureResponse(message=_validation_message(exc))
            return JSONResponse(status_code=400, content=body.model_dump(by_alias=True))
        return await request_validation_exception_handler(request, exc)


# ---------- App factory ----------

def create_app(
    settings: Settings | None = None,
    store: PeriodStore | None = None,
    engine: CycleEngine | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings override (defaults to the environment).
        store:    Period store; a fresh in-memory store per app by default.
        engine:   Cycle engine; built from the configured YAML by default.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Femora API",
        description=(
            "Period logging, cycle prediction and calendar classification "
            "for the Femora web client."
        ),
        version=settings.app_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    if engine is None:
        config = (
            load_cycle_config(settings.cycle_config_path)
            if settings.cycle_config_path
            else get_cycle_config()
        )
        engine = CycleEngine(config)
    app.state.cycle_engine = engine
    app.state.period_store = store if store is not None else InMemoryPeriodStore()

    # ---------- Middleware (last added runs outermost) ----------

    # Security headers on every response
    app.add_middleware(SecurityHeadersMiddleware)

    # Rate limiting
    app.add_middleware(RateLimitMiddleware, settings=settings)

    # CORS answers preflight requests before the rate limiter sees them
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "Retry-After"],
    )

    _install_error_handlers(app, f"{settings.api_prefix}/period/")

    # ---------- Health check (outside the API prefix) ----------
    app.include_router(health.router)

    # ---------- API routes ----------
    app.include_router(period.router, prefix=settings.api_prefix)
    app.include_router(periods.router, prefix=settings.api_prefix)

    return app


app = create_app()
