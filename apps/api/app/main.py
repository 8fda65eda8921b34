from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from app.core.config import settings

import app.models  # noqa: F401 - register all models at startup

from app.core.errors import register_exception_handlers
from app.core.sentry import init_sentry
from app.middleware.tenant import TenantMiddleware
from app.modules.matching.router import router as matching_router
from app.modules.signals.router import router as signals_router

# ── Sentry: must be initialised BEFORE FastAPI app is created ────────────────
init_sentry(settings.SENTRY_DSN, settings.SENTRY_ENVIRONMENT, settings.APP_VERSION)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None]:
    logger.info("Starting Estate Match API", env=settings.APP_ENV)
    yield
    logger.info("Shutting down Estate Match API")
    from app.core.database import engine

    await engine.dispose()


_is_prod = settings.APP_ENV == "production"

app = FastAPI(
    title="Estate Match API",
    description="Mandate-constrained property matching, counterfactuals and market signal routing.",
    version="0.1.0",
    # Disable interactive docs in production: use /openapi.json directly if needed
    docs_url=None if _is_prod else "/docs",
    redoc_url=None if _is_prod else "/redoc",
    openapi_url=None if _is_prod else "/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=[
        "Content-Type",
        "Accept",
        "X-Request-ID",
        "X-User-Id",
        "X-Org-Id",
        "X-User-Role",
    ],
)
app.add_middleware(TenantMiddleware)
register_exception_handlers(app)


# ── X-API-Version response header ────────────────────────────────────────────


@app.middleware("http")
async def add_version_header(request: Request, call_next) -> Response:
    response = await call_next(request)
    response.headers["X-API-Version"] = "v1"
    return response


# ── Health check (root-level, not under /v1) ─────────────────────────────────


@app.get("/health")
async def health_check() -> dict:
    """Deep health check: probes PostgreSQL and Redis."""
    checks: dict[str, dict] = {}

    # ── PostgreSQL ────────────────────────────────────────────────────────────
    try:
        from sqlalchemy import text
        from app.core.database import async_session_factory
        async with async_session_factory() as db:
            await db.execute(text("SELECT 1"))
        checks["postgresql"] = {"status": "healthy"}
    except Exception as exc:
        checks["postgresql"] = {"status": "unhealthy", "error": str(exc)}

    # ── Redis (Celery broker) ─────────────────────────────────────────────────
    try:
        from redis.asyncio import from_url as redis_from_url
        r = redis_from_url(settings.REDIS_URL, socket_connect_timeout=2)
        await r.ping()
        await r.aclose()
        checks["redis"] = {"status": "healthy"}
    except Exception as exc:
        checks["redis"] = {"status": "unhealthy", "error": str(exc)}

    overall = (
        "healthy"
        if all(c["status"] == "healthy" for c in checks.values())
        else "degraded"
    )
    return {"status": overall, "service": "estate-match-api", "checks": checks}


# ── /v1 versioned router ──────────────────────────────────────────────────────

api_v1 = APIRouter(prefix="/v1")

api_v1.include_router(matching_router)
api_v1.include_router(signals_router)

app.include_router(api_v1)
