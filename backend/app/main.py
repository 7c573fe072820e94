"""
FastAPI application entrypoint.

Lifespan:
  • On startup: start the periodic quota sweep.
  • On shutdown: cancel the sweep cleanly.

Routers:
  • /api/gemini-* — AI insight endpoints behind the per-user quota
  • /api/health   — shallow liveness probe
"""

import asyncio
import datetime
import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.dependencies import get_admission_controller
from app.core.errors import GatewayError, QuotaExceeded, UpstreamFailure, map_error
from app.routers.gemini import router as gemini_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


async def _sweep_quota_store(interval: float) -> None:
    """Evict idle quota records so memory stays bounded by active users."""
    admission = get_admission_controller()
    while True:
        await asyncio.sleep(interval)
        try:
            admission.sweep()
        except Exception:
            logger.exception("Quota sweep failed (non-fatal)")


# ── Lifespan ────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""

    if not settings.GEMINI_API_KEY:
        logger.warning(
            "GEMINI_API_KEY is not set. "
            "The app will start, but AI requests will fail with a configuration error."
        )

    sweeper = asyncio.create_task(_sweep_quota_store(settings.QUOTA_SWEEP_INTERVAL_SECONDS))
    logger.info(
        "Quota: %d request(s) per %d ms per user ✓",
        settings.QUOTA_LIMIT,
        settings.QUOTA_WINDOW_MS,
    )

    yield  # ← application runs here

    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass
    logger.info("Quota sweeper stopped ✓")


# ── App ─────────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=(
        "Reading-tracker AI gateway — "
        "per-user admission control in front of Gemini."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Remaining", "X-RateLimit-Reset-In"],
)

# Mount routers
app.include_router(gemini_router, prefix="/api")


# ── Error mapping ───────────────────────────────────────────
@app.exception_handler(GatewayError)
async def gateway_error_handler(_request: Request, exc: GatewayError) -> JSONResponse:
    """Render any GatewayError via map_error, with quota telemetry if admitted."""
    outcome = map_error(exc)

    if isinstance(exc, UpstreamFailure):
        # Already logged at ERROR where it was raised.
        logger.debug("[Gemini API] %s: %s", exc.failure_message, exc.message)

    body: dict[str, object] = {"error": outcome.message}
    if isinstance(exc, QuotaExceeded):
        body["resetInMs"] = exc.decision.reset_in_ms

    headers = exc.decision.headers() if exc.decision else None
    return JSONResponse(status_code=outcome.status_code, content=body, headers=headers)


# ── Health check ────────────────────────────────────────────
@app.get(
    "/api/health",
    tags=["System"],
    summary="Liveness probe",
)
async def health_check() -> dict[str, str]:
    """Shallow health check — confirms the process is alive."""
    return {
        "status": "ok",
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "message": f"{settings.APP_NAME} is running",
    }
