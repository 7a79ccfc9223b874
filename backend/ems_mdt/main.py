"""FastAPI application for the EMS MDT backend."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ems_mdt.api import admin_router, auth_router, diagnosis_router, users_router
from ems_mdt.core.config import settings
from ems_mdt.core.database import close_db, init_db
from ems_mdt.core.errors import register_exception_handlers
from ems_mdt.services.diagnosis import get_diagnosis_service

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def prewarm_services() -> dict[str, Any]:
    """Build singleton services before accepting requests.

    The diagnosis catalog is validated here, so a malformed disease
    profile stops startup instead of failing the first analysis.
    """
    start_time = time.perf_counter()
    services_loaded = {"diagnosis": get_diagnosis_service().get_stats()}
    total_time_ms = (time.perf_counter() - start_time) * 1000

    return {
        "services_loaded": len(services_loaded),
        "total_prewarm_time_ms": round(total_time_ms, 2),
        "services": services_loaded,
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    - Startup: configure logging, create tables in debug mode, prewarm services
    - Shutdown: close database connections
    """
    logging.basicConfig(level=settings.log_level.upper())

    if settings.debug:
        await init_db()

    prewarm_stats = prewarm_services()
    logger.info(
        f"Services pre-warmed: {prewarm_stats['services_loaded']} services "
        f"in {prewarm_stats['total_prewarm_time_ms']}ms"
    )
    app.state.prewarm_stats = prewarm_stats

    yield

    await close_db()


app = FastAPI(
    title=settings.app_name,
    description="Differential diagnosis and grade-based authorization for EMS dispatch.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(admin_router, prefix=settings.api_prefix)
app.include_router(auth_router, prefix=settings.api_prefix)
app.include_router(diagnosis_router, prefix=settings.api_prefix)
app.include_router(users_router, prefix=settings.api_prefix)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """Health check endpoint (liveness probe)."""
    return {
        "status": "healthy",
        "service": "ems-mdt",
        "version": VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint with API info."""
    return {
        "service": "EMS MDT API",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
    }
