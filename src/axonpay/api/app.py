"""FastAPI application configuration."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CollectorRegistry, make_asgi_app, multiprocess

from ..env import get_settings
from ..infrastructure.database import DatabaseClient
from ..infrastructure.scripts import register_scripts
from .dependencies import (
    get_database_client_dependency,
    get_key_value_store,
    get_qris_gateway_client,
    get_transfer_client,
)
from .routers import merchants, qris, scan, snaps

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    await register_scripts(get_key_value_store())
    logger.info("Redis scripts loaded")
    yield
    await get_transfer_client().aclose()
    await get_qris_gateway_client().aclose()
    await get_database_client_dependency().close()


def _metrics_app():
    # Uvicorn workers each write their own files; aggregate them on scrape.
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return make_asgi_app(registry=registry)
    return make_asgi_app()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="AxonPay scan-to-pay and snap payments API",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(scan.router, prefix="/api/v1")
    app.include_router(qris.router, prefix="/api/v1")
    app.include_router(merchants.router, prefix="/api/v1")
    app.include_router(snaps.router, prefix="/api/v1")

    app.mount("/metrics", _metrics_app())

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": f"Welcome to {settings.app_name} API",
            "version": settings.app_version,
            "docs": "/docs",
        }

    @app.get("/health")
    async def health_check(
        db_client: DatabaseClient = Depends(get_database_client_dependency),
    ) -> dict[str, str]:
        """Health check endpoint; reports degraded when Redis is unreachable."""
        redis_ok = await db_client.ping()
        return {
            "status": "healthy" if redis_ok else "degraded",
            "redis": "ok" if redis_ok else "unavailable",
            "service": settings.app_name,
            "version": settings.app_version,
        }

    return app


app = create_app()
