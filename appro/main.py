"""Approvisionnements API — FastAPI application factory."""


import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from appro.core.config import settings
from appro.core.exceptions import register_exception_handlers
from appro.middleware.request_log import RequestLogMiddleware
from appro.repositories.base import DataBackend
from appro.repositories.factory import build_backend
from appro.schemas.common import HealthResponse

# v1 routers
from appro.routers.v1.articles import router as articles_v1_router
from appro.routers.v1.procurements import router as procurements_v1_router
from appro.routers.v1.suppliers import router as suppliers_v1_router

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Set up structured logging for the application."""
    level = logging.DEBUG if settings.is_development else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def create_app(backend: DataBackend | None = None) -> FastAPI:
    """Build the app. *backend* overrides the one selected by ``DATA_BACKEND``."""
    _configure_logging()
    data_backend = backend or build_backend(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await data_backend.startup()
        app.state.backend = data_backend
        logger.info("Using %s data backend", data_backend.name)
        try:
            yield
        finally:
            await data_backend.shutdown()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # --- Request logging ---
    app.add_middleware(RequestLogMiddleware)

    # --- Global exception handlers ---
    register_exception_handlers(app)

    # --- v1 API routes (/api/v1/*) ---
    app.include_router(procurements_v1_router, prefix="/api/v1")
    app.include_router(suppliers_v1_router, prefix="/api/v1")
    app.include_router(articles_v1_router, prefix="/api/v1")

    # --- Health check ---
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        return HealthResponse(app=settings.app_name, env=settings.app_env, backend=data_backend.name)

    return app


app = create_app()
