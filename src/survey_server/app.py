"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads the question catalog and builds the service once
  - CORS middleware
  - Global exception handlers (service ValueError → 404/409/400)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness checks

The ``cli()`` function is the ``survey-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from survey_db.engine import dispose_engine, get_engine
from survey_engine.catalog import CatalogStore

from survey_server.config import ServerSettings, load_settings
from survey_server.errors import (
    generic_error_handler,
    key_error_handler,
    value_error_handler,
)
from survey_server.routes import register_routes
from survey_server.service import SurveyService

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load the catalog and build the service; dispose the DB pool on exit."""
    settings: ServerSettings = app.state.settings

    catalog = CatalogStore(catalog_dir=settings.catalog_dir)
    catalog.load()
    app.state.service = SurveyService(catalog)
    logger.info("Survey service ready")

    yield

    await dispose_engine()
    logger.info("Database engine disposed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(settings: ServerSettings | None = None) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title="Survey Session API",
        description="Session lifecycle API for the local-first survey engine",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(KeyError, key_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    @app.get("/health")
    async def health() -> dict:
        """Readiness check — verifies DB connectivity."""
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {"status": "ok"}
        except Exception as exc:
            logger.error("Health check failed: %s", exc)
            return {"status": "error", "detail": str(exc)}

    register_routes(app)
    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn survey_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``survey-server``."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(
        "survey_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
