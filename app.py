"""
app.py: FastAPI application factory and startup lifecycle.

This is the ASGI application object imported by uvicorn.
It wires the repository and booking service, registers routers, and seeds
the demo catalog on startup.

Usage (via launcher):
    python main.py

Usage (direct uvicorn):
    uvicorn app:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from cinema_backend.controllers.booking_controller import router as booking_router
from cinema_backend.repository.booking_repository import BookingRepository
from cinema_backend.services.booking_service import BookingService
from cinema_backend.utils.config import Settings, get_settings
from cinema_backend.utils.logger import configure_logging, get_logger


logger = get_logger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build and wire the FastAPI application.

    Services live on app.state so every dependency is traceable from here.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    # --- Repository (in-memory catalog and booking lists) ---
    repository = BookingRepository()

    # --- Services ---
    booking_service = BookingService(repository=repository, settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Run startup initialization before accepting requests."""
        _startup(app)
        yield

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # --- Routers ---
    app.include_router(booking_router)

    # --- Inject services into app.state for dependency resolution ---
    app.state.repository = repository
    app.state.booking_service = booking_service

    return app


def _startup(app: FastAPI) -> None:
    """Idempotent startup sequence. Safe to re-run on server restarts."""
    repository: BookingRepository = app.state.repository

    logger.info("Startup: seeding demo catalog (skipped if already loaded)")
    repository.seed_default_catalog_if_empty()

    logger.info("Startup complete, booking engine ready")


# Module-level app object for uvicorn
app = create_app()
