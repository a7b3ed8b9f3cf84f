"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes
- Middleware (auth, logging, gzip in both directions)
- Storage, built once at startup from settings

Design Decisions:
- create_app() takes the settings so tests can build isolated apps
- The storage handle lives on app.state and is closed exactly once on shutdown
"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.gzip import GZipMiddleware

from shortener.api import endpoints
from shortener.core.rate_limit import limiter
from shortener.core.setting import Settings, StorageStrategy, settings
from shortener.middleware.auth import AuthMiddleware
from shortener.middleware.gzip import GzipRequestMiddleware
from shortener.middleware.logging import add_logging_middleware
from shortener.repositories.factory import build_database, build_repository
from shortener.services.url_service import ShortenerService

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application for the given settings (module settings by default).
    """
    app_settings = app_settings or settings

    # Title and description are used in auto-generated API documentation
    app = FastAPI(
        title="URL Shortener Service",
        description="Shortens URLs into letter keys and redirects them back",
        version="1.0.0",
        docs_url="/docs",  # Swagger UI documentation
        redoc_url="/redoc",  # ReDoc documentation
    )
    app.state.settings = app_settings
    app.state.database = None
    app.state.repository = None
    app.state.service = None

    limiter.enabled = app_settings.RATE_LIMIT_ENABLED
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Last added runs first: gzip request bodies are decompressed before anything reads them
    app.add_middleware(
        AuthMiddleware,
        secret=app_settings.JWT_SECRET,
        ttl=timedelta(hours=app_settings.AUTH_TOKEN_TTL_HOURS),
    )
    add_logging_middleware(app)
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(GzipRequestMiddleware)

    app.include_router(endpoints.router, tags=["URL Shortener"])

    @app.on_event("startup")
    async def startup_event():
        """Open storage and build the service."""
        database = None
        if app_settings.resolve_storage_strategy() is StorageStrategy.database:
            database = build_database(app_settings)
            await database.create_schema()

        repository = build_repository(app_settings, database)
        app.state.database = database
        app.state.repository = repository
        app.state.service = ShortenerService(
            repository,
            app_settings.BASE_URL,
            key_length=app_settings.SHORT_KEY_LENGTH,
            max_key_attempts=app_settings.SHORT_KEY_MAX_ATTEMPTS,
        )
        logger.info(f"URL shortener ready, short URLs on {app.state.service.base_url}")

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup on shutdown."""
        if app.state.repository is not None:
            await app.state.repository.close()
        if app.state.database is not None:
            await app.state.database.close()

    return app


app = create_app()
