"""
BadgeWatch - Application
FastAPI app hosting the notification engine

Usage:
    uvicorn badgewatch.main:app --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from badgewatch import __version__
from badgewatch.core.config import settings
from badgewatch.core.exceptions import BadgeWatchException
from badgewatch.core.log_config import configure_logging
from badgewatch.routes import api_router
from badgewatch.schemas import ErrorResponse
from badgewatch.services.engine import NotificationEngine

logger = logging.getLogger(__name__)


def create_app(engine: Optional[NotificationEngine] = None, start_polling: bool = True) -> FastAPI:
    """
    Build the application around a notification engine.

    Args:
        engine: Engine to serve (a default one is built otherwise)
        start_polling: Start every poll source on startup
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = app.state.engine
        if start_polling:
            await engine.start()
        try:
            yield
        finally:
            await engine.aclose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=__version__,
        description="Notification badge aggregation for the store dashboard",
        lifespan=lifespan,
    )
    app.state.engine = engine or NotificationEngine()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BadgeWatchException)
    async def badgewatch_exception_handler(request: Request, exc: BadgeWatchException):
        body = ErrorResponse(error=exc.detail, error_code=exc.error_code, details=exc.extra or None)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump())

    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/health")
    async def health():
        engine: NotificationEngine = app.state.engine
        return {
            "status": "ok",
            "version": __version__,
            "sources": len(engine.fetchers),
            "has_any": engine.store.has_any(),
        }

    return app


def build_default_app() -> FastAPI:
    configure_logging()
    logger.info(f"Starting {settings.APP_NAME} ({settings.ENVIRONMENT})")
    return create_app()


app = build_default_app()
