"""Auth API: FastAPI application factory.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map AppError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database is connected by the startup sequencer before the app is served;
      the lifespan only closes it on shutdown

Design Decisions:
    - Factory over module-level app: importing this module reads no environment
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from authapi import __version__
from authapi.api.error_handlers import register_error_handlers
from authapi.api.routes import health
from authapi.config import Settings, get_settings
from authapi.infrastructure.database import close_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    logger.info("Auth API started")
    yield
    await close_db()
    logger.info("Auth API shutting down")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="Auth API", version=__version__, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    register_error_handlers(app)
    return app
