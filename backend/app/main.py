"""PipelinePulse API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map PipelinePulseError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup and disposed on shutdown via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Static SPA build mounted last so /api/v1/* takes precedence
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.api.error_handlers import register_error_handlers
from app.infrastructure.database import init_db, close_db
from app.infrastructure.observability import setup_logging
from app.config import get_settings
from app.api.routes import deals, forecasting, health, leads, pipeline, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("PipelinePulse API started")
    yield
    await close_db()
    logger.info("PipelinePulse API shutting down")


app = FastAPI(
    title="PipelinePulse API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Routes (explicit registration)
app.include_router(health.router)
app.include_router(users.router)
app.include_router(leads.router)
app.include_router(deals.router)
app.include_router(forecasting.router)
app.include_router(pipeline.router)

# Static dashboard build, production only
# html=True enables SPA fallback (serves index.html for unknown routes)
if os.path.isdir("static"):
    app.mount("/", StaticFiles(directory="static", html=True), name="static")
