"""
FastAPI application factory and entry point.

This module creates and configures the FastAPI application:
  1. Logging: structured JSON logs on the "app" logger
  2. Lifespan manager: DB table creation on startup, engine disposal on shutdown
  3. CORS middleware: allows frontend origins to make cross-origin requests
  4. Exception handlers: map domain errors to HTTP responses
  5. Router registration: mounts the card, transfer and admin endpoints

Running locally:
    CARD_ENCRYPTION_SECRET=dev-secret uvicorn app.main:app --reload

The --reload flag watches for file changes and restarts automatically,
which is ideal for development but should not be used in production.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import engine, Base
from app.exceptions import register_exception_handlers
from app.logging_config import configure_logging
from app.routers import admin, cards, transfers

from app import models  # noqa: F401  (registers every table on Base.metadata)


configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager (replaces deprecated @app.on_event).

    Startup:
      Creates all database tables if they don't exist. This is a convenience
      for development; in production, you'd use Alembic migrations exclusively
      so you have version-controlled, reversible schema changes.

    Shutdown:
      Disposes of the database engine, closing all connections cleanly.
    """
    # --- Startup ---
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("startup_complete", extra={"version": settings.APP_VERSION})
    yield
    # --- Shutdown ---
    await engine.dispose()
    logger.info("shutdown_complete")


# Create the FastAPI application instance
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Bank card lifecycle and card-to-card transfer API",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

# CORS: Allow specified frontend origins to make requests.
# In production, lock this down to your actual frontend domain(s).
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(cards.router, prefix="/api/cards", tags=["Cards"])
app.include_router(transfers.router, prefix="/api/transfers", tags=["Transfers"])
app.include_router(admin.router, prefix="/api/admin", tags=["Admin"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for deployment probes (Kubernetes, Docker, etc.).

    Returns a simple JSON response indicating the service is running.
    """
    return {"status": "ok", "version": settings.APP_VERSION}
