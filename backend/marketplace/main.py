"""Card Marketplace API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map MarketplaceError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup and disposed on shutdown via lifespan

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api.error_handlers so tests can build the same app
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from marketplace.api.error_handlers import register_error_handlers
from marketplace.api.routes import (
    bundles, catalog, checkout, disputes, fees, health, listings, onboarding,
    orders, profiles, trades, wallet, webhooks,
)
from marketplace.config import get_settings
from marketplace.infrastructure.database import close_db, init_db
from marketplace.infrastructure.observability import setup_logging

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
    logger.info("Card Marketplace API started")
    yield
    await close_db()
    logger.info("Card Marketplace API shutting down")


app = FastAPI(
    title="Card Marketplace API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes, registered explicitly
app.include_router(health.router)
app.include_router(profiles.router)
app.include_router(onboarding.router)
app.include_router(listings.router)
app.include_router(bundles.router)
app.include_router(catalog.router)
app.include_router(fees.router)
app.include_router(checkout.router)
app.include_router(orders.router)
app.include_router(wallet.router)
app.include_router(trades.router)
app.include_router(disputes.router)
app.include_router(webhooks.router)

register_error_handlers(app)
