"""Commonroom API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CommonroomError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - KV store and hosted clients initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Identity and blob clients share one base URL but get separate httpx clients:
      uploads need a much longer timeout than token checks
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from commonroom.api.error_handlers import register_error_handlers
from commonroom.api.routes import (
    assignments,
    conversations,
    health,
    notifications,
    recipes,
    submissions,
    users,
)
from commonroom.config import get_settings
from commonroom.infrastructure.blob_storage import HostedBlobStorage
from commonroom.infrastructure.database import init_db
from commonroom.infrastructure.identity import HostedIdentityProvider, hosted_client_factory
from commonroom.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    app.state.identity_provider = HostedIdentityProvider(hosted_client_factory(
        settings.supabase_url, settings.supabase_service_key,
        settings.identity_timeout_seconds,
    ))
    app.state.blob_storage = HostedBlobStorage(
        hosted_client_factory(
            settings.supabase_url, settings.supabase_service_key,
            settings.storage_timeout_seconds,
        ),
        settings.supabase_service_key,
    )
    logger.info("Commonroom API started")
    yield
    logger.info("Commonroom API shutting down")
    await app.state.identity_provider.aclose()
    await app.state.blob_storage.aclose()
    await manager.dispose()


app = FastAPI(
    title="Commonroom API", version="1.0.0", lifespan=lifespan,
)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(users.router)
app.include_router(conversations.router)
app.include_router(notifications.router)
app.include_router(assignments.router)
app.include_router(submissions.router)
app.include_router(recipes.router)

register_error_handlers(app)
