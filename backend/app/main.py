"""Scoped Unique API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Importing the routes imports every write schema, so all Unique
      declarations are registered (and validated) before the app serves traffic
    - Global error handlers map ScopedUniqueError -> structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.infrastructure import database
from app.infrastructure.observability import setup_logging
from app.config import get_settings
from app.api.routes import health, workspaces, accounts, projects
from app.schemas.unique import descriptor_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    database.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info(
        f"Scoped Unique API started with {len(descriptor_registry)} unique declarations",
    )
    yield
    if database.db_manager:
        await database.db_manager.dispose()
    logger.info("Scoped Unique API shutting down")


app = FastAPI(
    title="Scoped Unique API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(workspaces.router)
app.include_router(accounts.router)
app.include_router(projects.router)

register_error_handlers(app)
