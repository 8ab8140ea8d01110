"""FastAPI application factory."""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from devdose import __version__
from devdose.api.routes.health import router as health_router
from devdose.api.routes.posts import router as posts_router
from devdose.api.routes.stats import router as stats_router
from devdose.api.routes.tags import router as tags_router
from devdose.config.settings import Settings, get_settings
from devdose.processing.service import ProcessingService
from devdose.storage.post_store import PostStore
from devdose.storage.schema import initialize_database

API_PREFIX = "/api"


def create_app(
    settings: Settings | None = None,
    processor: Optional[ProcessingService] = None,
) -> FastAPI:
    """
    Build and return a fully wired FastAPI application.

    Initializes the database and shares one post store across routes.
    The processing service used for reports is built on the first report
    unless one is passed in.
    """
    settings = settings or get_settings()
    initialize_database(settings.db_path)

    app = FastAPI(
        title="DevDose API",
        version=__version__,
        description="Read API for published micro-learning cards",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.api.cors_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.settings = settings
    app.state.post_store = PostStore(settings.db_path)
    app.state.processor = processor

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(posts_router, prefix=API_PREFIX)
    app.include_router(tags_router, prefix=API_PREFIX)
    app.include_router(stats_router, prefix=API_PREFIX)

    return app
