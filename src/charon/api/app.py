"""FastAPI application for dataset resolution.

The registry is built once in the lifespan handler and shared read-only by
every request.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from charon import __version__
from charon.api.routes import router
from charon.config import Settings
from charon.resolver import Resolver
from charon.sources.registry import SourceRegistry, build_registry

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 5000


def create_app(
    settings: Settings | None = None,
    registry: SourceRegistry | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Runtime settings (default: read from environment)
        registry: Prebuilt registry (default: built from settings at startup)

    Returns:
        Configured FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        app_registry = registry
        if app_registry is None:
            app_registry = build_registry(settings or Settings.from_env())
        app.state.resolver = Resolver(app_registry)
        logger.info(f"Charon started with {len(app_registry)} sources")

        yield

        app.state.resolver = None
        logger.info("Charon stopped")

    app = FastAPI(
        title="Charon",
        description="Resolve Nextstrain dataset requests to fetchable locations",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.include_router(router)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": "Charon",
            "version": __version__,
            "api": "/v1",
            "docs": "/docs",
        }

    return app


def run_server(
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    settings: Settings | None = None,
    log_level: str = "info",
) -> None:
    """Run the API server with uvicorn."""
    import uvicorn

    uvicorn.run(
        create_app(settings=settings),
        host=host,
        port=port,
        log_level=log_level,
    )
