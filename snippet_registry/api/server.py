"""FastAPI application factory for the snippet lookup service."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..config import RegistrySettings
from ..exception_handler import setup_logging
from ..mcpserver import create_server
from ..runtime import RegistryService
from .route import router


def create_app(
    service: RegistryService | None = None,
    settings: RegistrySettings | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or RegistrySettings.from_env()
    setup_logging(settings.log_level)
    owns_service = service is None
    if service is None:
        service = RegistryService.from_settings(settings)

    # setup mcp
    mcp_app = create_server(service).http_app("/")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with mcp_app.lifespan(app):
            yield
        if owns_service:
            service.close()

    app = FastAPI(
        title="Snippet Registry API",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.registry_service = service
    app.include_router(router)

    # mount mcp
    app.mount("/mcp", mcp_app)

    return app


__all__ = ["create_app"]
