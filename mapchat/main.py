"""FastAPI entrypoint: wires config, container, routes, and lifecycle hooks."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mapchat.api.http.chat import router as chat_router
from mapchat.api.http.client_config import router as client_config_router
from mapchat.api.http.examples import router as examples_router
from mapchat.api.http.health import router as health_router
from mapchat.core.config import Settings
from mapchat.core.container import AppContainer, build_container
from mapchat.core.lifecycle import on_shutdown, on_startup
from mapchat.infra.observability.logger import setup_logging


def create_app(
    settings: Settings | None = None,
    *,
    container: AppContainer | None = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)
    container = container or build_container(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        on_startup(container)
        try:
            yield
        finally:
            await on_shutdown(container)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(client_config_router)
    app.include_router(examples_router)
    app.include_router(chat_router)

    return app


def run() -> None:
    """Console entrypoint: serve the app with uvicorn using env settings."""
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(
        "mapchat.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
