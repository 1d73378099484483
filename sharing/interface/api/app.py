"""FastAPI application."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dishka import AsyncContainer
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sharing.config import Settings
from sharing.interface.api.errors import register_error_handlers
from sharing.interface.api.routes import (
    friend_schedules,
    health,
    invitations,
    shared_schedules,
)
from sharing.util.di.container import create_container, setup_di
from sharing.util.observability import instrument_fastapi, instrument_httpx


def create_app(
    container: AsyncContainer | None = None,
    settings: Settings | None = None,
    instrument: bool = True,
) -> FastAPI:
    """Create FastAPI application.

    Note: Logfire should be configured before calling this function.
    In production, start_app.py handles this. Tests pass their own
    container and skip instrumentation.

    Args:
        container: DI container, production container if omitted
        settings: Application settings, loaded from environment if omitted
        instrument: Whether to attach Logfire instrumentation
    """
    settings = settings or Settings()
    owns_container = container is None
    container = container or create_container()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        # Containers passed in by the caller are closed by the caller
        if owns_container:
            await container.close()

    if instrument:
        # Identity provider calls go through httpx
        instrument_httpx()

    app_instance = FastAPI(
        title="Schedule Sharing API",
        description="Share course schedule versions with friends by email or link",
        version="0.1.0",
        lifespan=lifespan,
    )

    if instrument:
        instrument_fastapi(app_instance)

    # Identity travels in the Authorization header, no cookies
    app_instance.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "Origin"],
        max_age=600,
    )

    setup_di(app_instance, container)
    register_error_handlers(app_instance)

    app_instance.include_router(health.router)
    app_instance.include_router(invitations.router)
    app_instance.include_router(shared_schedules.router)
    app_instance.include_router(friend_schedules.router)

    return app_instance
