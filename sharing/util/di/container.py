"""Dependency injection container."""

from dishka import AsyncContainer, make_async_container
from dishka.integrations.fastapi import FastapiProvider, setup_dishka
from fastapi import FastAPI

from sharing.util.di import PROVIDERS, get_provider


def create_container(for_api: bool = True) -> AsyncContainer:
    """Build the production container.

    Settings are loaded from environment variables.

    Args:
        for_api: Include the FastAPI request provider. Scripts running use
            cases outside a request pass False.

    Returns:
        Container with every production provider
    """
    providers = [get_provider(base, use_mock=False)() for base in PROVIDERS]
    if for_api:
        providers.append(FastapiProvider())
    return make_async_container(*providers)


def setup_di(app: FastAPI, container: AsyncContainer) -> None:
    """Attach the container so routes can resolve ``FromDishka`` dependencies."""
    setup_dishka(container, app)
