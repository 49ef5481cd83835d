"""Dependency injection container."""

from dishka import AsyncContainer, make_async_container

from forum.util.di import PROVIDERS, get_provider


def create_container() -> AsyncContainer:
    """Build production container (all prod implementations).

    Settings are loaded from environment variables automatically. Open a
    request scope (`async with container() as session:`) per client
    session; it owns one reconciler.

    Returns:
        Configured DI container with production providers
    """
    provider_instances = [get_provider(base, use_mock=False)() for base in PROVIDERS]
    return make_async_container(*provider_instances)
