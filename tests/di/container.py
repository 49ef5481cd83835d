"""Test container builder with selective unmocking."""

from typing import Type

from dishka import AsyncContainer, make_async_container

from forum.util.di import PROVIDERS, Component, ProviderBase, get_provider


def build_test_container(unmock: set[Component] | None = None) -> AsyncContainer:
    """Build a container where every mockable component is in-memory unless unmocked.

    Settings are loaded from environment variables (DATABASE__URL etc.).

    Args:
        unmock: Components to use production implementations for

    Returns:
        Configured test container

    Raises:
        ValueError: On unknown components or when an unmocked component
            needs another one that is still mocked

    Examples:
        # Unit tests - all mocks
        container = build_test_container()

        # Integration tests - real persistence
        container = build_test_container(unmock={"persistence"})

        # Realtime tests - real LISTEN/NOTIFY, which needs real persistence
        container = build_test_container(unmock={"persistence", "realtime"})
    """
    unmock = unmock or set()
    _validate_unmock(unmock)
    return make_async_container(*(_select(base, unmock)() for base in PROVIDERS))


def _select(base: Type[ProviderBase], unmock: set[Component]) -> Type[ProviderBase]:
    """Pick the provider class for one entry of PROVIDERS."""
    if base.__mock_component__ is None:
        return get_provider(base, use_mock=False)
    return get_provider(base, use_mock=base.__mock_component__ not in unmock)


def _validate_unmock(unmock: set[Component]) -> None:
    """Reject unknown components and unmet `__depends_on__` requirements."""
    mockable = [p for p in PROVIDERS if p.__mock_component__ is not None]

    unknown = unmock - {p.__mock_component__ for p in mockable}
    if unknown:
        raise ValueError(f"Unknown components: {unknown}")

    for base in mockable:
        if base.__mock_component__ not in unmock:
            continue
        missing = base.__depends_on__ - unmock
        if missing:
            raise ValueError(
                f"Component '{base.__mock_component__}' requires {missing} to be unmocked"
            )
