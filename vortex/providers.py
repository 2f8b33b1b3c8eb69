"""Name-keyed registry of metadata providers.

New providers register a factory taking the `[metadata]` config section;
the enrichment layer only asks for a provider by name.
"""

from __future__ import annotations

from typing import Callable, Dict, FrozenSet

from .metadata import MetadataProvider
from .tmdb import PROVIDER_NAME as TMDB, TmdbProvider

DEFAULT_PROVIDER = TMDB

ProviderFactory = Callable[..., MetadataProvider]

_REGISTRY: Dict[str, ProviderFactory] = {
    TMDB: TmdbProvider.from_config,
}


class UnknownProviderError(KeyError):
    """No provider is registered under the configured name."""


def register_provider(name: str, factory: ProviderFactory) -> None:
    _REGISTRY[name.lower()] = factory


def available_providers() -> FrozenSet[str]:
    return frozenset(_REGISTRY)


def get_provider(name: str, metadata_config) -> MetadataProvider:
    """Build the provider registered under `name`.

    Raises UnknownProviderError when nothing is registered under that name.
    """
    try:
        factory = _REGISTRY[name.lower()]
    except KeyError:
        raise UnknownProviderError(f"Unknown metadata provider: {name}") from None
    return factory(metadata_config)
