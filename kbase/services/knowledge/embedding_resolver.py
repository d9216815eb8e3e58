"""Per-collection embedding provider resolution.

A collection may be bound to a specific embedding model (for example a
legal corpus embedded with ``text-embedding-3-large``).  Unbound
collections use the default provider.  Providers for bound models are built
on first use by a factory and cached per model name.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Callable

import structlog

from kbase.interfaces.embedding_provider import IEmbeddingProvider

logger = structlog.get_logger(logger_name=__name__)

EmbeddingFactory = Callable[[str], IEmbeddingProvider]


class CollectionEmbeddingResolver:
    """Returns the embedding provider a collection is bound to."""

    def __init__(
        self,
        default_provider: IEmbeddingProvider,
        bindings: Mapping[str, str] | None = None,
        factory: EmbeddingFactory | None = None,
    ) -> None:
        self._default = default_provider
        self._bindings = dict(bindings or {})
        self._factory = factory
        self._cache: dict[str, IEmbeddingProvider] = {}

    @property
    def default_provider(self) -> IEmbeddingProvider:
        return self._default

    def resolve(self, collection: str) -> IEmbeddingProvider:
        model = self._bindings.get(collection)
        if not model:
            return self._default
        if self._factory is None:
            logger.warning(
                "embedding_binding_without_factory",
                collection=collection,
                model=model,
            )
            return self._default

        provider = self._cache.get(model)
        if provider is None:
            provider = self._factory(model)
            self._cache[model] = provider
            logger.info(
                "embedding_provider_created",
                collection=collection,
                model=model,
                provider=provider.get_provider_name(),
            )
        return provider
