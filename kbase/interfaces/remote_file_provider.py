"""Abstract base class for downloading documents referenced by URL."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementation: HttpFileProvider (kbase/providers/remote/)
class IRemoteFileProvider(ABC):
    """Contract for fetching remote document bytes."""

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """Download *url* and return its body.

        Raises
        ------
        kbase.utils.errors.RemoteFetchError
            On timeouts, non-2xx responses, or oversized bodies.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this fetcher."""
