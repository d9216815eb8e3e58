"""Remote document fetcher using httpx.

Downloads files referenced by ``ExternalFile.file_url``.  The body is
streamed so that oversized downloads are aborted as soon as they cross
the configured byte limit.
"""

from __future__ import annotations

import httpx
import structlog

from kbase.interfaces.remote_file_provider import IRemoteFileProvider
from kbase.utils.errors import RemoteFetchError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 20.0
_DEFAULT_MAX_BYTES = 50 * 1024 * 1024
_DEFAULT_HEADERS = {
    "User-Agent": "kbase/0.1 (+document-ingestion)",
    "Accept": "*/*",
}


class HttpFileProvider(IRemoteFileProvider):
    """Fetches document bytes over HTTP(S)."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        max_bytes: int = _DEFAULT_MAX_BYTES,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers=_DEFAULT_HEADERS,
            follow_redirects=True,
        )
        self._max_bytes = max_bytes

    async def fetch(self, url: str) -> bytes:
        """Download *url*, enforcing the byte limit while streaming."""
        if not url or not url.strip():
            raise RemoteFetchError(
                message="Empty file URL",
                provider_name=self.get_provider_name(),
            )

        try:
            async with self._client.stream("GET", url) as response:
                response.raise_for_status()
                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > self._max_bytes:
                        raise RemoteFetchError(
                            message=f"{url} exceeds the {self._max_bytes} byte download limit",
                            provider_name=self.get_provider_name(),
                        )
        except httpx.TimeoutException as exc:
            raise RemoteFetchError(
                message=f"Timeout fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise RemoteFetchError(
                message=f"HTTP {exc.response.status_code} for {url}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteFetchError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("remote_file_fetched", url=url, size=len(body))
        return bytes(body)

    def get_provider_name(self) -> str:
        return "http_file"

    async def aclose(self) -> None:
        """Close the underlying client if this provider created it."""
        if self._owns_client:
            await self._client.aclose()
