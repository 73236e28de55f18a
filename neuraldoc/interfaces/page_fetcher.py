"""Abstract base class for web page fetchers."""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   HttpxPageFetcher - httpx.AsyncClient with redirects and a bot User-Agent
# Located in: neuraldoc/providers/fetcher/
class IPageFetcher(ABC):
    """Contract for retrieving raw HTML for a URL."""

    @abstractmethod
    async def fetch(self, url: str) -> str:
        """Fetch *url* and return the response body as text.

        Raises
        ------
        neuraldoc.utils.errors.FetchError
            On network errors, timeouts or non-2xx responses.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"httpx"``."""

    async def close(self) -> None:
        """Release network resources.  The default does nothing."""
        return None
