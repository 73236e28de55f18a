"""Page fetcher backed by httpx.

Fetches raw HTML with a shared ``httpx.AsyncClient`` (redirects followed,
bot User-Agent).  Network errors, timeouts and non-2xx responses are
wrapped in :class:`FetchError`.
"""

from __future__ import annotations

import httpx
import structlog

from neuraldoc.interfaces.page_fetcher import IPageFetcher
from neuraldoc.utils.errors import FetchError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 15.0
_DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; DocumentBot/1.0)"


class HttpxPageFetcher(IPageFetcher):
    """Fetches HTML over HTTP(S).

    Parameters
    ----------
    http_client:
        Optional pre-built client (tests pass one with a mock transport).
        When omitted the fetcher creates and owns its own client.
    timeout:
        Per-request timeout in seconds.
    user_agent:
        Value of the ``User-Agent`` header.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
        user_agent: str = _DEFAULT_USER_AGENT,
    ) -> None:
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={
                "User-Agent": user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            },
            follow_redirects=True,
        )

    # ------------------------------------------------------------------
    # IPageFetcher implementation
    # ------------------------------------------------------------------

    async def fetch(self, url: str) -> str:
        """GET *url* and return the decoded body."""
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise FetchError(
                message=f"Timeout fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                message=f"HTTP {exc.response.status_code} for {url}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("page_fetched", url=url, status=response.status_code, bytes=len(response.content))
        return response.text

    def get_provider_name(self) -> str:
        return "httpx"

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()
