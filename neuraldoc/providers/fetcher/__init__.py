"""Web page fetchers.

    HttpxPageFetcher - httpx.AsyncClient, redirects followed, bot User-Agent.
"""

from neuraldoc.providers.fetcher.httpx_page_fetcher import HttpxPageFetcher

__all__ = ["HttpxPageFetcher"]
