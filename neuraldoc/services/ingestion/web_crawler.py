"""Single-hop same-domain crawler for URL ingestion.

Crawling a URL works like this:

1. Fetch the seed page.  A seed failure is fatal to the crawl.
2. Collect the seed's ``<a href>`` links from its raw HTML, resolve them
   against the seed, drop fragments, and keep http(s) links on the seed's
   host or any of its subdomains.  Deduplicate in document order, skip the
   seed itself, and take the first ``max_pages``.
3. Fetch those pages concurrently (bounded by a semaphore).  A page that
   fails is logged and skipped.
4. Reduce every page to readable text with BeautifulSoup (non-content
   elements removed, first matching content container wins) and join the
   pages with :data:`PAGE_SEPARATOR`.
"""

from __future__ import annotations

import asyncio
import re
from urllib.parse import urldefrag, urljoin, urlparse

import structlog
from bs4 import BeautifulSoup

from neuraldoc.interfaces.page_fetcher import IPageFetcher
from neuraldoc.utils.concurrency import throttled_gather

logger = structlog.get_logger(logger_name=__name__)

PAGE_SEPARATOR = "\n\n--- NEW PAGE ---\n\n"

_STRIP_SELECTOR = "script, style, nav, header, footer, aside, .advertisement, .ad, .sidebar"
_CONTENT_SELECTORS = (
    "main",
    "article",
    ".content",
    "#content",
    ".post-content",
    ".entry-content",
    ".article-content",
    "body",
)
_WHITESPACE_RE = re.compile(r"\s+")


def page_to_text(html: str, url: str) -> str:
    """Reduce an HTML page to a metadata header plus its main text.

    The result has a ``TITLE:`` line, a ``DESCRIPTION:`` line when the page
    has a meta description, a ``URL:`` line, then the content text with
    whitespace collapsed.
    """
    soup = BeautifulSoup(html, "html.parser")

    title = soup.title.get_text().strip() if soup.title else ""
    meta = soup.find("meta", attrs={"name": "description"})
    description = (meta.get("content") or "").strip() if meta else ""

    for element in soup.select(_STRIP_SELECTOR):
        element.decompose()

    content = ""
    for selector in _CONTENT_SELECTORS:
        matches = soup.select(selector)
        if matches:
            content = " ".join(m.get_text(" ") for m in matches)
            break
    else:
        content = soup.get_text(" ")
    content = _WHITESPACE_RE.sub(" ", content).strip()

    lines = [f"TITLE: {title}"]
    if description:
        lines.append(f"DESCRIPTION: {description}")
    lines.append(f"URL: {url}")
    if content:
        lines.append(content)
    return "\n".join(lines)


def same_site_links(html: str, seed_url: str, limit: int) -> list[str]:
    """Return up to *limit* distinct links on the seed's host or its subdomains."""
    if limit <= 0:
        return []

    seed, _ = urldefrag(seed_url)
    host = (urlparse(seed).hostname or "").lower()
    soup = BeautifulSoup(html, "html.parser")

    links: list[str] = []
    seen = {seed}
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith(("#", "javascript:", "mailto:", "tel:")):
            continue
        absolute, _ = urldefrag(urljoin(seed, href))
        parsed = urlparse(absolute)
        link_host = (parsed.hostname or "").lower()
        if parsed.scheme not in ("http", "https"):
            continue
        if link_host != host and not link_host.endswith("." + host):
            continue
        if absolute in seen:
            continue
        seen.add(absolute)
        links.append(absolute)
        if len(links) >= limit:
            break
    return links


class WebCrawler:
    """Crawls a seed URL and its same-domain links one hop deep.

    Parameters
    ----------
    fetcher:
        Retrieves raw HTML for a URL.
    max_pages:
        Maximum number of linked pages fetched in addition to the seed.
    concurrency:
        Maximum simultaneous page fetches.
    """

    def __init__(self, fetcher: IPageFetcher, max_pages: int = 10, concurrency: int = 10) -> None:
        self._fetcher = fetcher
        self._max_pages = max_pages
        self._concurrency = concurrency

    async def crawl(self, url: str) -> str:
        """Fetch *url* and its linked pages and return the combined text.

        Raises
        ------
        FetchError
            If the seed page cannot be fetched.
        """
        seed_html = await self._fetcher.fetch(url)
        links = same_site_links(seed_html, url, self._max_pages)
        logger.info("crawl_links_found", seed=url, links=len(links))

        semaphore = asyncio.Semaphore(self._concurrency)
        results = await throttled_gather(
            [self._fetcher.fetch(link) for link in links], semaphore=semaphore
        )

        pages = [page_to_text(seed_html, url)]
        failed = 0
        for link, result in zip(links, results):
            if isinstance(result, BaseException):
                failed += 1
                logger.warning("crawl_page_failed", url=link, error=str(result))
                continue
            pages.append(page_to_text(result, link))

        combined = PAGE_SEPARATOR.join(pages)
        logger.info(
            "crawl_complete",
            seed=url,
            pages_fetched=len(pages),
            pages_failed=failed,
            chars=len(combined),
        )
        return combined
