"""Unit tests for the same-domain web crawler and its HTML helpers."""

from __future__ import annotations

import pytest

from neuraldoc.services.ingestion.web_crawler import (
    PAGE_SEPARATOR,
    WebCrawler,
    page_to_text,
    same_site_links,
)
from neuraldoc.utils.errors import FetchError

_SEED = "https://example.com/docs"


def _page(title: str, body: str, links: list[str] | None = None, description: str = "") -> str:
    anchors = "".join(f'<a href="{href}">link</a>' for href in links or [])
    meta = f'<meta name="description" content="{description}">' if description else ""
    return (
        f"<html><head><title>{title}</title>{meta}</head>"
        f"<body><nav>Menu Home About</nav><main><p>{body}</p>{anchors}</main>"
        f"<footer>Copyright</footer><script>var x = 1;</script></body></html>"
    )


class TestPageToText:
    def test_header_lines_and_content(self) -> None:
        html = _page("Guide", "Hello   \n  world.", description="A short guide")
        text = page_to_text(html, _SEED)

        assert text == f"TITLE: Guide\nDESCRIPTION: A short guide\nURL: {_SEED}\nHello world."

    def test_description_line_omitted_when_absent(self) -> None:
        text = page_to_text(_page("Guide", "Body text."), _SEED)
        assert text.splitlines()[:2] == ["TITLE: Guide", f"URL: {_SEED}"]

    def test_boilerplate_is_removed(self) -> None:
        text = page_to_text(_page("Guide", "Useful content."), _SEED)
        assert "Menu" not in text
        assert "Copyright" not in text
        assert "var x" not in text

    def test_falls_back_to_body(self) -> None:
        html = "<html><head><title>T</title></head><body><div>Plain body.</div></body></html>"
        assert page_to_text(html, _SEED) == f"TITLE: T\nURL: {_SEED}\nPlain body."

    def test_article_preferred_over_body(self) -> None:
        html = (
            "<html><body><div>Sidebar junk</div>"
            "<article>Article text.</article></body></html>"
        )
        assert page_to_text(html, _SEED) == f"TITLE: \nURL: {_SEED}\nArticle text."

    def test_empty_page_has_no_content_line(self) -> None:
        assert page_to_text("<html></html>", _SEED) == f"TITLE: \nURL: {_SEED}"


class TestSameSiteLinks:
    def test_filters_and_resolves(self) -> None:
        html = _page(
            "Seed",
            "x",
            links=[
                "/a",
                "b",
                "https://example.com/a#section",
                "https://blog.example.com/post",
                "https://other.org/page",
                "https://notexample.com/x",
                "mailto:team@example.com",
                "#top",
                "javascript:void(0)",
                _SEED,
                "ftp://example.com/file",
            ],
        )

        links = same_site_links(html, _SEED, limit=10)

        assert links == [
            "https://example.com/a",
            "https://example.com/b",
            "https://blog.example.com/post",
        ]

    def test_respects_limit(self) -> None:
        html = _page("Seed", "x", links=[f"/p{i}" for i in range(15)])
        links = same_site_links(html, _SEED, limit=10)
        assert links == [f"https://example.com/p{i}" for i in range(10)]

    def test_zero_limit(self) -> None:
        assert same_site_links(_page("Seed", "x", links=["/a"]), _SEED, limit=0) == []


class TestWebCrawler:
    async def test_fetches_at_most_ten_linked_pages(self, page_fetcher) -> None:
        page_fetcher.pages[_SEED] = _page("Seed", "Seed body.", links=[f"/p{i}" for i in range(15)])
        for i in range(15):
            page_fetcher.pages[f"https://example.com/p{i}"] = _page(f"P{i}", f"Page {i} body.")

        text = await WebCrawler(fetcher=page_fetcher).crawl(_SEED)

        assert len(page_fetcher.requested) == 11
        pages = text.split(PAGE_SEPARATOR)
        assert len(pages) == 11
        assert pages[0].startswith("TITLE: Seed")
        assert pages[1].startswith("TITLE: P0")
        assert "Page 9 body." in pages[10]
        assert "Page 10 body." not in text

    async def test_failed_page_is_skipped(self, page_fetcher) -> None:
        page_fetcher.pages[_SEED] = _page("Seed", "Seed body.", links=["/ok", "/missing"])
        page_fetcher.pages["https://example.com/ok"] = _page("OK", "Fine.")

        text = await WebCrawler(fetcher=page_fetcher).crawl(_SEED)

        pages = text.split(PAGE_SEPARATOR)
        assert len(pages) == 2
        assert "https://example.com/missing" in page_fetcher.requested

    async def test_seed_failure_propagates(self, page_fetcher) -> None:
        with pytest.raises(FetchError):
            await WebCrawler(fetcher=page_fetcher).crawl(_SEED)

    async def test_single_page_site(self, page_fetcher) -> None:
        page_fetcher.pages[_SEED] = _page("Solo", "Only page.")

        text = await WebCrawler(fetcher=page_fetcher).crawl(_SEED)

        assert PAGE_SEPARATOR not in text
        assert page_fetcher.requested == [_SEED]

    async def test_max_pages_zero_fetches_seed_only(self, page_fetcher) -> None:
        page_fetcher.pages[_SEED] = _page("Seed", "x", links=["/a", "/b"])

        await WebCrawler(fetcher=page_fetcher, max_pages=0).crawl(_SEED)

        assert page_fetcher.requested == [_SEED]
