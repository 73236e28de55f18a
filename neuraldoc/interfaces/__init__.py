"""Interfaces for every collaborator NeuralDoc depends on.

Business logic in ``neuraldoc/services/`` only talks to these abstract base
classes.  Concrete adapters live in ``neuraldoc/providers/`` and are wired
together in ``neuraldoc/main.py`` (API) or ``neuraldoc/cli/`` (CLI).

    Interface              →  Concrete implementations
    ──────────────────────────────────────────────────────────────
    IEmbeddingProvider     →  HashEmbeddingProvider
    ITextExtractor         →  PDFExtractor, DocxExtractor, SpreadsheetExtractor,
                              ImageExtractor, PlainTextExtractor
    IPageFetcher           →  HttpxPageFetcher
    IDocumentRepository    →  InMemoryDocumentRepository, SQLiteDocumentRepository
"""

from __future__ import annotations

from neuraldoc.interfaces.document_repository import IDocumentRepository
from neuraldoc.interfaces.embedding_provider import IEmbeddingProvider
from neuraldoc.interfaces.page_fetcher import IPageFetcher
from neuraldoc.interfaces.text_extractor import ITextExtractor

__all__ = [
    "IDocumentRepository",
    "IEmbeddingProvider",
    "IPageFetcher",
    "ITextExtractor",
]
