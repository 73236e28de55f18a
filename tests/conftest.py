"""Shared pytest fixtures for the NeuralDoc test suite."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

from neuraldoc.interfaces.page_fetcher import IPageFetcher
from neuraldoc.models.document import ChunkVector, Document, DocumentStatus
from neuraldoc.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from neuraldoc.providers.repository.memory_repository import InMemoryDocumentRepository
from neuraldoc.services.extraction_service import ExtractionService
from neuraldoc.services.ingestion.chunker import TextChunker
from neuraldoc.services.ingestion.ingestion_service import IngestionService
from neuraldoc.services.ingestion.web_crawler import WebCrawler
from neuraldoc.utils.errors import FetchError

# Small vectors keep the hash provider fast; the algorithm is dimension-agnostic.
TEST_DIMENSION = 32

_BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------


def make_document(
    doc_id: str | None = None,
    original_name: str = "notes.txt",
    status: DocumentStatus = DocumentStatus.PROCESSING,
    minutes: int = 0,
    **overrides: Any,
) -> Document:
    """Build a Document; *minutes* offsets ``uploaded_at`` from a fixed base time."""
    doc_id = doc_id or uuid.uuid4().hex
    fields: dict[str, Any] = {
        "id": doc_id,
        "filename": f"upload_{doc_id}.txt",
        "original_name": original_name,
        "mime_type": "text/plain",
        "size": 128,
        "status": status,
        "uploaded_at": _BASE_TIME + timedelta(minutes=minutes),
    }
    fields.update(overrides)
    return Document(**fields)


def make_chunk(
    document_id: str,
    content: str = "Some chunk text.",
    vector: list[float] | None = None,
    index: int = 0,
    total: int = 1,
    chunk_id: str | None = None,
) -> ChunkVector:
    return ChunkVector(
        id=chunk_id or uuid.uuid4().hex,
        document_id=document_id,
        content=content,
        vector=vector if vector is not None else [1.0, 0.0],
        metadata={"chunkIndex": index, "totalChunks": total},
    )


class FakePageFetcher(IPageFetcher):
    """Serves canned HTML by URL; unknown URLs raise FetchError."""

    def __init__(self, pages: dict[str, str]) -> None:
        self.pages = pages
        self.requested: list[str] = []

    async def fetch(self, url: str) -> str:
        self.requested.append(url)
        if url not in self.pages:
            raise FetchError(message=f"HTTP 404 for {url}", provider_name="fake")
        return self.pages[url]

    def get_provider_name(self) -> str:
        return "fake"


# ---------------------------------------------------------------------------
# Component fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def document_factory():  # noqa: ANN201
    """Return :func:`make_document` for building Document records."""
    return make_document


@pytest.fixture
def chunk_factory():  # noqa: ANN201
    """Return :func:`make_chunk` for building ChunkVector records."""
    return make_chunk


@pytest.fixture
def repository() -> InMemoryDocumentRepository:
    return InMemoryDocumentRepository(max_chat_messages=12)


@pytest.fixture
def embedding_provider() -> HashEmbeddingProvider:
    return HashEmbeddingProvider(dimension=TEST_DIMENSION)


@pytest.fixture
def page_fetcher() -> FakePageFetcher:
    return FakePageFetcher({})


@pytest.fixture
def ingestion_service(
    repository: InMemoryDocumentRepository,
    embedding_provider: HashEmbeddingProvider,
    page_fetcher: FakePageFetcher,
) -> IngestionService:
    """Ingestion wired to the in-memory repository and a canned-page fetcher."""
    return IngestionService(
        repository=repository,
        extraction_service=ExtractionService(),
        chunker=TextChunker(),
        embedding_provider=embedding_provider,
        crawler=WebCrawler(fetcher=page_fetcher),
    )


@pytest.fixture
def sample_text() -> str:
    return (
        "Rosemary Barr opened the archive on Monday. Dr. Emerson reviewed the "
        "ledger, e.g. the March entries, and found three errors! Were they "
        "deliberate? Nobody could say. The audit continued for a week."
    )
