"""Unit tests for the ingestion orchestrator.

Uses the in-memory repository, the real extraction and chunking stack, and
canned pages for URL crawls.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from neuraldoc.models.document import ChunkVector, DocumentStatus
from neuraldoc.models.ingestion import IngestionOutcome
from neuraldoc.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from neuraldoc.providers.repository.memory_repository import InMemoryDocumentRepository
from neuraldoc.providers.repository.sqlite_repository import SQLiteDocumentRepository
from neuraldoc.services.extraction_service import ExtractionService
from neuraldoc.services.ingestion.chunker import TextChunker
from neuraldoc.services.ingestion.ingestion_service import IngestionService, validate_url
from neuraldoc.services.ingestion.web_crawler import WebCrawler
from neuraldoc.utils.errors import InputValidationError, VectorizationError
from tests.conftest import TEST_DIMENSION


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class FlakyEmbeddingProvider(HashEmbeddingProvider):
    """Fails for any chunk containing *poison*."""

    def __init__(self, poison: str) -> None:
        super().__init__(dimension=TEST_DIMENSION)
        self._poison = poison

    async def embed_single(self, text: str) -> list[float]:
        if self._poison in text:
            raise VectorizationError(message="simulated failure", provider_name="flaky")
        return self.vectorize(text)


class GatedEmbeddingProvider(HashEmbeddingProvider):
    """Blocks every vectorization until ``gate`` is set."""

    def __init__(self) -> None:
        super().__init__(dimension=TEST_DIMENSION)
        self.started = asyncio.Event()
        self.gate = asyncio.Event()

    async def embed_single(self, text: str) -> list[float]:
        self.started.set()
        await self.gate.wait()
        return self.vectorize(text)


class RecordingEmbeddingProvider(HashEmbeddingProvider):
    """Logs each vectorization into *events* and tracks peak concurrency."""

    def __init__(self, events: list[tuple[str, object]]) -> None:
        super().__init__(dimension=TEST_DIMENSION)
        self.events = events
        self.in_flight = 0
        self.peak = 0

    async def embed_single(self, text: str) -> list[float]:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        self.events.append(("embed", text))
        try:
            await asyncio.sleep(0.01)
            return self.vectorize(text)
        finally:
            self.in_flight -= 1


class RecordingRepository(InMemoryDocumentRepository):
    """Logs each ``add_chunks`` call into *events*."""

    def __init__(self, events: list[tuple[str, object]]) -> None:
        super().__init__()
        self.events = events

    async def add_chunks(self, chunks: list[ChunkVector]) -> int:
        self.events.append(("store", [c.content for c in chunks]))
        return await super().add_chunks(chunks)


def _service(repository, embedding_provider, page_fetcher, chunker=None) -> IngestionService:
    return IngestionService(
        repository=repository,
        extraction_service=ExtractionService(),
        chunker=chunker or TextChunker(),
        embedding_provider=embedding_provider,
        crawler=WebCrawler(fetcher=page_fetcher),
        file_batch_concurrency=4,
        url_batch_concurrency=2,
    )


def _write(tmp_path: Path, text: str, name: str = "upload_1.txt") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# validate_url
# ---------------------------------------------------------------------------


class TestValidateUrl:
    def test_strips_whitespace(self) -> None:
        assert validate_url("  https://example.com/a  ") == "https://example.com/a"

    @pytest.mark.parametrize("url", ["", "example.com", "ftp://example.com", "https://", "/docs"])
    def test_rejects_non_http_urls(self, url: str) -> None:
        with pytest.raises(InputValidationError):
            validate_url(url)


# ---------------------------------------------------------------------------
# File ingestion
# ---------------------------------------------------------------------------


class TestFileIngestion:
    async def test_text_file_completes(self, ingestion_service, repository, tmp_path) -> None:
        path = _write(tmp_path, "Alpha beta gamma. Delta epsilon.")

        job = await ingestion_service.submit_file(str(path), "notes.txt", "text/plain", 32)
        assert job.document.status is DocumentStatus.PROCESSING

        result = await job.wait()

        assert result.outcome is IngestionOutcome.COMPLETED
        assert result.chunks_total == 1
        assert result.chunks_stored == 1
        document = await repository.get_document(job.document_id)
        assert document.status is DocumentStatus.COMPLETED
        assert document.content == "Alpha beta gamma. Delta epsilon."
        assert document.processed_at is not None
        assert document.filename == "upload_1.txt"
        assert not path.exists()

    async def test_chunk_metadata(self, repository, embedding_provider, page_fetcher, tmp_path) -> None:
        service = _service(repository, embedding_provider, page_fetcher, TextChunker(max_size=20))
        path = _write(tmp_path, "First sentence here. Second sentence here. Third one.")

        job = await service.submit_file(str(path), "notes.txt", "text/plain", 52)
        await job.wait()

        chunks = await repository.get_chunks_by_document(job.document_id)
        assert [c.metadata for c in chunks] == [
            {"chunkIndex": 0, "totalChunks": 3},
            {"chunkIndex": 1, "totalChunks": 3},
            {"chunkIndex": 2, "totalChunks": 3},
        ]
        assert all(len(c.vector) == TEST_DIMENSION for c in chunks)

    async def test_failed_chunk_is_skipped(self, repository, page_fetcher, tmp_path) -> None:
        service = _service(
            repository,
            FlakyEmbeddingProvider(poison="number 3."),
            page_fetcher,
            TextChunker(max_size=20),
        )
        text = " ".join(f"Sentence number {i}." for i in range(10))
        path = _write(tmp_path, text)

        job = await service.submit_file(str(path), "ten.txt", "text/plain", len(text))
        result = await job.wait()

        assert result.outcome is IngestionOutcome.COMPLETED
        assert result.chunks_total == 10
        assert result.chunks_stored == 9
        assert result.chunks_failed == 1
        assert result.batches == 3
        chunks = await repository.get_chunks_by_document(job.document_id)
        assert [c.chunk_index for c in chunks] == [0, 1, 2, 4, 5, 6, 7, 8, 9]
        document = await repository.get_document(job.document_id)
        assert document.status is DocumentStatus.COMPLETED

    async def test_batches_are_bounded_and_sequential(self, page_fetcher, tmp_path) -> None:
        events: list[tuple[str, object]] = []
        provider = RecordingEmbeddingProvider(events)
        service = _service(
            RecordingRepository(events), provider, page_fetcher, TextChunker(max_size=20)
        )
        text = " ".join(f"Sentence number {i}." for i in range(10))
        path = _write(tmp_path, text)

        job = await service.submit_file(str(path), "ten.txt", "text/plain", len(text))
        result = await job.wait()

        assert result.batches == 3
        assert provider.peak == 4

        def number(chunk: str) -> int:
            return int(chunk.rstrip(".").split()[-1])

        # Split the embed calls at each store; a batch must be stored before
        # any chunk of the next batch starts vectorizing.
        segments: list[list[int]] = [[]]
        stored: list[list[int]] = []
        for kind, payload in events:
            if kind == "embed":
                segments[-1].append(number(payload))
            else:
                stored.append(sorted(number(c) for c in payload))
                segments.append([])

        assert [sorted(s) for s in segments] == [[0, 1, 2, 3], [4, 5, 6, 7], [8, 9], []]
        assert stored == [[0, 1, 2, 3], [4, 5, 6, 7], [8, 9]]

    async def test_unsupported_type_fails(self, ingestion_service, repository, tmp_path) -> None:
        path = tmp_path / "upload_2.exe"
        path.write_bytes(b"MZ\x90\x00")

        job = await ingestion_service.submit_file(
            str(path), "setup.exe", "application/x-msdownload", 4
        )
        result = await job.wait()

        assert result.outcome is IngestionOutcome.FAILED
        assert "Unsupported file type" in result.error
        document = await repository.get_document(job.document_id)
        assert document.status is DocumentStatus.FAILED
        assert document.processed_at is None
        assert await repository.get_chunks_by_document(job.document_id) == []
        assert not path.exists()

    async def test_empty_file_stores_one_empty_chunk(self, ingestion_service, repository, tmp_path) -> None:
        path = _write(tmp_path, "")

        job = await ingestion_service.submit_file(str(path), "empty.txt", "text/plain", 0)
        result = await job.wait()

        assert result.outcome is IngestionOutcome.COMPLETED
        chunks = await repository.get_chunks_by_document(job.document_id)
        assert [c.content for c in chunks] == [""]

    async def test_deleted_mid_run_is_aborted(self, repository, page_fetcher, tmp_path) -> None:
        provider = GatedEmbeddingProvider()
        service = _service(repository, provider, page_fetcher)
        path = _write(tmp_path, "Some text to embed.")

        job = await service.submit_file(str(path), "notes.txt", "text/plain", 19)
        await provider.started.wait()
        assert await repository.delete_document(job.document_id) is True
        provider.gate.set()
        result = await job.wait()

        assert result.outcome is IngestionOutcome.ABORTED
        assert await repository.get_document(job.document_id) is None
        assert await repository.list_chunks() == []
        assert not path.exists()


# ---------------------------------------------------------------------------
# URL ingestion
# ---------------------------------------------------------------------------


class TestUrlIngestion:
    async def test_crawled_site_completes(self, ingestion_service, repository, page_fetcher) -> None:
        page_fetcher.pages["https://docs.example.com/"] = (
            "<html><head><title>Docs</title></head>"
            "<body><main><p>Welcome to the docs.</p><a href='/guide'>Guide</a></main></body></html>"
        )
        page_fetcher.pages["https://docs.example.com/guide"] = (
            "<html><head><title>Guide</title></head><body><p>Step one.</p></body></html>"
        )

        job = await ingestion_service.submit_url("https://docs.example.com/")
        result = await job.wait()

        assert result.outcome is IngestionOutcome.COMPLETED
        document = await repository.get_document(job.document_id)
        assert document.status is DocumentStatus.COMPLETED
        assert document.filename.startswith("docs.example.com_")
        assert document.original_name == "https://docs.example.com/"
        assert document.mime_type == "text/html"
        assert document.size == 0
        assert document.content.startswith("TITLE: Docs\nURL: https://docs.example.com/\n")
        assert "--- NEW PAGE ---" in document.content

        chunks = await repository.get_chunks_by_document(job.document_id)
        assert chunks
        assert chunks[0].metadata == {
            "chunkIndex": 0,
            "totalChunks": len(chunks),
            "source": "url",
            "originalUrl": "https://docs.example.com/",
        }

    async def test_invalid_url_creates_nothing(self, ingestion_service, repository) -> None:
        with pytest.raises(InputValidationError):
            await ingestion_service.submit_url("not a url")
        assert await repository.list_documents() == []

    async def test_seed_fetch_failure_fails_document(self, ingestion_service, repository) -> None:
        job = await ingestion_service.submit_url("https://down.example.com/")
        result = await job.wait()

        assert result.outcome is IngestionOutcome.FAILED
        assert "404" in result.error
        document = await repository.get_document(job.document_id)
        assert document.status is DocumentStatus.FAILED


# ---------------------------------------------------------------------------
# Job tracking
# ---------------------------------------------------------------------------


class TestJobTracking:
    async def test_wait_for_unknown_document(self, ingestion_service) -> None:
        assert await ingestion_service.wait_for("nope") is None

    async def test_wait_for_running_job(self, ingestion_service, tmp_path) -> None:
        path = _write(tmp_path, "Short text.")

        job = await ingestion_service.submit_file(str(path), "a.txt", "text/plain", 11)
        result = await ingestion_service.wait_for(job.document_id)

        assert result.outcome is IngestionOutcome.COMPLETED
        assert ingestion_service.active_jobs() == []
        assert await ingestion_service.wait_for(job.document_id) is None

    async def test_shutdown_cancels_stuck_jobs(self, repository, page_fetcher, tmp_path) -> None:
        provider = GatedEmbeddingProvider()
        service = _service(repository, provider, page_fetcher)
        path = _write(tmp_path, "Never finishes.")

        job = await service.submit_file(str(path), "stuck.txt", "text/plain", 15)
        await provider.started.wait()
        assert service.active_jobs() == [job.document_id]

        await service.shutdown(timeout=0.05)

        assert job.task.cancelled()
        assert service.active_jobs() == []
        assert not path.exists()
        document = await repository.get_document(job.document_id)
        assert document.status is DocumentStatus.FAILED

    async def test_cancelled_run_is_failed_after_restart(self, page_fetcher, tmp_path) -> None:
        db_path = tmp_path / "jobs.db"
        repository = SQLiteDocumentRepository(db_path=db_path)
        await repository.initialize()
        provider = GatedEmbeddingProvider()
        service = _service(repository, provider, page_fetcher)
        path = _write(tmp_path, "Interrupted by shutdown.")

        job = await service.submit_file(str(path), "stuck.txt", "text/plain", 24)
        await provider.started.wait()
        await service.shutdown(timeout=0.05)

        reopened = SQLiteDocumentRepository(db_path=db_path)
        await reopened.initialize()
        document = await reopened.get_document(job.document_id)
        assert document.status is DocumentStatus.FAILED

    async def test_shutdown_with_nothing_running(self, ingestion_service) -> None:
        await ingestion_service.shutdown(timeout=0.01)
