"""Orchestrator for document and URL ingestion.

Pipeline stages: **validate -> extract -> chunk -> vectorize -> store**.

:class:`IngestionService` coordinates the repository, the extraction
dispatcher, the chunker, the embedding provider and the web crawler
without any of them knowing about each other.  Submitting work creates the
document record in ``processing`` status and returns at once with an
:class:`IngestionJob`; the pipeline runs in an ``asyncio.Task`` that the
service tracks until it finishes.

Failure handling:

* A chunk whose vectorization raises is logged and dropped; the rest of
  the batch is still stored.
* Successful chunks of a batch are written with one ``add_chunks`` call.
* If the document is deleted while the run is in flight, the run stops
  before its next write and ends as ``aborted``.
* Anything else that escapes the pipeline marks the document ``failed``,
  including cancellation at shutdown, so no run is left ``processing``.
* Uploaded temp files are always removed when the run ends.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import structlog

from neuraldoc.interfaces.document_repository import IDocumentRepository
from neuraldoc.interfaces.embedding_provider import IEmbeddingProvider
from neuraldoc.models.document import ChunkVector, Document, DocumentStatus
from neuraldoc.models.ingestion import IngestionJob, IngestionOutcome, IngestionResult
from neuraldoc.services.extraction_service import ExtractionService
from neuraldoc.services.ingestion.chunker import TextChunker
from neuraldoc.services.ingestion.web_crawler import WebCrawler
from neuraldoc.utils.concurrency import batched, throttled_gather
from neuraldoc.utils.errors import (
    DocumentNotFoundError,
    InputValidationError,
    InvalidStatusTransitionError,
    PipelineError,
)

logger = structlog.get_logger(logger_name=__name__)


class _DocumentGone(Exception):
    """The document was deleted while its ingestion run was in flight."""


def validate_url(url: str) -> str:
    """Return the stripped URL, or raise if it is not an absolute http(s) URL."""
    candidate = (url or "").strip()
    parsed = urlparse(candidate)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise InputValidationError(message=f"Invalid URL: {url!r}")
    return candidate


class IngestionService:
    """Runs ingestion pipelines as tracked background tasks.

    Parameters
    ----------
    repository:
        Owner of documents and chunk-vectors.
    extraction_service:
        Routes files to format extractors.
    chunker:
        Splits extracted text into sentence-aligned chunks.
    embedding_provider:
        Turns chunk text into vectors.
    crawler:
        Fetches a URL plus its same-domain pages.
    file_batch_concurrency:
        Batch size and in-batch fan-out for uploaded files.
    url_batch_concurrency:
        Batch size and in-batch fan-out for crawled URLs.
    """

    def __init__(
        self,
        repository: IDocumentRepository,
        extraction_service: ExtractionService,
        chunker: TextChunker,
        embedding_provider: IEmbeddingProvider,
        crawler: WebCrawler,
        file_batch_concurrency: int = 100,
        url_batch_concurrency: int = 50,
    ) -> None:
        self._repository = repository
        self._extraction = extraction_service
        self._chunker = chunker
        self._embedding_provider = embedding_provider
        self._crawler = crawler
        self._file_batch = file_batch_concurrency
        self._url_batch = url_batch_concurrency
        self._jobs: dict[str, asyncio.Task[IngestionResult]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def submit_file(
        self,
        path: str,
        original_name: str,
        mime_type: str,
        size: int,
    ) -> IngestionJob:
        """Register an uploaded file and start processing it in the background.

        Parameters
        ----------
        path:
            Temp file holding the upload; removed when the run ends.
        original_name:
            The file name the user uploaded.
        mime_type:
            Declared MIME type (may be empty or generic).
        size:
            Upload size in bytes.

        Returns
        -------
        IngestionJob
            The ``processing`` document and the task running its pipeline.
        """
        document = Document(
            id=uuid.uuid4().hex,
            filename=Path(path).name,
            original_name=original_name,
            mime_type=mime_type or "",
            size=size,
        )
        await self._repository.create_document(document)
        task = asyncio.create_task(
            self._run_file(document, path), name=f"ingest-file-{document.id}"
        )
        self._track(document.id, task)
        logger.info(
            "ingestion_submitted",
            document_id=document.id,
            kind="file",
            name=original_name,
            mime_type=mime_type,
            size=size,
        )
        return IngestionJob(document=document, task=task)

    async def submit_url(self, url: str) -> IngestionJob:
        """Register a URL and start crawling it in the background.

        Raises
        ------
        InputValidationError
            If *url* is not an absolute http(s) URL; nothing is created.
        """
        url = validate_url(url)
        host = urlparse(url).hostname or "site"
        document = Document(
            id=uuid.uuid4().hex,
            filename=f"{host}_{int(time.time() * 1000)}",
            original_name=url,
            mime_type="text/html",
            size=0,
        )
        await self._repository.create_document(document)
        task = asyncio.create_task(self._run_url(document, url), name=f"ingest-url-{document.id}")
        self._track(document.id, task)
        logger.info("ingestion_submitted", document_id=document.id, kind="url", url=url)
        return IngestionJob(document=document, task=task)

    async def wait_for(self, document_id: str) -> IngestionResult | None:
        """Await the in-flight run for *document_id*; ``None`` if none is running."""
        task = self._jobs.get(document_id)
        if task is None:
            return None
        return await task

    def active_jobs(self) -> list[str]:
        return [doc_id for doc_id, task in self._jobs.items() if not task.done()]

    async def shutdown(self, timeout: float = 10.0) -> None:
        """Give running jobs *timeout* seconds to finish, then cancel the rest."""
        pending = [t for t in self._jobs.values() if not t.done()]
        if not pending:
            return
        logger.info("ingestion_shutdown_waiting", jobs=len(pending), timeout_s=timeout)
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        # Cancelled runs mark their documents failed on the way out
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            logger.warning("ingestion_jobs_cancelled", jobs=len(still_running))

    # ------------------------------------------------------------------
    # Pipelines
    # ------------------------------------------------------------------

    async def _run_file(self, document: Document, path: str) -> IngestionResult:
        start = time.monotonic()
        doc_id = document.id
        try:
            # Validate before touching the file; unsupported types fail fast
            if not self._extraction.is_supported(document.mime_type, document.original_name):
                logger.warning(
                    "unsupported_file_type",
                    document_id=doc_id,
                    name=document.original_name,
                    mime_type=document.mime_type,
                )
                await self._mark_failed(doc_id)
                return IngestionResult(
                    document_id=doc_id,
                    outcome=IngestionOutcome.FAILED,
                    elapsed_seconds=round(time.monotonic() - start, 3),
                    error=f"Unsupported file type: {document.mime_type or document.original_name}",
                )

            # Extraction never raises for bad content; it degrades to a placeholder
            text = await self._extraction.extract(path, document.mime_type, document.original_name)
            return await self._chunk_vectorize_store(
                doc_id, text, batch_size=self._file_batch, extra_metadata={}, start=start
            )
        except _DocumentGone:
            return self._aborted(doc_id, start)
        except asyncio.CancelledError:
            await self._on_cancelled(doc_id)
            raise
        except Exception as exc:
            return await self._fail(doc_id, exc, start)
        finally:
            await asyncio.to_thread(self._discard, path)

    async def _run_url(self, document: Document, url: str) -> IngestionResult:
        start = time.monotonic()
        doc_id = document.id
        try:
            text = await self._crawler.crawl(url)
            return await self._chunk_vectorize_store(
                doc_id,
                text,
                batch_size=self._url_batch,
                extra_metadata={"source": "url", "originalUrl": url},
                start=start,
            )
        except _DocumentGone:
            return self._aborted(doc_id, start)
        except asyncio.CancelledError:
            await self._on_cancelled(doc_id)
            raise
        except Exception as exc:
            return await self._fail(doc_id, exc, start)

    async def _chunk_vectorize_store(
        self,
        document_id: str,
        text: str,
        batch_size: int,
        extra_metadata: dict[str, Any],
        start: float,
    ) -> IngestionResult:
        """Shared tail: write content, chunk, vectorize in batches, complete.

        Each batch vectorizes its chunks concurrently (bounded by
        *batch_size*) and stores the survivors with one repository call.
        """
        # Persist the extracted text, then chunk it
        await self._write_content(document_id, text)
        chunks = self._chunker.chunk(text)
        total = len(chunks)

        stored = 0
        failed = 0
        batches = 0
        # Batches run one after another; chunks within a batch fan out
        for offset, batch in batched(chunks, batch_size):
            semaphore = asyncio.Semaphore(batch_size)
            vectors = await throttled_gather(
                [self._embedding_provider.embed_single(chunk) for chunk in batch],
                semaphore=semaphore,
            )

            # Failed vectors come back as exceptions in place; drop those chunks
            records: list[ChunkVector] = []
            for position, (chunk, vector) in enumerate(zip(batch, vectors)):
                chunk_index = offset + position
                if isinstance(vector, BaseException):
                    failed += 1
                    logger.warning(
                        "chunk_vectorization_failed",
                        document_id=document_id,
                        chunk_index=chunk_index,
                        error=str(vector),
                    )
                    continue
                records.append(
                    ChunkVector(
                        id=uuid.uuid4().hex,
                        document_id=document_id,
                        content=chunk,
                        vector=vector,
                        metadata={
                            "chunkIndex": chunk_index,
                            "totalChunks": total,
                            **extra_metadata,
                        },
                    )
                )

            # Stop before writing if the document was deleted mid-batch
            await self._require_document(document_id)
            if records:
                try:
                    stored += await self._repository.add_chunks(records)
                except DocumentNotFoundError as exc:
                    raise _DocumentGone(document_id) from exc
            batches += 1
            logger.debug(
                "ingestion_batch_stored",
                document_id=document_id,
                batch=batches,
                stored=len(records),
                size=len(batch),
            )

        # Completed only after every batch, even if some chunks were dropped
        await self._require_document(document_id)
        try:
            await self._repository.update_document(document_id, status=DocumentStatus.COMPLETED)
        except DocumentNotFoundError as exc:
            raise _DocumentGone(document_id) from exc

        result = IngestionResult(
            document_id=document_id,
            outcome=IngestionOutcome.COMPLETED,
            chunks_total=total,
            chunks_stored=stored,
            chunks_failed=failed,
            batches=batches,
            elapsed_seconds=round(time.monotonic() - start, 3),
        )
        logger.info(
            "ingestion_complete",
            document_id=document_id,
            chunks=stored,
            failed_chunks=failed,
            batches=batches,
            time_s=result.elapsed_seconds,
        )
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _require_document(self, document_id: str) -> None:
        if await self._repository.get_document(document_id) is None:
            raise _DocumentGone(document_id)

    async def _write_content(self, document_id: str, text: str) -> None:
        await self._require_document(document_id)
        try:
            await self._repository.update_document(document_id, content=text)
        except DocumentNotFoundError as exc:
            raise _DocumentGone(document_id) from exc

    async def _mark_failed(self, document_id: str) -> None:
        try:
            await self._repository.update_document(document_id, status=DocumentStatus.FAILED)
        except DocumentNotFoundError:
            logger.info("ingestion_failed_document_gone", document_id=document_id)
        except InvalidStatusTransitionError as exc:
            logger.warning("ingestion_failed_status_rejected", document_id=document_id, error=str(exc))

    async def _fail(self, document_id: str, exc: Exception, start: float) -> IngestionResult:
        if isinstance(exc, PipelineError):
            error = exc
        else:
            error = PipelineError(message=str(exc) or type(exc).__name__)
        logger.error(
            "ingestion_pipeline_failed",
            document_id=document_id,
            error=str(error),
            error_type=type(exc).__name__,
        )
        await self._mark_failed(document_id)
        return IngestionResult(
            document_id=document_id,
            outcome=IngestionOutcome.FAILED,
            elapsed_seconds=round(time.monotonic() - start, 3),
            error=str(error),
        )

    async def _on_cancelled(self, document_id: str) -> None:
        logger.warning("ingestion_cancelled", document_id=document_id)
        # Shielded so the status write lands even though the task is being cancelled.
        await asyncio.shield(self._mark_failed(document_id))

    @staticmethod
    def _aborted(document_id: str, start: float) -> IngestionResult:
        logger.info("ingestion_aborted_document_deleted", document_id=document_id)
        return IngestionResult(
            document_id=document_id,
            outcome=IngestionOutcome.ABORTED,
            elapsed_seconds=round(time.monotonic() - start, 3),
        )

    @staticmethod
    def _discard(path: str) -> None:
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("temp_file_cleanup_failed", path=path, error=str(exc))

    def _track(self, document_id: str, task: asyncio.Task[IngestionResult]) -> None:
        self._jobs[document_id] = task

        def _done(finished: asyncio.Task[IngestionResult]) -> None:
            self._jobs.pop(document_id, None)
            if finished.cancelled():
                logger.warning("ingestion_task_cancelled", document_id=document_id)
            elif finished.exception() is not None:
                logger.error(
                    "ingestion_task_crashed",
                    document_id=document_id,
                    error=str(finished.exception()),
                )

        task.add_done_callback(_done)
