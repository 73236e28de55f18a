"""FastAPI routes for documents, chat and health.

Service dependencies are resolved from ``app.state`` via FastAPI's
``Depends`` using the ``Annotated`` pattern; ``main.py`` populates the
state in the application lifespan.

# Endpoint                          Method  Description
# ─────────────────────────────────────────────────────────────────
# /api/documents                    GET     List documents, newest first
# /api/documents/{id}               GET     One document
# /api/documents/upload             POST    Multipart upload → ingestion
# /api/documents/extract-url        POST    Crawl a URL → ingestion
# /api/documents/{id}               DELETE  Delete document and its chunks
# /api/chat/messages                GET     Chat history, oldest first
# /api/chat/messages                POST    Ask a question
# /api/chat/messages                DELETE  Clear chat history
# /api/health                       GET     Health and record counts
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response, UploadFile

from neuraldoc import __version__
from neuraldoc.api.schemas import (
    ErrorResponse,
    ExtractUrlRequest,
    HealthResponse,
    SendMessageRequest,
    SuccessResponse,
)
from neuraldoc.config.settings import Settings
from neuraldoc.interfaces.document_repository import IDocumentRepository
from neuraldoc.interfaces.embedding_provider import IEmbeddingProvider
from neuraldoc.models.chat import ChatMessage, ChatTurn
from neuraldoc.models.document import Document
from neuraldoc.services.chat_service import ChatService
from neuraldoc.services.ingestion.ingestion_service import IngestionService
from neuraldoc.utils.errors import DocumentNotFoundError, InputValidationError
from neuraldoc.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api")

# Uploads are streamed to disk in 64 KB pieces so an oversized body is
# rejected without buffering it.
_UPLOAD_CHUNK_SIZE = 64 * 1024

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


# ---------------------------------------------------------------------------
# Dependency helpers
# ---------------------------------------------------------------------------


def _get_repository(request: Request) -> IDocumentRepository:
    return request.app.state.repository


def _get_ingestion(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_chat(request: Request) -> ChatService:
    return request.app.state.chat_service


def _get_embedding_provider(request: Request) -> IEmbeddingProvider:
    return request.app.state.embedding_provider


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


RepositoryDep = Annotated[IDocumentRepository, Depends(_get_repository)]
IngestionDep = Annotated[IngestionService, Depends(_get_ingestion)]
ChatDep = Annotated[ChatService, Depends(_get_chat)]
EmbeddingDep = Annotated[IEmbeddingProvider, Depends(_get_embedding_provider)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.get("/documents", response_model=list[Document], summary="List documents")
async def list_documents(response: Response, repository: RepositoryDep) -> list[Document]:
    # Clients poll this while ingestion runs; never serve a cached list.
    response.headers.update(_NO_CACHE_HEADERS)
    return await repository.list_documents()


@router.get(
    "/documents/{document_id}",
    response_model=Document,
    responses={404: {"model": ErrorResponse}},
    summary="Get one document",
)
async def get_document(document_id: str, repository: RepositoryDep) -> Document:
    document = await repository.get_document(document_id)
    if document is None:
        raise DocumentNotFoundError(message=f"Document not found: {document_id}")
    return document


@router.post(
    "/documents/upload",
    response_model=Document,
    responses={400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}},
    summary="Upload a file for ingestion",
)
async def upload_document(
    ingestion: IngestionDep,
    settings: SettingsDep,
    file: UploadFile | None = None,
) -> Document:
    """Store the upload in a temp file and start ingesting it.

    Returns the ``processing`` document immediately; poll
    ``GET /api/documents/{id}`` for the final status.
    """
    if file is None or not file.filename:
        raise InputValidationError(message="No file uploaded")

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(file.filename).suffix
    fd, temp_path = tempfile.mkstemp(prefix="upload_", suffix=suffix, dir=upload_dir)

    total_size = 0
    try:
        with os.fdopen(fd, "wb") as handle:
            while True:
                chunk = await file.read(_UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                total_size += len(chunk)
                if total_size > settings.max_upload_bytes:
                    raise HTTPException(
                        status_code=413,
                        detail=(
                            f"File too large: >{settings.max_upload_bytes // (1024 * 1024)} MB. "
                            f"Maximum: {settings.max_upload_bytes} bytes."
                        ),
                    )
                handle.write(chunk)
    except BaseException:
        Path(temp_path).unlink(missing_ok=True)
        raise

    try:
        job = await ingestion.submit_file(
            path=temp_path,
            original_name=file.filename,
            mime_type=file.content_type or "",
            size=total_size,
        )
    except Exception:
        # No run owns the temp file yet, so nothing else will remove it.
        Path(temp_path).unlink(missing_ok=True)
        raise
    return job.document


@router.post(
    "/documents/extract-url",
    response_model=Document,
    responses={400: {"model": ErrorResponse}},
    summary="Crawl a URL and ingest its text",
)
async def extract_url(body: ExtractUrlRequest, ingestion: IngestionDep) -> Document:
    if not body.url.strip():
        raise InputValidationError(message="URL is required")
    job = await ingestion.submit_url(body.url)
    return job.document


@router.delete(
    "/documents/{document_id}",
    response_model=SuccessResponse,
    summary="Delete a document and its chunks",
)
async def delete_document(document_id: str, repository: RepositoryDep) -> SuccessResponse:
    deleted = await repository.delete_document(document_id)
    _logger.info("document_delete_requested", document_id=document_id, deleted=deleted)
    return SuccessResponse(success=True)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.get("/chat/messages", response_model=list[ChatMessage], summary="Chat history")
async def list_chat_messages(chat: ChatDep) -> list[ChatMessage]:
    return await chat.get_history()


@router.post(
    "/chat/messages",
    response_model=ChatTurn,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    summary="Ask a question about the uploaded documents",
)
async def send_chat_message(body: SendMessageRequest, chat: ChatDep) -> ChatTurn:
    return await chat.send_message(body.content, language=body.language)


@router.delete("/chat/messages", response_model=SuccessResponse, summary="Clear chat history")
async def clear_chat_messages(chat: ChatDep) -> SuccessResponse:
    await chat.clear_history()
    return SuccessResponse(success=True)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(
    repository: RepositoryDep,
    embedding_provider: EmbeddingDep,
    ingestion: IngestionDep,
) -> HealthResponse:
    stats = await repository.get_stats()
    return HealthResponse(
        status="healthy",
        version=__version__,
        embedding_provider=embedding_provider.get_provider_name(),
        embedding_dimension=embedding_provider.get_dimension(),
        repository_backend=repository.get_provider_name(),
        active_ingestions=len(ingestion.active_jobs()),
        stats=stats,
    )
