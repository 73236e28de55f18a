"""In-memory document repository.

Keeps documents, chunk-vectors and chat messages in process-local dicts.
Every mutation runs under one ``asyncio.Lock`` so multi-record writes
(chunk batches, chat pairs, cascading deletes) are atomic with respect to
other coroutines.  State is lost on restart; use
:class:`SQLiteDocumentRepository` for persistence.
"""

from __future__ import annotations

import asyncio

import structlog

from neuraldoc.interfaces.document_repository import IDocumentRepository
from neuraldoc.models.chat import ChatMessage
from neuraldoc.models.document import ChunkVector, Document, DocumentStatus, RepositoryStats
from neuraldoc.utils.errors import DocumentNotFoundError, InvalidStatusTransitionError

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_MAX_CHAT_MESSAGES = 12


class InMemoryDocumentRepository(IDocumentRepository):
    """Process-local repository; one instance per app or test."""

    def __init__(self, max_chat_messages: int = DEFAULT_MAX_CHAT_MESSAGES) -> None:
        self._max_chat_messages = max_chat_messages
        self._documents: dict[str, Document] = {}
        self._chunks: dict[str, ChunkVector] = {}
        self._chat: list[ChatMessage] = []
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        if document.status is not DocumentStatus.PROCESSING:
            raise InvalidStatusTransitionError(
                message=f"New documents must be processing, got {document.status.value}"
            )
        async with self._lock:
            self._documents[document.id] = document
        logger.info("document_created", document_id=document.id, name=document.original_name)
        return document

    async def get_document(self, document_id: str) -> Document | None:
        return self._documents.get(document_id)

    async def list_documents(self) -> list[Document]:
        # Newest first; reversed insertion order breaks timestamp ties.
        docs = list(reversed(self._documents.values()))
        return sorted(docs, key=lambda d: d.uploaded_at, reverse=True)

    async def update_document(
        self,
        document_id: str,
        *,
        status: DocumentStatus | None = None,
        content: str | None = None,
    ) -> Document:
        async with self._lock:
            current = self._documents.get(document_id)
            if current is None:
                raise DocumentNotFoundError(message=f"Document {document_id} not found")
            updated = current.with_update(status=status, content=content)
            self._documents[document_id] = updated
        if status is not None:
            logger.info("document_status_changed", document_id=document_id, status=status.value)
        return updated

    async def delete_document(self, document_id: str) -> bool:
        async with self._lock:
            existed = self._documents.pop(document_id, None) is not None
            doomed = [cid for cid, c in self._chunks.items() if c.document_id == document_id]
            for cid in doomed:
                del self._chunks[cid]
        if existed:
            logger.info("document_deleted", document_id=document_id, chunks_deleted=len(doomed))
        return existed

    # ------------------------------------------------------------------
    # Chunk-vectors
    # ------------------------------------------------------------------

    async def add_chunks(self, chunks: list[ChunkVector]) -> int:
        if not chunks:
            return 0
        async with self._lock:
            missing = {c.document_id for c in chunks} - self._documents.keys()
            if missing:
                raise DocumentNotFoundError(
                    message=f"Cannot store chunks for missing document(s): {sorted(missing)}"
                )
            for chunk in chunks:
                self._chunks[chunk.id] = chunk
        return len(chunks)

    async def get_chunks_by_document(self, document_id: str) -> list[ChunkVector]:
        owned = [c for c in self._chunks.values() if c.document_id == document_id]
        return sorted(owned, key=lambda c: c.chunk_index)

    async def list_chunks(self) -> list[ChunkVector]:
        return list(self._chunks.values())

    # ------------------------------------------------------------------
    # Chat messages
    # ------------------------------------------------------------------

    async def add_chat_messages(self, messages: list[ChatMessage]) -> list[ChatMessage]:
        async with self._lock:
            self._chat.extend(messages)
            overflow = len(self._chat) - self._max_chat_messages
            if overflow > 0:
                del self._chat[:overflow]
        return list(messages)

    async def list_chat_messages(self, limit: int | None = None) -> list[ChatMessage]:
        async with self._lock:
            if not self._documents:
                if self._chat:
                    logger.info("chat_history_cleared", reason="no_documents")
                self._chat.clear()
                return []
            history = list(self._chat)
        if limit is not None:
            history = history[-limit:] if limit > 0 else []
        return history

    async def clear_chat_history(self) -> None:
        async with self._lock:
            self._chat.clear()
        logger.info("chat_history_cleared", reason="requested")

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    async def get_stats(self) -> RepositoryStats:
        docs = list(self._documents.values())
        return RepositoryStats(
            documents=len(docs),
            processing=sum(1 for d in docs if d.status is DocumentStatus.PROCESSING),
            completed=sum(1 for d in docs if d.status is DocumentStatus.COMPLETED),
            failed=sum(1 for d in docs if d.status is DocumentStatus.FAILED),
            chunks=len(self._chunks),
            chat_messages=len(self._chat),
        )

    def get_provider_name(self) -> str:
        return "memory"
