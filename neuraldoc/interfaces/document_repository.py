"""Abstract base class for the document repository.

The repository is the single owner of documents, chunk-vectors and chat
messages.  Orchestrators are its only writers.  Implementations must
enforce these rules:

* Document status only moves ``processing -> completed | failed``; content
  may be rewritten only while the document is processing.
* Deleting a document removes all of its chunk-vectors.
* Chunk-vectors are written in batches, atomically, and only for documents
  that exist at write time.
* Chat history keeps at most ``max_chat_messages`` messages and is cleared
  when it is listed while no document exists.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from neuraldoc.models.chat import ChatMessage
from neuraldoc.models.document import ChunkVector, Document, DocumentStatus, RepositoryStats


# Concrete implementations:
#   InMemoryDocumentRepository - process-local dicts guarded by an asyncio.Lock
#   SQLiteDocumentRepository   - aiosqlite, survives restarts (used by the CLI)
# Located in: neuraldoc/providers/repository/
class IDocumentRepository(ABC):
    """Contract for document, chunk-vector and chat-message persistence."""

    # -- Documents ---------------------------------------------------------

    @abstractmethod
    async def create_document(self, document: Document) -> Document:
        """Insert a new document.  Its status must be ``processing``."""

    @abstractmethod
    async def get_document(self, document_id: str) -> Document | None:
        """Return the document, or ``None`` if it does not exist."""

    @abstractmethod
    async def list_documents(self) -> list[Document]:
        """Return all documents, newest upload first."""

    @abstractmethod
    async def update_document(
        self,
        document_id: str,
        *,
        status: DocumentStatus | None = None,
        content: str | None = None,
    ) -> Document:
        """Change a document's status and/or content.

        Sets ``processed_at`` when the status becomes ``completed``.

        Raises
        ------
        neuraldoc.utils.errors.DocumentNotFoundError
            If the document does not exist.
        neuraldoc.utils.errors.InvalidStatusTransitionError
            If the status change or content write violates the lifecycle.
        """

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Delete a document and all its chunks.  Returns whether it existed."""

    # -- Chunk-vectors -----------------------------------------------------

    @abstractmethod
    async def add_chunks(self, chunks: list[ChunkVector]) -> int:
        """Insert a batch of chunks atomically and return how many were written.

        Raises
        ------
        neuraldoc.utils.errors.DocumentNotFoundError
            If any chunk's parent document does not exist; nothing is written.
        """

    @abstractmethod
    async def get_chunks_by_document(self, document_id: str) -> list[ChunkVector]:
        """Return a document's chunks ordered by ``chunkIndex``."""

    @abstractmethod
    async def list_chunks(self) -> list[ChunkVector]:
        """Return every stored chunk across all documents."""

    # -- Chat messages -----------------------------------------------------

    @abstractmethod
    async def add_chat_messages(self, messages: list[ChatMessage]) -> list[ChatMessage]:
        """Append messages atomically, then prune history to the retention bound."""

    @abstractmethod
    async def list_chat_messages(self, limit: int | None = None) -> list[ChatMessage]:
        """Return retained messages oldest first, at most *limit* of the newest.

        If no documents exist the history is cleared and an empty list
        returned.
        """

    @abstractmethod
    async def clear_chat_history(self) -> None:
        """Delete every chat message."""

    # -- Housekeeping ------------------------------------------------------

    @abstractmethod
    async def get_stats(self) -> RepositoryStats:
        """Return record counts."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the backend name, e.g. ``"memory"`` or ``"sqlite"``."""

    async def initialize(self) -> None:
        """Prepare the backend (create tables, ...).  Default does nothing."""
        return None
