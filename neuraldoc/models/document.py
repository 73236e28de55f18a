"""Document and chunk-vector records.

A :class:`Document` is created in ``processing`` status when ingestion is
requested and moves exactly once to a terminal status.  Its text content
may be rewritten while it is still processing.  A :class:`ChunkVector` is
one piece of a document's text together with its vector; chunks are
immutable and disappear only when their parent document is deleted.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from neuraldoc.models.base import RecordModel, utc_now
from neuraldoc.utils.errors import InvalidStatusTransitionError


class DocumentStatus(str, Enum):  # noqa: UP042
    """Lifecycle status of an ingested document.

    ``processing`` is the only non-terminal status.  A document may stay in
    ``processing`` (content rewrites) or advance to ``completed`` or
    ``failed``; terminal statuses never change again.
    """

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not DocumentStatus.PROCESSING

    def can_transition_to(self, target: DocumentStatus) -> bool:
        """Return True if moving from this status to *target* is allowed."""
        return self is DocumentStatus.PROCESSING


class Document(RecordModel):
    """An uploaded file or crawled URL and its extracted text."""

    id: str = Field(description="Unique identifier (UUID4 hex).")
    # Stored name: the temp file name for uploads, "<host>_<ms>" for URLs.
    filename: str
    # What the user submitted: the upload's file name or the URL itself.
    original_name: str
    mime_type: str = Field(default="", description="Declared MIME type; text/html for URLs.")
    size: int = Field(default=0, ge=0, description="Size in bytes (0 for URLs).")
    content: str | None = Field(default=None, description="Extracted text, once available.")
    status: DocumentStatus = DocumentStatus.PROCESSING
    uploaded_at: datetime = Field(default_factory=utc_now)
    processed_at: datetime | None = Field(
        default=None, description="Set when the document reaches completed."
    )

    def with_update(
        self,
        status: DocumentStatus | None = None,
        content: str | None = None,
    ) -> Document:
        """Return a copy with the new status and/or content applied.

        Raises
        ------
        InvalidStatusTransitionError
            If the document is already terminal or *status* is not reachable.
        """
        if self.status.is_terminal and (status is not None or content is not None):
            raise InvalidStatusTransitionError(
                message=f"Document {self.id} is already {self.status.value}"
            )

        update: dict[str, object] = {}
        if content is not None:
            update["content"] = content
        if status is not None:
            if not self.status.can_transition_to(status):
                raise InvalidStatusTransitionError(
                    message=f"Cannot move document {self.id} from {self.status.value} to {status.value}"
                )
            update["status"] = status
            if status is DocumentStatus.COMPLETED:
                update["processed_at"] = utc_now()
        return self.model_copy(update=update)


class ChunkVector(RecordModel):
    """A chunk of document text with its fixed-dimension vector.

    ``metadata`` always carries ``chunkIndex`` (position in the original
    chunk sequence) and ``totalChunks``; URL chunks also carry ``source``
    and ``originalUrl``.
    """

    id: str
    document_id: str
    content: str
    vector: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def chunk_index(self) -> int:
        return int(self.metadata.get("chunkIndex", 0))


class RepositoryStats(RecordModel):
    """Record counts reported by the health endpoint and the CLI."""

    documents: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
    chunks: int = 0
    chat_messages: int = 0
