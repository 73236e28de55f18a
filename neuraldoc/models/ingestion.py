"""Ingestion run models."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from neuraldoc.models.document import Document


class IngestionOutcome(str, Enum):  # noqa: UP042
    """How an ingestion run ended.

    ``aborted`` means the document was deleted while the run was in flight;
    nothing further was written for it.
    """

    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"


class IngestionResult(BaseModel):
    """Statistics for one finished ingestion run."""

    model_config = ConfigDict(frozen=True)

    document_id: str
    outcome: IngestionOutcome
    chunks_total: int = Field(default=0, ge=0)
    chunks_stored: int = Field(default=0, ge=0)
    chunks_failed: int = Field(default=0, ge=0)
    batches: int = Field(default=0, ge=0)
    elapsed_seconds: float = 0.0
    error: str | None = None


@dataclass
class IngestionJob:
    """A submitted document and the background task processing it.

    Attributes
    ----------
    document:
        The record as created, in ``processing`` status.
    task:
        The running pipeline; its result is an :class:`IngestionResult`.
    """

    document: Document
    task: asyncio.Task[IngestionResult] = field(repr=False)

    @property
    def document_id(self) -> str:
        return self.document.id

    def done(self) -> bool:
        return self.task.done()

    async def wait(self) -> IngestionResult:
        return await self.task
