"""NeuralDoc domain models.

- document.py  - Document lifecycle, chunk-vectors and repository counts
- chat.py      - Chat messages, source references and turns
- retrieval.py - Scored retrieval hits and the keyword vocabulary
- ingestion.py - Ingestion run results and background jobs
"""

from __future__ import annotations

from neuraldoc.models.chat import ChatMessage, ChatRole, ChatTurn, SourceReference
from neuraldoc.models.document import ChunkVector, Document, DocumentStatus, RepositoryStats
from neuraldoc.models.ingestion import IngestionJob, IngestionOutcome, IngestionResult
from neuraldoc.models.retrieval import MatchKind, RetrievalVocabulary, ScoredChunk

__all__ = [
    "ChatMessage",
    "ChatRole",
    "ChatTurn",
    "ChunkVector",
    "Document",
    "DocumentStatus",
    "IngestionJob",
    "IngestionOutcome",
    "IngestionResult",
    "MatchKind",
    "RepositoryStats",
    "RetrievalVocabulary",
    "ScoredChunk",
    "SourceReference",
]
