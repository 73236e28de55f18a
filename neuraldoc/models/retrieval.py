"""Retrieval result and vocabulary models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from neuraldoc.models.document import ChunkVector


class MatchKind(str, Enum):  # noqa: UP042
    """How a chunk entered the context list."""

    SEMANTIC = "semantic"
    KEYWORD = "keyword"


class ScoredChunk(BaseModel):
    """A candidate chunk paired with its relevance score."""

    model_config = ConfigDict(frozen=True)

    chunk: ChunkVector
    # Cosine similarity clamped to [0, 1]; keyword matches get a fixed score.
    similarity: float = Field(ge=0.0, le=1.0)
    match: MatchKind = MatchKind.SEMANTIC

    @property
    def chunk_id(self) -> str:
        return self.chunk.id

    @property
    def document_id(self) -> str:
        return self.chunk.document_id

    @property
    def content(self) -> str:
        return self.chunk.content


class RetrievalVocabulary(BaseModel):
    """Keyword sets that steer the hybrid retrieval heuristics.

    All terms are lower-case and matched by substring containment against
    the lower-cased query.
    """

    model_config = ConfigDict(frozen=True)

    # Anaphora cues: the query refers back to earlier conversation.
    context_keywords: tuple[str, ...] = (
        "this",
        "that",
        "previous",
        "above",
        "earlier",
        "before",
    )
    # Translation requests also count as context-dependent.
    translation_keywords: tuple[str, ...] = (
        "translate",
        "translation",
        "prevod",
        "prevedi",
        "cyrillic",
        "ćirilica",
        "latin",
        "latinica",
    )
    # Known names that trigger a literal keyword scan over all chunks.
    tracked_entities: tuple[str, ...] = (
        "rosemary",
        "barr",
        "helen",
        "reacher",
        "vladimir",
        "chenko",
        "zee",
        "yanni",
        "emerson",
        "crapharma",
        "norbury",
        "cingulate",
        "mhdeep",
        "messi",
        "lionel",
    )
    # Alternate spellings also accepted when scanning for an entity.
    entity_synonyms: dict[str, str] = Field(
        default_factory=lambda: {"barr": "rosemary", "crapharma": "cra"}
    )
