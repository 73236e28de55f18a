"""Hybrid retrieval: semantic ranking plus keyword and context heuristics.

Given a query and every stored chunk-vector, the augmenter:

1. Takes the semantic top ``semantic_top_k`` (5) from the ranker.
2. Classifies the query against the vocabulary.  Context cues ("this",
   "previous", ...) and translation cues ("translate", "latinica", ...)
   make the query context-dependent.
3. Shrinks a context-dependent result to its top ``context_top_k`` (3),
   leaving more room for conversation history.
4. If the query names a tracked entity and is not a translation request,
   scans all chunks for the entity (or its synonym) as a literal
   case-insensitive substring.  New matches get a fixed similarity of 0.5,
   at most ``max_keyword_matches`` are appended, and the combined list is
   capped at ``max_context_chunks`` (8).

Semantic hits come first by descending similarity, then keyword hits in
candidate order.  No chunk appears twice.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import structlog

from neuraldoc.models.document import ChunkVector
from neuraldoc.models.retrieval import MatchKind, RetrievalVocabulary, ScoredChunk
from neuraldoc.services.similarity import rank

logger = structlog.get_logger(logger_name=__name__)


@dataclass(frozen=True)
class QueryClassification:
    """Which vocabulary cues a query contains."""

    needs_context: bool
    is_translation: bool
    # First tracked entity found, in vocabulary order.
    entity: str | None


class RetrievalAugmenter:
    """Merges semantic, keyword and context signals into one context list."""

    def __init__(
        self,
        vocabulary: RetrievalVocabulary | None = None,
        semantic_top_k: int = 5,
        context_top_k: int = 3,
        max_context_chunks: int = 8,
        max_keyword_matches: int = 3,
        keyword_match_similarity: float = 0.5,
    ) -> None:
        self._vocabulary = vocabulary or RetrievalVocabulary()
        self._semantic_top_k = semantic_top_k
        self._context_top_k = context_top_k
        self._max_context_chunks = max_context_chunks
        self._max_keyword_matches = max_keyword_matches
        self._keyword_similarity = keyword_match_similarity

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify(self, query: str) -> QueryClassification:
        lowered = query.lower()
        vocab = self._vocabulary
        is_translation = any(term in lowered for term in vocab.translation_keywords)
        needs_context = is_translation or any(term in lowered for term in vocab.context_keywords)
        entity = next((term for term in vocab.tracked_entities if term in lowered), None)
        return QueryClassification(
            needs_context=needs_context, is_translation=is_translation, entity=entity
        )

    def augment(
        self,
        query: str,
        query_vector: Sequence[float],
        candidates: Sequence[ChunkVector],
    ) -> list[ScoredChunk]:
        """Return the merged, deduplicated context list for *query*.

        Parameters
        ----------
        query:
            Raw user query text.
        query_vector:
            The query's vector from the same embedding provider as the
            candidates.
        candidates:
            Every stored chunk-vector (retrieval is cross-document).
        """
        classification = self.classify(query)
        # Step 1: semantic top-k across every document
        results = rank(query_vector, candidates, self._semantic_top_k)

        # Step 2: context-seeking queries keep only the strongest few
        if classification.needs_context:
            results = results[: self._context_top_k]

        # Step 3: literal entity hits the vectors missed, appended after the
        # semantic results and capped with them.  Translations skip this.
        keyword_added = 0
        if classification.entity and not classification.is_translation:
            extras = self._keyword_matches(
                classification.entity, candidates, {r.chunk_id for r in results}
            )
            keyword_added = len(extras)
            results = (results + extras)[: self._max_context_chunks]

        logger.debug(
            "retrieval_augmented",
            candidates=len(candidates),
            results=len(results),
            needs_context=classification.needs_context,
            translation=classification.is_translation,
            entity=classification.entity,
            keyword_matches=keyword_added,
        )
        return results

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _keyword_matches(
        self,
        entity: str,
        candidates: Sequence[ChunkVector],
        exclude_ids: set[str],
    ) -> list[ScoredChunk]:
        """Literal substring matches of *entity* or its synonym."""
        terms = [entity]
        synonym = self._vocabulary.entity_synonyms.get(entity)
        if synonym:
            terms.append(synonym)

        # Candidate order decides which matches fill the cap
        matches: list[ScoredChunk] = []
        seen = set(exclude_ids)
        for chunk in candidates:
            if len(matches) >= self._max_keyword_matches:
                break
            if chunk.id in seen:
                continue
            lowered = chunk.content.lower()
            if any(term in lowered for term in terms):
                seen.add(chunk.id)
                matches.append(
                    ScoredChunk(
                        chunk=chunk,
                        similarity=self._keyword_similarity,
                        match=MatchKind.KEYWORD,
                    )
                )
        return matches
