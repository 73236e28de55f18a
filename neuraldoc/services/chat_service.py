"""Chat orchestration: answer a query from the stored documents.

A turn runs in this order:

1. Build the user message (its timestamp is taken first).
2. Load recent history for conversational context.
3. Vectorize the query.
4. Retrieve context with the hybrid augmenter over every stored chunk.
5. Compose the answer, or the fixed "no documents" message when nothing
   was retrieved.
6. Resolve the top contributing chunks to their parent documents.
7. Persist the user and assistant messages together.

Nothing is written until step 7, and both messages are written in one
repository call, so a failed turn never leaves half a conversation pair.
"""

from __future__ import annotations

import uuid

import structlog

from neuraldoc.interfaces.document_repository import IDocumentRepository
from neuraldoc.interfaces.embedding_provider import IEmbeddingProvider
from neuraldoc.models.chat import ChatMessage, ChatRole, ChatTurn, SourceReference
from neuraldoc.models.retrieval import ScoredChunk
from neuraldoc.services.response_composer import ResponseComposer
from neuraldoc.services.retrieval_augmenter import RetrievalAugmenter
from neuraldoc.utils.errors import ChatError, InputValidationError, NeuralDocError

logger = structlog.get_logger(logger_name=__name__)


class ChatService:
    """Answers chat messages with retrieval-grounded responses.

    Parameters
    ----------
    repository:
        Source of chunks and documents; sink for chat messages.
    embedding_provider:
        Must be the provider that vectorized the stored chunks.
    augmenter:
        Hybrid retrieval over all chunk-vectors.
    composer:
        Turns retrieved excerpts into the answer text.
    history_window:
        Number of recent messages loaded as conversational context.
    max_sources:
        Number of top context chunks resolved into sources.
    """

    def __init__(
        self,
        repository: IDocumentRepository,
        embedding_provider: IEmbeddingProvider,
        augmenter: RetrievalAugmenter,
        composer: ResponseComposer | None = None,
        history_window: int = 16,
        max_sources: int = 3,
    ) -> None:
        self._repository = repository
        self._embedding_provider = embedding_provider
        self._augmenter = augmenter
        self._composer = composer or ResponseComposer()
        self._history_window = history_window
        self._max_sources = max_sources

    async def send_message(self, content: str, language: str | None = None) -> ChatTurn:
        """Answer *content* and persist the turn.

        Raises
        ------
        InputValidationError
            If *content* is blank.
        ChatError
            If retrieval or composition fails; no messages are written.
        """
        if not content or not content.strip():
            raise InputValidationError(message="Message content is required")

        user_message = ChatMessage(id=uuid.uuid4().hex, content=content, role=ChatRole.USER)

        try:
            history = await self._repository.list_chat_messages(limit=self._history_window)
            query_vector = await self._embedding_provider.embed_single(content)
            candidates = await self._repository.list_chunks()
            context = self._augmenter.augment(content, query_vector, candidates)
            answer = self._composer.compose(
                content, [c.content for c in context], history=history, language=language
            )
            sources = await self._resolve_sources(context)
        except NeuralDocError as exc:
            logger.error("chat_turn_failed", error=str(exc))
            raise ChatError(message=f"Could not answer message: {exc.message}") from exc

        assistant_message = ChatMessage(
            id=uuid.uuid4().hex,
            content=answer,
            role=ChatRole.ASSISTANT,
            sources=sources or None,
        )
        await self._repository.add_chat_messages([user_message, assistant_message])

        logger.info(
            "chat_turn_completed",
            candidates=len(candidates),
            context_chunks=len(context),
            sources=len(sources),
            history=len(history),
            language=language,
        )
        return ChatTurn(user_message=user_message, assistant_message=assistant_message)

    async def get_history(self, limit: int | None = None) -> list[ChatMessage]:
        return await self._repository.list_chat_messages(limit=limit)

    async def clear_history(self) -> None:
        await self._repository.clear_chat_history()

    async def _resolve_sources(self, context: list[ScoredChunk]) -> list[SourceReference]:
        sources: list[SourceReference] = []
        for scored in context[: self._max_sources]:
            document = await self._repository.get_document(scored.document_id)
            if document is None:
                continue
            sources.append(
                SourceReference(
                    document_id=document.id,
                    name=document.original_name,
                    similarity=scored.similarity,
                )
            )
        return sources
