"""Builds assistant answers from retrieved context.

The composer is a placeholder for a generative model: it quotes the top
excerpts verbatim and appends a disclaimer that the answer only reflects
the uploaded documents.  Conversation history and the language hint are
accepted so a model-backed composer can use them; this one does not.
"""

from __future__ import annotations

from typing import Sequence

from neuraldoc.models.chat import ChatMessage

NO_DOCUMENTS_MESSAGE = (
    "I don't have any documents to reference. "
    "Please upload documents first to get started with intelligent document analysis."
)

_HEADER = "Based on the uploaded documents, here's what I found:"
_DISCLAIMER = (
    "This information is extracted from your documents. "
    "The answer is based only on the content you uploaded."
)


class ResponseComposer:
    """Quotes up to ``max_excerpts`` context excerpts under a fixed header."""

    def __init__(self, max_excerpts: int = 3) -> None:
        self._max_excerpts = max_excerpts

    def compose(
        self,
        query: str,
        context: Sequence[str],
        history: Sequence[ChatMessage] = (),
        language: str | None = None,
    ) -> str:
        if not context:
            return NO_DOCUMENTS_MESSAGE
        excerpts = "\n\n".join(context[: self._max_excerpts])
        return f"{_HEADER}\n\n{excerpts}\n\n---\n\n{_DISCLAIMER}"
