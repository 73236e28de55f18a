"""Chat conversation records."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from neuraldoc.models.base import RecordModel, utc_now


class ChatRole(str, Enum):  # noqa: UP042
    USER = "user"
    ASSISTANT = "assistant"


class SourceReference(RecordModel):
    """A document that contributed context to an assistant answer."""

    document_id: str
    # The document's original name (upload file name or URL).
    name: str
    similarity: float = Field(ge=0.0, le=1.0)


class ChatMessage(RecordModel):
    """One message of the conversation.

    ``sources`` is only set on assistant messages, holds at most three
    entries, and is ``None`` rather than an empty list when nothing was
    retrieved.
    """

    id: str
    content: str
    role: ChatRole
    sources: list[SourceReference] | None = None
    created_at: datetime = Field(default_factory=utc_now)


class ChatTurn(RecordModel):
    """A persisted user message and the assistant reply to it."""

    user_message: ChatMessage
    assistant_message: ChatMessage
