"""Pydantic request/response schemas for the NeuralDoc API.

Documents, chat messages and chat turns are returned as the domain models
themselves (see ``neuraldoc/models``); this module only holds the
request bodies and the envelopes that have no domain counterpart.  All
JSON field names are camelCase.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from neuraldoc.models.document import RepositoryStats


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExtractUrlRequest(_ApiModel):
    """Body of ``POST /api/documents/extract-url``."""

    url: str = Field(default="", description="Absolute http(s) URL to crawl.")


class SendMessageRequest(_ApiModel):
    """Body of ``POST /api/chat/messages``."""

    content: str = Field(default="", max_length=10_000)
    language: str | None = Field(default=None, description="Optional answer language hint.")


class SuccessResponse(_ApiModel):
    success: bool = True


class HealthResponse(_ApiModel):
    """Service health and record counts."""

    status: str
    version: str
    embedding_provider: str
    embedding_dimension: int
    repository_backend: str
    active_ingestions: int = 0
    stats: RepositoryStats


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
