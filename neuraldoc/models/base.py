"""Shared Pydantic base for NeuralDoc records.

All persisted and transported records are frozen: a change produces a new
instance via ``model_copy(update=...)``.  Python attributes are snake_case
while JSON uses camelCase (``originalName``, ``documentId``, ...), so both
the HTTP API and the SQLite rows carry the public record shapes.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RecordModel(BaseModel):
    """Frozen model serialised with camelCase aliases."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


def utc_now() -> datetime:
    """Timezone-aware current time used for every record timestamp."""
    return datetime.now(timezone.utc)
