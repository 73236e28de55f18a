"""Custom exception hierarchy for NeuralDoc.

All application exceptions inherit from :class:`NeuralDocError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "pymupdf", "tesseract", "httpx", "sqlite") caused the
failure.  Subclasses only override ``default_message``.

The hierarchy is organized by pipeline stage:

    NeuralDocError  (base -- catch-all for any NeuralDoc error)
    +-- InputValidationError         (bad upload, bad URL, bad chat request)
    +-- ExtractionError              (parser failure; recovered as placeholder)
    +-- VectorizationError           (one chunk failed to vectorize)
    +-- PipelineError                (fatal ingestion failure -> document failed)
    +-- FetchError                   (web page could not be retrieved)
    +-- DimensionMismatchError       (vectors of different lengths compared)
    +-- ChatError                    (chat turn could not be answered)
    +-- DocumentNotFoundError        (lookup or write against a missing document)
    +-- InvalidStatusTransitionError (status change not allowed by lifecycle)
    +-- ConfigurationError           (startup / missing config)

Recoverable kinds (ExtractionError, VectorizationError, DimensionMismatchError,
FetchError on non-seed pages) are caught close to where they are raised.
The rest propagate to the API layer, which maps them to HTTP statuses.
"""

from __future__ import annotations


class NeuralDocError(Exception):
    """Base exception for all NeuralDoc errors.

    ``__str__`` prefixes the provider name in brackets for log output,
    e.g. ``[tesseract] OCR binary not found``.  ``message`` is the bare
    text, suitable for API error bodies.
    """

    default_message = "An unexpected error occurred"

    def __init__(self, message: str | None = None, provider_name: str | None = None) -> None:
        self._message = message or self.default_message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------

class InputValidationError(NeuralDocError):
    """Caller-supplied input was rejected (file, URL, message)."""

    default_message = "Invalid input"


# ---------------------------------------------------------------------------
# Ingestion errors
# ---------------------------------------------------------------------------

class ExtractionError(NeuralDocError):
    """A format parser could not produce text from a file."""

    default_message = "Text extraction failed"


class VectorizationError(NeuralDocError):
    """A chunk of text could not be converted to a vector."""

    default_message = "Vectorization failed"


class PipelineError(NeuralDocError):
    """An ingestion run cannot continue.

    The orchestrator catches this at the task boundary and moves the
    document to ``failed``.
    """

    default_message = "Ingestion pipeline error"


class FetchError(NeuralDocError):
    """A web page could not be fetched or decoded."""

    default_message = "Page fetch failed"


# ---------------------------------------------------------------------------
# Retrieval errors
# ---------------------------------------------------------------------------

class DimensionMismatchError(NeuralDocError):
    """Two vectors of different dimensionality were compared."""

    default_message = "Vector dimensions do not match"


class ChatError(NeuralDocError):
    """A chat turn failed before its messages were persisted."""

    default_message = "Chat processing failed"


# ---------------------------------------------------------------------------
# Repository errors
# ---------------------------------------------------------------------------

class DocumentNotFoundError(NeuralDocError):
    """An operation targeted a document that does not exist."""

    default_message = "Document not found"


class InvalidStatusTransitionError(NeuralDocError):
    """A document status change violates the lifecycle."""

    default_message = "Invalid document status transition"


# ---------------------------------------------------------------------------
# Startup errors
# ---------------------------------------------------------------------------

class ConfigurationError(NeuralDocError):
    """Required configuration is missing or invalid at startup."""

    default_message = "Configuration error"
