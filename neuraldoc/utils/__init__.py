"""Utility modules for NeuralDoc.

- **errors** -- Domain exception hierarchy rooted at NeuralDocError; each
  pipeline stage raises its own subclass so callers can handle failures
  at the right level.
- **concurrency** -- asyncio semaphore throttling and batching helpers used
  by the ingestion orchestrator and the web crawler.
- **logging** -- structlog setup with coloured console output in development
  and structured JSON in production.
"""

from neuraldoc.utils.concurrency import batched, throttled_gather
from neuraldoc.utils.errors import (
    ChatError,
    ConfigurationError,
    DimensionMismatchError,
    DocumentNotFoundError,
    ExtractionError,
    FetchError,
    InputValidationError,
    InvalidStatusTransitionError,
    NeuralDocError,
    PipelineError,
    VectorizationError,
)
from neuraldoc.utils.logging import configure_logging, get_logger

__all__ = [
    "ChatError",
    "ConfigurationError",
    "DimensionMismatchError",
    "DocumentNotFoundError",
    "ExtractionError",
    "FetchError",
    "InputValidationError",
    "InvalidStatusTransitionError",
    "NeuralDocError",
    "PipelineError",
    "VectorizationError",
    "batched",
    "configure_logging",
    "get_logger",
    "throttled_gather",
]
