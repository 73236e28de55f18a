"""NeuralDoc API layer: routes, schemas and middleware."""

from neuraldoc.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from neuraldoc.api.routes import router
from neuraldoc.api.schemas import (
    ErrorResponse,
    ExtractUrlRequest,
    HealthResponse,
    SendMessageRequest,
    SuccessResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "ErrorResponse",
    "ExtractUrlRequest",
    "HealthResponse",
    "SendMessageRequest",
    "SuccessResponse",
]
