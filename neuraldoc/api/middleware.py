"""API middleware: CORS setup plus request logging and error handling.

Starlette middleware is a stack (last added, first executed).  In
``main.py`` the error handler is added first and the request logger
second, so a request flows::

    Client → RequestLogging → ErrorHandling → route handler

and the logger sees the final status code even when the error handler
replaced an exception with a JSON error body.

Each request gets a short id, bound into structlog's context variables for
the duration of the request and echoed in the ``X-Request-ID`` header, so
every log line a request produces can be correlated.  Ingestion tasks
spawned by a request copy the context at creation and keep the id.
"""

from __future__ import annotations

import time
import uuid

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from neuraldoc.api.schemas import ErrorResponse
from neuraldoc.utils.errors import DocumentNotFoundError, InputValidationError, NeuralDocError
from neuraldoc.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Most specific first; anything else derived from NeuralDocError is a 500.
_STATUS_BY_ERROR: tuple[tuple[type[NeuralDocError], int], ...] = (
    (InputValidationError, 400),
    (DocumentNotFoundError, 404),
)


def status_for(exc: NeuralDocError) -> int:
    """HTTP status code for a domain error."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 500


def configure_cors(app: FastAPI, *, allowed_origins: list[str] | None = None) -> None:
    """Allow browser clients; every origin unless *allowed_origins* is given."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log one ``http_request`` line for it.

    Health checks are logged at DEBUG since load balancers poll them.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        path = request.url.path
        started = time.perf_counter()
        status_code = 500

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
                status_code = response.status_code
                response.headers[REQUEST_ID_HEADER] = request_id
                return response
            finally:
                log = _logger.debug if path.endswith("/health") else _logger.info
                log(
                    "http_request",
                    method=request.method,
                    path=path,
                    status=status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn escaped :class:`NeuralDocError` into ``{error, detail}`` JSON.

    Client errors log at WARNING, server errors at ERROR.  The body carries
    the error class name and its bare message, never the provider prefix.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except NeuralDocError as exc:
            status_code = status_for(exc)
            log = _logger.warning if status_code < 500 else _logger.error
            log(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=request.url.path,
                status=status_code,
            )
            body = ErrorResponse(error=type(exc).__name__, detail=exc.message)
            return JSONResponse(status_code=status_code, content=body.model_dump())
