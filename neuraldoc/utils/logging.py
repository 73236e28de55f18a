"""Structured logging setup for NeuralDoc using structlog.

Application modules log snake_case events with key-value context
(``document_created``, ``ingestion_batch_stored``, ``crawl_page_failed``).
Every event goes through one processor chain and then a renderer:

* ``ConsoleRenderer`` while developing,
* ``JSONRenderer`` when ``APP_ENV=production`` or ``json_output=True``.

Standard-library records (uvicorn, httpx, aiosqlite) are formatted by the
same chain via ``ProcessorFormatter``.  The chatty client libraries are held
at WARNING so per-request and per-query lines don't drown ingestion logs.

The CLI calls :func:`configure_logging` a second time with
``stream=sys.stderr`` to keep stdout free for command output.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

import structlog

# Third-party loggers that log every request or statement at INFO/DEBUG.
_NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite", "multipart", "PIL")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _pick_renderer(use_json: bool, stream: TextIO) -> structlog.types.Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: TextIO | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and the stdlib root logger.

    Parameters
    ----------
    log_level:
        Minimum level name (``DEBUG``, ``INFO``, ``WARNING``, ``ERROR``).
    json_output:
        Force JSON lines.  Otherwise JSON is used only in production.
    stream:
        Where log lines go; defaults to stdout.

    Returns
    -------
    structlog.BoundLogger
        A logger bound to the new configuration.
    """
    out = stream or sys.stdout
    use_json = json_output or os.environ.get("APP_ENV", "development") == "production"
    level = log_level.upper()

    processors = _shared_processors()
    renderer = _pick_renderer(use_json, out)

    structlog.configure(
        processors=[*processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(out)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *processors,
                renderer,
            ],
        )
    )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a logger named *name*, applying default configuration first if needed."""
    if not structlog.is_configured():
        configure_logging()
    return structlog.get_logger(logger_name=name)
