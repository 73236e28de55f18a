"""NeuralDoc FastAPI application entry point.

Wires together providers, services and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and
configures structured logging.  :func:`build_components` is also used by
the CLI so both surfaces run the same object graph.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from neuraldoc import __version__
from neuraldoc.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from neuraldoc.api.routes import router as api_router
from neuraldoc.config.loader import load_config, load_vocabulary
from neuraldoc.config.settings import Settings
from neuraldoc.interfaces.document_repository import IDocumentRepository
from neuraldoc.providers.embedding.hash_embedding_provider import HashEmbeddingProvider
from neuraldoc.providers.fetcher.httpx_page_fetcher import HttpxPageFetcher
from neuraldoc.providers.repository.memory_repository import InMemoryDocumentRepository
from neuraldoc.providers.repository.sqlite_repository import SQLiteDocumentRepository
from neuraldoc.services.chat_service import ChatService
from neuraldoc.services.extraction_service import ExtractionService
from neuraldoc.services.ingestion.chunker import TextChunker
from neuraldoc.services.ingestion.ingestion_service import IngestionService
from neuraldoc.services.ingestion.web_crawler import WebCrawler
from neuraldoc.services.response_composer import ResponseComposer
from neuraldoc.services.retrieval_augmenter import RetrievalAugmenter
from neuraldoc.utils.errors import ConfigurationError
from neuraldoc.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def _build_repository(app_settings: Settings) -> IDocumentRepository:
    backend = app_settings.repository_backend.lower()
    if backend == "memory":
        return InMemoryDocumentRepository(max_chat_messages=app_settings.chat_history_limit)
    if backend == "sqlite":
        Path(app_settings.sqlite_db_path).parent.mkdir(parents=True, exist_ok=True)
        return SQLiteDocumentRepository(
            db_path=app_settings.sqlite_db_path,
            max_chat_messages=app_settings.chat_history_limit,
        )
    raise ConfigurationError(
        message=f"Unknown repository backend: {app_settings.repository_backend!r}"
    )


def build_components(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service.

    Each call returns a fresh object graph with its own repository, so two
    apps (or a test and an app) never share state.

    Returns
    -------
    dict
        Keys become attributes of ``app.state``.
    """
    config = load_config(settings=app_settings)
    vocabulary = load_vocabulary(config)

    repository = _build_repository(app_settings)
    embedding_provider = HashEmbeddingProvider(dimension=app_settings.embedding_dimension)
    extraction_service = ExtractionService()
    chunker = TextChunker(max_size=app_settings.chunk_max_size)

    page_fetcher = HttpxPageFetcher(
        timeout=app_settings.fetch_timeout_seconds,
        user_agent=app_settings.crawl_user_agent,
    )
    crawler = WebCrawler(
        fetcher=page_fetcher,
        max_pages=app_settings.crawl_max_pages,
        concurrency=app_settings.crawl_fetch_concurrency,
    )

    ingestion_service = IngestionService(
        repository=repository,
        extraction_service=extraction_service,
        chunker=chunker,
        embedding_provider=embedding_provider,
        crawler=crawler,
        file_batch_concurrency=app_settings.file_batch_concurrency,
        url_batch_concurrency=app_settings.url_batch_concurrency,
    )

    augmenter = RetrievalAugmenter(
        vocabulary=vocabulary,
        semantic_top_k=app_settings.semantic_top_k,
        context_top_k=app_settings.context_top_k,
        max_context_chunks=app_settings.max_context_chunks,
        max_keyword_matches=app_settings.max_keyword_matches,
        keyword_match_similarity=app_settings.keyword_match_similarity,
    )
    chat_service = ChatService(
        repository=repository,
        embedding_provider=embedding_provider,
        augmenter=augmenter,
        composer=ResponseComposer(max_excerpts=app_settings.response_excerpts),
        history_window=app_settings.chat_context_window,
        max_sources=app_settings.max_sources,
    )

    return {
        "settings": app_settings,
        "config": config,
        "repository": repository,
        "embedding_provider": embedding_provider,
        "extraction_service": extraction_service,
        "page_fetcher": page_fetcher,
        "crawler": crawler,
        "ingestion_service": ingestion_service,
        "chat_service": chat_service,
    }


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Build all components on startup, drain ingestion and close clients on shutdown."""
    app_settings: Settings = application.state.settings
    components = build_components(app_settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["repository"].initialize()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=app_settings.app_env,
        repository=components["repository"].get_provider_name(),
        embedding_provider=components["embedding_provider"].get_provider_name(),
    )

    yield

    await components["ingestion_service"].shutdown()
    await components["page_fetcher"].close()
    _logger.info("app_shutdown", message="Ingestion drained, HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="NeuralDoc API",
        version=__version__,
        description=(
            "Upload documents or crawl web pages, then ask questions answered "
            "from the stored text with hybrid semantic and keyword retrieval."
        ),
        lifespan=_lifespan,
    )
    application.state.settings = app_settings or settings

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "neuraldoc.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
