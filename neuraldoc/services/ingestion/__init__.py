"""Ingestion pipeline: chunking, crawling and the orchestrating service."""

from neuraldoc.services.ingestion.chunker import TextChunker
from neuraldoc.services.ingestion.ingestion_service import IngestionService, validate_url
from neuraldoc.services.ingestion.web_crawler import WebCrawler

__all__ = ["IngestionService", "TextChunker", "WebCrawler", "validate_url"]
