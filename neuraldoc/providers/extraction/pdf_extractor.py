"""PDF text extractor backed by PyMuPDF (fitz).

Reads the PDF page by page and joins the page texts with blank lines.
Scanned PDFs without a text layer yield little or no text; anything at or
below ``_MIN_TEXT_LENGTH`` characters is treated as a failed extraction
and replaced by a placeholder naming the file size.
"""

from __future__ import annotations

import asyncio

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from neuraldoc.interfaces.text_extractor import ITextExtractor, file_size

logger = structlog.get_logger(logger_name=__name__)

_MIN_TEXT_LENGTH = 50


class PDFExtractor(ITextExtractor):
    """Extracts the text layer of PDF files."""

    mime_types = frozenset({"application/pdf"})
    extensions = frozenset({".pdf"})

    async def extract(self, path: str, mime_type: str, display_name: str) -> str:
        try:
            text = await asyncio.to_thread(self._read_pages, path)
        except Exception as exc:
            logger.warning("pdf_extraction_failed", file=display_name, error=str(exc))
            return self.placeholder(path)

        if len(text.strip()) <= _MIN_TEXT_LENGTH:
            logger.warning("pdf_no_text_layer", file=display_name, chars=len(text.strip()))
            return self.placeholder(path)

        logger.info("pdf_extracted", file=display_name, chars=len(text))
        return text

    def get_provider_name(self) -> str:
        return "pymupdf"

    @staticmethod
    def placeholder(path: str) -> str:
        return (
            f"PDF document ({file_size(path)} bytes). "
            "Content extraction requires additional processing."
        )

    @staticmethod
    def _read_pages(path: str) -> str:
        doc = fitz.open(path)
        try:
            pages = [page.get_text("text") for page in doc]
        finally:
            doc.close()
        return "\n\n".join(page.strip() for page in pages if page.strip())
