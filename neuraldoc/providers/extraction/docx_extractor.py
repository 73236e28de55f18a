"""DOCX text extractor backed by python-docx.

Collects paragraph text in document order, followed by table rows with
cells joined by ``" | "``.  Files python-docx cannot open produce a
placeholder carrying the first kilobyte of the raw bytes.
"""

from __future__ import annotations

import asyncio

import docx
import structlog

from neuraldoc.interfaces.text_extractor import ITextExtractor, file_size

logger = structlog.get_logger(logger_name=__name__)

_RAW_PREVIEW_BYTES = 1000


class DocxExtractor(ITextExtractor):
    """Extracts paragraphs and table text from Word documents."""

    mime_types = frozenset(
        {"application/vnd.openxmlformats-officedocument.wordprocessingml.document"}
    )
    extensions = frozenset({".docx"})

    async def extract(self, path: str, mime_type: str, display_name: str) -> str:
        try:
            text = await asyncio.to_thread(self._read_docx, path)
        except Exception as exc:
            logger.warning("docx_extraction_failed", file=display_name, error=str(exc))
            return await asyncio.to_thread(self.placeholder, path)

        logger.info("docx_extracted", file=display_name, chars=len(text))
        return text

    def get_provider_name(self) -> str:
        return "python-docx"

    @staticmethod
    def placeholder(path: str) -> str:
        try:
            with open(path, "rb") as fh:
                preview = fh.read(_RAW_PREVIEW_BYTES).decode("utf-8", errors="replace")
        except OSError:
            preview = ""
        return f"DOCX document ({file_size(path)} bytes). Content: {preview}"

    @staticmethod
    def _read_docx(path: str) -> str:
        document = docx.Document(path)
        lines = [para.text for para in document.paragraphs if para.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells]
                if any(cells):
                    lines.append(" | ".join(cells))
        return "\n".join(lines)
