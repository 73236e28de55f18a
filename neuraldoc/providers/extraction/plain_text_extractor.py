"""Plain-text and CSV extractor.

Reads the file as UTF-8 (undecodable bytes are replaced).  The same class
serves two table rows: one bound to CSV types and one catch-all that
accepts any file, so routing always finds an extractor.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from neuraldoc.interfaces.text_extractor import ITextExtractor

logger = structlog.get_logger(logger_name=__name__)

CSV_MIME_TYPES = frozenset({"text/csv", "application/csv", "text/comma-separated-values"})
TEXT_MIME_TYPES = frozenset({"text/plain"})


class PlainTextExtractor(ITextExtractor):
    """Returns the file's text unchanged.

    Parameters
    ----------
    label:
        Format name used in the failure placeholder (``"CSV"``, ``"Text"``).
    mime_types / extensions:
        What this instance matches.
    catch_all:
        Accept every file regardless of type.
    """

    def __init__(
        self,
        label: str = "Text",
        mime_types: frozenset[str] = TEXT_MIME_TYPES,
        extensions: frozenset[str] = frozenset({".txt"}),
        catch_all: bool = False,
    ) -> None:
        self._label = label
        self.mime_types = mime_types
        self.extensions = extensions
        self._catch_all = catch_all

    @classmethod
    def for_csv(cls) -> PlainTextExtractor:
        return cls(label="CSV", mime_types=CSV_MIME_TYPES, extensions=frozenset({".csv"}))

    def supports(self, mime_type: str, display_name: str) -> bool:
        return self._catch_all or super().supports(mime_type, display_name)

    async def extract(self, path: str, mime_type: str, display_name: str) -> str:
        try:
            text = await asyncio.to_thread(
                Path(path).read_text, encoding="utf-8", errors="replace"
            )
        except OSError as exc:
            logger.warning(
                "text_extraction_failed", file=display_name, label=self._label, error=str(exc)
            )
            return f"{self._label} file processing failed: {exc}"

        logger.info("text_extracted", file=display_name, label=self._label, chars=len(text))
        return text

    def get_provider_name(self) -> str:
        return "csv" if self._label == "CSV" else "plaintext"
