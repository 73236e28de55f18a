"""Extraction dispatcher: routes a file to the right text extractor.

Holds a priority-ordered list of :class:`ITextExtractor` providers and hands
each file to the first one whose ``supports()`` accepts it.  An extractor
accepts a file when its MIME type matches or, failing that, when its
extension matches.  The extension is consulted for every MIME type, not
only generic ones: ``application/octet-stream`` plus ``report.pdf`` and
``text/plain`` plus ``notes.pdf`` both reach the PDF extractor.

The upload gate, :meth:`ExtractionService.is_supported`, is stricter: a
declared MIME type must be a supported one, and only an empty or generic
type lets the extension vouch for the file.

Extraction never fails the pipeline: providers return placeholder text on
parse errors, and anything a provider lets slip through is converted into
an :class:`ExtractionError`, logged, and replaced with a generic
placeholder.
"""

from __future__ import annotations

from pathlib import Path

from neuraldoc.interfaces.text_extractor import ITextExtractor, file_size
from neuraldoc.providers.extraction import (
    DocxExtractor,
    ImageExtractor,
    PDFExtractor,
    PlainTextExtractor,
    SpreadsheetExtractor,
)
from neuraldoc.utils.errors import ExtractionError
from neuraldoc.utils.logging import get_logger

# MIME types accepted for upload.
SUPPORTED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
        "text/csv",
        "application/csv",
        "text/comma-separated-values",
        "text/plain",
        "image/jpeg",
        "image/jpg",
        "image/png",
    }
)

# MIME types that say nothing about the format; the extension decides.
GENERIC_MIME_TYPES = frozenset({"", "application/octet-stream"})

SUPPORTED_EXTENSIONS = frozenset(
    {".pdf", ".docx", ".xlsx", ".xls", ".csv", ".txt", ".jpg", ".jpeg", ".png"}
)


def default_extractors() -> list[ITextExtractor]:
    """Build the standard extractor table in routing priority order."""
    return [
        PDFExtractor(),
        DocxExtractor(),
        SpreadsheetExtractor(),
        PlainTextExtractor.for_csv(),
        ImageExtractor(),
        PlainTextExtractor(catch_all=True),
    ]


class ExtractionService:
    """Dispatches files to format extractors.

    Parameters
    ----------
    extractors:
        Providers in priority order.  The last one should accept every file;
        when none matches, an :class:`ExtractionError` placeholder is used.
    """

    def __init__(self, extractors: list[ITextExtractor] | None = None) -> None:
        self._extractors = extractors if extractors is not None else default_extractors()
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @staticmethod
    def is_supported(mime_type: str | None, display_name: str) -> bool:
        """Return ``True`` if the file may enter the ingestion pipeline.

        A declared MIME type must be in :data:`SUPPORTED_MIME_TYPES`.  For
        absent or generic MIME types the extension must be a known one.
        """
        mime = (mime_type or "").split(";")[0].strip().lower()
        if mime in SUPPORTED_MIME_TYPES:
            return True
        if mime in GENERIC_MIME_TYPES:
            return Path(display_name).suffix.lower() in SUPPORTED_EXTENSIONS
        return False

    def select(self, mime_type: str, display_name: str) -> ITextExtractor | None:
        """Return the first extractor that accepts the file, if any."""
        mime = (mime_type or "").split(";")[0].strip().lower()
        for extractor in self._extractors:
            if extractor.supports(mime, display_name):
                return extractor
        return None

    async def extract(self, path: str, mime_type: str, display_name: str) -> str:
        """Extract text from *path*; never raises for parse failures.

        Parameters
        ----------
        path:
            File location on disk.
        mime_type:
            Declared MIME type (may be empty or generic).
        display_name:
            User-facing file name for extension fallback and logging.

        Returns
        -------
        str
            Extracted text or a descriptive placeholder.
        """
        extractor = self.select(mime_type, display_name)
        try:
            if extractor is None:
                raise ExtractionError(message=f"No extractor accepts {display_name!r} ({mime_type})")
            self._logger.info(
                "extraction_started",
                file=display_name,
                mime_type=mime_type,
                extractor=extractor.get_provider_name(),
            )
            try:
                return await extractor.extract(path, mime_type, display_name)
            except Exception as exc:
                raise ExtractionError(
                    message=str(exc), provider_name=extractor.get_provider_name()
                ) from exc
        except ExtractionError as exc:
            self._logger.error("extraction_failed", file=display_name, error=str(exc))
            return f"Document ({file_size(path)} bytes). Text extraction failed."

    @property
    def extractors(self) -> list[ITextExtractor]:
        return list(self._extractors)
