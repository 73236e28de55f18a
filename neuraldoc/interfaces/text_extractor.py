"""Abstract base class for format-specific text extractors.

Each extractor wraps one parsing library (PyMuPDF, python-docx, pandas,
Tesseract, ...) and turns a file on disk into plain text.  Extractors never
let a parse failure escape: they return a short placeholder describing the
file instead, so ingestion always has some text to chunk.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from pathlib import Path


class ITextExtractor(ABC):
    """Contract for turning one family of file formats into text."""

    # MIME types handled by this extractor (exact, lower-case).
    mime_types: frozenset[str] = frozenset()
    # File extensions handled by this extractor, with leading dot.
    extensions: frozenset[str] = frozenset()

    def supports(self, mime_type: str, display_name: str) -> bool:
        """Return ``True`` if this extractor should handle the file.

        A declared MIME type in :attr:`mime_types` matches outright.
        Otherwise the extension of *display_name* decides, whatever the MIME
        type says, so ``text/plain`` plus ``notes.pdf`` is a PDF here.
        Which MIME types may enter the pipeline at all is decided earlier,
        by ``ExtractionService.is_supported``.
        """
        if mime_type and mime_type.lower() in self.mime_types:
            return True
        return Path(display_name).suffix.lower() in self.extensions

    @abstractmethod
    async def extract(self, path: str, mime_type: str, display_name: str) -> str:
        """Extract text from the file at *path*.

        Parameters
        ----------
        path:
            Location of the file on disk.
        mime_type:
            Declared MIME type (may be empty or generic).
        display_name:
            The user-facing file name, used for extension fallback and logs.

        Returns
        -------
        str
            Extracted text, or a placeholder when parsing failed.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the name of the wrapped library, e.g. ``"pymupdf"``."""


def file_size(path: str) -> int:
    """Size of *path* in bytes, or 0 when it cannot be read."""
    try:
        return os.path.getsize(path)
    except OSError:
        return 0
