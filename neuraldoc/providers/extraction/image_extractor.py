"""Image OCR extractor backed by Tesseract via pytesseract.

Images are loaded with Pillow, converted to RGB and passed to Tesseract in
a worker thread.  When the Tesseract binary is missing or the image cannot
be decoded, a placeholder naming the file size is returned.
"""

from __future__ import annotations

import asyncio

import pytesseract
import structlog
from PIL import Image

from neuraldoc.interfaces.text_extractor import ITextExtractor, file_size

logger = structlog.get_logger(logger_name=__name__)


class ImageExtractor(ITextExtractor):
    """Runs OCR over JPEG and PNG images."""

    mime_types = frozenset({"image/jpeg", "image/jpg", "image/png"})
    extensions = frozenset({".jpg", ".jpeg", ".png"})

    def __init__(self, language: str = "eng") -> None:
        self._language = language

    def supports(self, mime_type: str, display_name: str) -> bool:
        if mime_type and mime_type.lower().startswith("image/"):
            return True
        return super().supports(mime_type, display_name)

    async def extract(self, path: str, mime_type: str, display_name: str) -> str:
        try:
            text = await asyncio.to_thread(self._ocr, path)
        except Exception as exc:
            logger.warning("image_ocr_failed", file=display_name, error=str(exc))
            return self.placeholder(path)

        logger.info("image_ocr_complete", file=display_name, chars=len(text))
        return text

    def get_provider_name(self) -> str:
        return "tesseract"

    @staticmethod
    def placeholder(path: str) -> str:
        return f"Image file ({file_size(path)} bytes). OCR processing available."

    def _ocr(self, path: str) -> str:
        with Image.open(path) as image:
            return pytesseract.image_to_string(image.convert("RGB"), lang=self._language)
