"""Format-specific text extractors.

Listed in routing priority order (first match wins):
    1. PDFExtractor          - PyMuPDF text layer
    2. DocxExtractor         - python-docx paragraphs and tables
    3. SpreadsheetExtractor  - pandas, one section per sheet
    4. PlainTextExtractor    - CSV types
    5. ImageExtractor        - Tesseract OCR via pytesseract
    6. PlainTextExtractor    - text/plain and the catch-all for everything else
"""

from neuraldoc.providers.extraction.docx_extractor import DocxExtractor
from neuraldoc.providers.extraction.image_extractor import ImageExtractor
from neuraldoc.providers.extraction.pdf_extractor import PDFExtractor
from neuraldoc.providers.extraction.plain_text_extractor import PlainTextExtractor
from neuraldoc.providers.extraction.spreadsheet_extractor import SpreadsheetExtractor

__all__ = [
    "DocxExtractor",
    "ImageExtractor",
    "PDFExtractor",
    "PlainTextExtractor",
    "SpreadsheetExtractor",
]
