"""Spreadsheet text extractor backed by pandas.

Every sheet becomes a section headed ``=== Sheet: <name> ===`` followed by
one line per non-empty row, cells joined with ``" | "``.  pandas picks the
engine from the file (openpyxl for .xlsx, xlrd for legacy .xls).
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pandas as pd
import structlog

from neuraldoc.interfaces.text_extractor import ITextExtractor

logger = structlog.get_logger(logger_name=__name__)


def _cell_text(value: Any) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class SpreadsheetExtractor(ITextExtractor):
    """Extracts sheet contents from Excel workbooks."""

    mime_types = frozenset(
        {
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "application/vnd.ms-excel",
        }
    )
    extensions = frozenset({".xlsx", ".xls"})

    def supports(self, mime_type: str, display_name: str) -> bool:
        # Browsers often label .csv uploads as application/vnd.ms-excel.
        if Path(display_name).suffix.lower() == ".csv":
            return False
        if mime_type and "spreadsheet" in mime_type.lower():
            return True
        return super().supports(mime_type, display_name)

    async def extract(self, path: str, mime_type: str, display_name: str) -> str:
        try:
            text = await asyncio.to_thread(self._read_workbook, path)
        except Exception as exc:
            logger.warning("spreadsheet_extraction_failed", file=display_name, error=str(exc))
            return f"Excel file processing failed: {exc}"

        logger.info("spreadsheet_extracted", file=display_name, chars=len(text))
        return text

    def get_provider_name(self) -> str:
        return "pandas"

    @staticmethod
    def _read_workbook(path: str) -> str:
        parts: list[str] = []
        with pd.ExcelFile(path) as excel:
            for sheet_name in excel.sheet_names:
                frame = excel.parse(sheet_name=sheet_name, header=None, dtype=object)
                parts.append(f"\n\n=== Sheet: {sheet_name} ===\n")
                for row in frame.itertuples(index=False):
                    cells = [_cell_text(value) for value in row]
                    while cells and not cells[-1]:
                        cells.pop()
                    if cells:
                        parts.append(" | ".join(cells) + "\n")
        return "".join(parts)
