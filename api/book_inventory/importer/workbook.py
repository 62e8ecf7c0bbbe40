# -*- coding: utf-8 -*-
"""
Tabular upload -> header row + data rows of Cells.

Supports:
  .xlsx          pandas.read_excel (openpyxl), first sheet
  .xls           pandas.read_excel (xlrd), first sheet
  .csv           encoding auto-detect + delimiter sniffing (; , tab)

Row numbers are 1-based sheet rows, the header row included, so they match
what the user sees in the spreadsheet application.
"""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd

from book_inventory.errors import WorkbookError
from book_inventory.importer.cells import Cell

logger = logging.getLogger(__name__)

EXCEL_ENGINES = {".xlsx": "openpyxl", ".xls": "xlrd"}
SUPPORTED_SUFFIXES = (".xlsx", ".xls", ".csv")


@dataclass
class Sheet:
    headers: List[str]
    header_row_number: int = 1
    rows: List[Tuple[int, List[Cell]]] = field(default_factory=list)

    @property
    def data_row_count(self) -> int:
        return sum(1 for _, cells in self.rows if not all(c.is_empty for c in cells))


# ============================================================================
# Format detection
# ============================================================================

def detect_suffix(content: bytes, filename: Optional[str]) -> str:
    suffix = Path(filename or "").suffix.lower()
    if suffix in SUPPORTED_SUFFIXES:
        return suffix
    if suffix:
        raise WorkbookError(f"Unsupported file type '{suffix}'. Expected .xlsx, .xls or .csv.")
    # no name: sniff magic bytes
    if content[:2] == b"PK":
        return ".xlsx"
    if content[:4] == b"\xd0\xcf\x11\xe0":
        return ".xls"
    return ".csv"


def _decode_bytes_auto(b: bytes) -> str:
    for encoding in ("utf-8-sig", "cp1252"):
        try:
            return b.decode(encoding)
        except UnicodeDecodeError:
            continue
    return b.decode("latin-1")


def _detect_delimiter(line: str) -> str:
    counts = {';': line.count(';'), '\t': line.count('\t'), ',': line.count(',')}
    delim = max(counts, key=lambda k: counts[k])
    return delim if counts[delim] > 0 else ';'


# ============================================================================
# Readers
# ============================================================================

def _raw_rows_excel(content: bytes, suffix: str) -> List[List[object]]:
    try:
        df = pd.read_excel(
            io.BytesIO(content),
            sheet_name=0,
            header=None,
            dtype=object,
            engine=EXCEL_ENGINES[suffix],
        )
    except Exception as e:
        logger.warning("Failed to read workbook: %s", e)
        raise WorkbookError(f"The workbook could not be read: {e}") from e
    logger.info("Loaded workbook with %s rows, %s columns", df.shape[0], df.shape[1])
    return df.values.tolist()


def _raw_rows_csv(content: bytes) -> List[List[object]]:
    text = _decode_bytes_auto(content)
    first_line = next((ln for ln in text.splitlines() if ln.strip()), "")
    delim = _detect_delimiter(first_line)
    try:
        return [list(row) for row in csv.reader(io.StringIO(text), delimiter=delim)]
    except csv.Error as e:
        raise WorkbookError(f"The CSV file could not be read: {e}") from e


def read_sheet(content: bytes, filename: Optional[str] = None) -> Sheet:
    """
    Parse an uploaded file into a Sheet.

    The first non-blank row is the header row. Raises WorkbookError when the
    file cannot be read or has no header row.
    """
    if not content:
        raise WorkbookError("The file is empty.")

    suffix = detect_suffix(content, filename)
    if suffix == ".csv":
        raw_rows = _raw_rows_csv(content)
    else:
        raw_rows = _raw_rows_excel(content, suffix)

    sheet: Optional[Sheet] = None
    for row_number, raw in enumerate(raw_rows, start=1):
        cells = [Cell.of(v) for v in raw]
        if sheet is None:
            if all(c.is_empty for c in cells):
                continue
            sheet = Sheet(headers=[c.as_text() for c in cells], header_row_number=row_number)
            continue
        sheet.rows.append((row_number, cells))

    if sheet is None:
        raise WorkbookError("The sheet is empty or has no header row.")
    return sheet
