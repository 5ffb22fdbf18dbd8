from __future__ import annotations

import io
import re
from collections.abc import Sequence
from pathlib import PurePath
from typing import Any

import pandas as pd

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_CONTENT_TYPE = "application/vnd.ms-excel"

_INVALID_SHEET_TITLE_CHARS = re.compile(r"[\[\]:*?/\\]")
_MAX_SHEET_TITLE_LENGTH = 31


def safe_sheet_title(name: str) -> str:
    cleaned = _INVALID_SHEET_TITLE_CHARS.sub("_", str(name or "")).strip().strip("'")
    return cleaned[:_MAX_SHEET_TITLE_LENGTH] or "Sheet1"


def single_sheet_file_name(source_file_name: str) -> str:
    stem = PurePath(str(source_file_name or "").strip()).stem or "import"
    return f"{stem}.xlsx"


def content_type_for(file_name: str) -> str:
    if PurePath(str(file_name or "")).suffix.lower() == ".xls":
        return XLS_CONTENT_TYPE
    return XLSX_CONTENT_TYPE


def serialize_worksheet(grid: Sequence[Sequence[Any]], sheet_name: str) -> bytes:
    """Write exactly one sheet holding ``grid`` as-is (no header row, no index).

    Workbooks carry no width for empty cells, so trailing columns or rows that
    are blank throughout come back trimmed when the bytes are read again. Grids
    produced by ``read_workbook`` never end in such columns and round-trip
    unchanged.
    """
    frame = pd.DataFrame([list(row) for row in grid])
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=safe_sheet_title(sheet_name), header=False, index=False)
    return buffer.getvalue()
