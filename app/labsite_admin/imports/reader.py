from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import PurePath
from typing import Any

import pandas as pd

from labsite_admin.core.defaults import ACCEPTED_IMPORT_EXTENSIONS
from labsite_admin.core.errors import ParseError, UnsupportedFileTypeError

LOGGER = logging.getLogger(__name__)

UNSUPPORTED_FILE_MESSAGE = "Select an Excel file (.xlsx or .xls)."
PARSE_FAILED_MESSAGE = "File parsing failed. Check that the file is a valid Excel workbook."

CellValue = Any
Grid = list[list[CellValue]]


@dataclass(frozen=True)
class Worksheet:
    name: str
    grid: Grid = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.grid)

    @property
    def column_count(self) -> int:
        return max((len(row) for row in self.grid), default=0)

    @property
    def headers(self) -> list[str]:
        if not self.grid:
            return []
        return [str(value).strip() for value in self.grid[0] if not is_blank(value)]

    @property
    def has_headers(self) -> bool:
        if not self.grid:
            return False
        return any(isinstance(value, str) and value.strip() for value in self.grid[0])


@dataclass(frozen=True)
class ParseResult:
    source_file_name: str
    worksheets: list[Worksheet]

    @property
    def worksheet_names(self) -> list[str]:
        return [sheet.name for sheet in self.worksheets]

    @property
    def is_single_sheet(self) -> bool:
        return len(self.worksheets) == 1

    def worksheet(self, name: str) -> Worksheet:
        for sheet in self.worksheets:
            if sheet.name == name:
                return sheet
        raise KeyError(name)


def is_blank(value: CellValue) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def file_extension(file_name: str) -> str:
    return PurePath(str(file_name or "").strip()).suffix.lower()


def is_accepted_file_name(file_name: str) -> bool:
    return file_extension(file_name) in ACCEPTED_IMPORT_EXTENSIONS


def ensure_accepted_file_name(file_name: str) -> None:
    if not is_accepted_file_name(file_name):
        raise UnsupportedFileTypeError(UNSUPPORTED_FILE_MESSAGE)


def _cell_value(value: Any) -> CellValue:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if hasattr(value, "item") and not isinstance(value, (str, bytes, datetime)):
        # numpy scalar
        return value.item()
    return value


def _frame_to_grid(frame: pd.DataFrame) -> Grid:
    grid: Grid = []
    for row in frame.itertuples(index=False, name=None):
        grid.append([_cell_value(value) for value in row])
    return grid


def _engine_for(file_name: str) -> str | None:
    extension = file_extension(file_name)
    if extension == ".xlsx":
        return "openpyxl"
    if extension == ".xls":
        return "xlrd"
    return None


def read_workbook(file_name: str, raw_bytes: bytes) -> ParseResult:
    """Decode an uploaded workbook into one raw grid per sheet, in file order.

    No header row is assumed and no row limit applies. Only empty cells are
    treated as blanks so literal values such as ``NA`` are kept verbatim.
    """
    ensure_accepted_file_name(file_name)
    if not raw_bytes:
        raise ParseError("Uploaded file is empty.")

    worksheets: list[Worksheet] = []
    try:
        with pd.ExcelFile(io.BytesIO(raw_bytes), engine=_engine_for(file_name)) as workbook:
            for sheet_name in workbook.sheet_names:
                frame = workbook.parse(
                    sheet_name,
                    header=None,
                    dtype=object,
                    keep_default_na=False,
                    na_values=[""],
                )
                worksheets.append(Worksheet(name=str(sheet_name), grid=_frame_to_grid(frame)))
    except Exception as exc:
        LOGGER.warning(
            "Workbook parse failed. file=%s error=%s",
            file_name,
            exc,
            extra={"event": "workbook_parse_failed", "file_name": str(file_name)},
        )
        raise ParseError(PARSE_FAILED_MESSAGE) from exc

    if not worksheets:
        raise ParseError("Workbook does not contain any worksheets.")
    return ParseResult(source_file_name=str(file_name), worksheets=worksheets)
