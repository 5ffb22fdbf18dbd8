from __future__ import annotations

import sys
from pathlib import Path

import pytest

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from fakes import build_workbook  # noqa: E402
from labsite_admin.core.errors import ParseError, UnsupportedFileTypeError  # noqa: E402
from labsite_admin.imports.reader import (  # noqa: E402
    PARSE_FAILED_MESSAGE,
    is_accepted_file_name,
    read_workbook,
)


def test_reads_every_sheet_in_file_order() -> None:
    raw = build_workbook(
        {
            "2023": [["姓名", "学位"], ["张三", "硕士"]],
            "2024": [["姓名", "学位"], ["李四", "博士"], ["王五", "硕士"]],
        }
    )

    result = read_workbook("roster.xlsx", raw)

    assert result.source_file_name == "roster.xlsx"
    assert result.worksheet_names == ["2023", "2024"]
    assert result.is_single_sheet is False
    assert result.worksheet("2024").grid == [["姓名", "学位"], ["李四", "博士"], ["王五", "硕士"]]


def test_keeps_literal_na_text_and_maps_blanks_to_none() -> None:
    raw = build_workbook({"Sheet1": [["name", "remarks"], ["Ann", "NA"], ["Bo", None]]})

    sheet = read_workbook("awards.xlsx", raw).worksheets[0]

    assert sheet.grid[1] == ["Ann", "NA"]
    assert sheet.grid[2] == ["Bo", None]


def test_numbers_come_back_as_python_values() -> None:
    raw = build_workbook({"Sheet1": [["序号", "获奖人员"], [1, "Ann"], [2, "Bo"]]})

    sheet = read_workbook("awards.xlsx", raw).worksheets[0]

    assert sheet.grid[1][0] == 1
    assert type(sheet.grid[1][0]) is int
    assert sheet.row_count == 3
    assert sheet.column_count == 2
    assert sheet.has_headers is True
    assert sheet.headers == ["序号", "获奖人员"]


def test_extension_check_is_case_insensitive() -> None:
    assert is_accepted_file_name("ROSTER.XLSX") is True
    assert is_accepted_file_name("legacy.xls") is True
    assert is_accepted_file_name("report.pdf") is False
    assert is_accepted_file_name("xlsx") is False


def test_unsupported_extension_is_rejected() -> None:
    with pytest.raises(UnsupportedFileTypeError, match="Select an Excel file"):
        read_workbook("report.pdf", b"%PDF-1.7")


def test_corrupt_workbook_raises_parse_error() -> None:
    with pytest.raises(ParseError) as exc_info:
        read_workbook("broken.xlsx", b"this is not a zip archive")

    assert str(exc_info.value) == PARSE_FAILED_MESSAGE
    assert exc_info.value.__cause__ is not None


def test_empty_upload_raises_parse_error() -> None:
    with pytest.raises(ParseError):
        read_workbook("empty.xlsx", b"")
