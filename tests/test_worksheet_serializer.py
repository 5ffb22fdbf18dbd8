from __future__ import annotations

import sys
from pathlib import Path

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from labsite_admin.imports.reader import read_workbook  # noqa: E402
from labsite_admin.imports.serializer import (  # noqa: E402
    XLS_CONTENT_TYPE,
    XLSX_CONTENT_TYPE,
    content_type_for,
    safe_sheet_title,
    serialize_worksheet,
    single_sheet_file_name,
)


def test_serialized_worksheet_reads_back_to_the_same_grid() -> None:
    grid = [
        ["序号", "姓名", "入学时间", "备注"],
        [1, "张三", "2019-09", "NA"],
        [2, "李四", "2020-09", "transferred"],
    ]

    raw = serialize_worksheet(grid, "2024")
    result = read_workbook("roundtrip.xlsx", raw)

    assert result.worksheet_names == ["2024"]
    assert result.worksheets[0].grid == grid


def test_serialized_workbook_has_exactly_one_sheet_without_header_row() -> None:
    raw = serialize_worksheet([["a", "b"]], "Only")

    result = read_workbook("one.xlsx", raw)

    assert result.is_single_sheet is True
    assert result.worksheets[0].grid == [["a", "b"]]


def test_sheet_titles_follow_excel_rules() -> None:
    assert safe_sheet_title("2023/2024: [final]?") == "2023_2024_ _final__"
    assert len(safe_sheet_title("x" * 50)) == 31
    assert safe_sheet_title("") == "Sheet1"


def test_upload_name_keeps_stem_with_xlsx_extension() -> None:
    assert single_sheet_file_name("roster.xls") == "roster.xlsx"
    assert single_sheet_file_name("毕业生名单.xlsx") == "毕业生名单.xlsx"
    assert single_sheet_file_name("") == "import.xlsx"


def test_content_type_follows_extension() -> None:
    assert content_type_for("roster.xlsx") == XLSX_CONTENT_TYPE
    assert content_type_for("roster.XLS") == XLS_CONTENT_TYPE


def test_inner_blanks_survive_but_trailing_blank_column_is_trimmed() -> None:
    inner = [["a", None, "c"], ["d", "e", None]]
    trailing = [["a", None], ["b", None]]

    assert read_workbook("inner.xlsx", serialize_worksheet(inner, "S")).worksheets[0].grid == inner
    assert read_workbook("trailing.xlsx", serialize_worksheet(trailing, "S")).worksheets[0].grid == [["a"], ["b"]]


def test_reader_output_round_trips() -> None:
    source = serialize_worksheet([["name", None, "year"], ["Li Na", None, 2023]], "S")
    grid = read_workbook("source.xlsx", source).worksheets[0].grid

    again = read_workbook("again.xlsx", serialize_worksheet(grid, "S")).worksheets[0].grid

    assert again == grid
