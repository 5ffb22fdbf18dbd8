from __future__ import annotations

import sys
from pathlib import Path

import pytest

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from labsite_admin.core.errors import WorksheetSelectionError  # noqa: E402
from labsite_admin.imports.picker import NO_SELECTION_MESSAGE, WorksheetPicker  # noqa: E402
from labsite_admin.imports.reader import ParseResult, Worksheet  # noqa: E402


def _result() -> ParseResult:
    wide_header = [f"col{index}" for index in range(9)]
    return ParseResult(
        source_file_name="roster.xlsx",
        worksheets=[
            Worksheet("2023", [["姓名", "学位"], ["张三", "硕士"]]),
            Worksheet("2024", [wide_header] + [[str(row)] * 9 for row in range(250)]),
            Worksheet("notes", [[1, 2], [3, 4]]),
        ],
    )


def test_defaults_to_first_worksheet() -> None:
    picker = WorksheetPicker(_result())

    assert picker.selected == "2023"
    assert picker.confirm().name == "2023"


def test_select_changes_choice_and_rejects_unknown_names() -> None:
    picker = WorksheetPicker(_result())

    picker.select("2024")
    assert picker.confirm().name == "2024"

    with pytest.raises(WorksheetSelectionError):
        picker.select("2025")
    assert picker.selected == "2024"


def test_confirm_without_selection_is_rejected() -> None:
    picker = WorksheetPicker(_result())
    picker.clear_selection()

    with pytest.raises(WorksheetSelectionError, match=NO_SELECTION_MESSAGE):
        picker.confirm()


def test_preview_is_capped_and_says_so() -> None:
    picker = WorksheetPicker(_result(), preview_row_limit=100)
    picker.select("2024")

    preview = picker.preview()

    assert len(preview["rows"]) == 100
    assert preview["row_count"] == 251
    assert preview["truncated"] is True
    assert preview["limit"] == 100


def test_preview_limit_zero_shows_every_row() -> None:
    picker = WorksheetPicker(_result(), preview_row_limit=0)
    picker.select("2024")

    preview = picker.preview()

    assert len(preview["rows"]) == 251
    assert preview["truncated"] is False


def test_summaries_list_first_six_headers_and_remaining_count() -> None:
    summaries = {item["name"]: item for item in WorksheetPicker(_result()).summaries()}

    wide = summaries["2024"]
    assert wide["headers"] == ["col0", "col1", "col2", "col3", "col4", "col5"]
    assert wide["more_headers"] == 3
    assert wide["column_count"] == 9
    assert summaries["2023"]["selected"] is True
    assert summaries["notes"]["has_headers"] is False


def test_cancel_discards_parse_result() -> None:
    picker = WorksheetPicker(_result())

    picker.cancel()

    assert picker.is_open is False
    with pytest.raises(WorksheetSelectionError):
        picker.confirm()


def test_snapshot_round_trip_keeps_selection() -> None:
    picker = WorksheetPicker(_result(), preview_row_limit=5)
    picker.select("notes")

    restored = WorksheetPicker.from_snapshot(picker.snapshot())

    assert restored.selected == "notes"
    assert restored.preview_row_limit == 5
    assert restored.confirm().grid == [[1, 2], [3, 4]]
