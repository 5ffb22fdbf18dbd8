from __future__ import annotations

from typing import Any

from labsite_admin.core.defaults import DEFAULT_HEADER_PREVIEW_COUNT, DEFAULT_PREVIEW_ROW_LIMIT
from labsite_admin.core.errors import WorksheetSelectionError
from labsite_admin.imports.reader import ParseResult, Worksheet

NO_SELECTION_MESSAGE = "Select a worksheet to import."


def _json_cell(value: Any) -> Any:
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return value


class WorksheetPicker:
    """Holds a parsed workbook while the user chooses which sheet to import."""

    def __init__(
        self,
        parse_result: ParseResult,
        *,
        preview_row_limit: int = DEFAULT_PREVIEW_ROW_LIMIT,
        selected: str | None = None,
    ) -> None:
        self._result: ParseResult | None = parse_result
        self.preview_row_limit = max(0, int(preview_row_limit))
        names = parse_result.worksheet_names
        if selected is None:
            self.selected: str | None = names[0] if names else None
        else:
            self.selected = selected if selected in names else None

    @property
    def is_open(self) -> bool:
        return self._result is not None

    @property
    def parse_result(self) -> ParseResult:
        if self._result is None:
            raise WorksheetSelectionError("Worksheet selection was cancelled.")
        return self._result

    @property
    def source_file_name(self) -> str:
        return self.parse_result.source_file_name

    def select(self, name: str) -> Worksheet:
        try:
            sheet = self.parse_result.worksheet(str(name))
        except KeyError:
            raise WorksheetSelectionError(f"Worksheet '{name}' does not exist in this file.") from None
        self.selected = sheet.name
        return sheet

    def clear_selection(self) -> None:
        self.selected = None

    def confirm(self) -> Worksheet:
        if not self.selected:
            raise WorksheetSelectionError(NO_SELECTION_MESSAGE)
        return self.parse_result.worksheet(self.selected)

    def cancel(self) -> None:
        self._result = None
        self.selected = None

    def summaries(self) -> list[dict[str, Any]]:
        items = []
        for sheet in self.parse_result.worksheets:
            headers = sheet.headers
            items.append(
                {
                    "name": sheet.name,
                    "row_count": sheet.row_count,
                    "column_count": sheet.column_count,
                    "has_headers": sheet.has_headers,
                    "headers": headers[:DEFAULT_HEADER_PREVIEW_COUNT],
                    "more_headers": max(0, len(headers) - DEFAULT_HEADER_PREVIEW_COUNT),
                    "selected": sheet.name == self.selected,
                }
            )
        return items

    def preview(self) -> dict[str, Any]:
        if not self.selected:
            raise WorksheetSelectionError(NO_SELECTION_MESSAGE)
        sheet = self.parse_result.worksheet(self.selected)
        limit = self.preview_row_limit
        rows = sheet.grid if limit == 0 else sheet.grid[:limit]
        return {
            "sheet": sheet.name,
            "rows": [[_json_cell(value) for value in row] for row in rows],
            "row_count": sheet.row_count,
            "column_count": sheet.column_count,
            "limit": limit,
            "truncated": len(rows) < sheet.row_count,
        }

    def snapshot(self) -> dict[str, Any]:
        result = self.parse_result
        return {
            "source_file_name": result.source_file_name,
            "worksheets": [{"name": sheet.name, "grid": sheet.grid} for sheet in result.worksheets],
            "selected": self.selected,
            "preview_row_limit": self.preview_row_limit,
        }

    @classmethod
    def from_snapshot(cls, payload: dict[str, Any]) -> "WorksheetPicker":
        result = ParseResult(
            source_file_name=str(payload.get("source_file_name") or ""),
            worksheets=[
                Worksheet(name=str(item["name"]), grid=list(item.get("grid") or []))
                for item in payload.get("worksheets") or []
            ],
        )
        picker = cls(
            result,
            preview_row_limit=int(payload.get("preview_row_limit", DEFAULT_PREVIEW_ROW_LIMIT)),
            selected=payload.get("selected"),
        )
        if payload.get("selected") is None:
            picker.clear_selection()
        return picker
