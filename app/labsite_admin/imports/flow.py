from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from labsite_admin.core.defaults import DEFAULT_PREVIEW_ROW_LIMIT
from labsite_admin.core.errors import ParseError
from labsite_admin.imports.picker import WorksheetPicker
from labsite_admin.imports.reader import Worksheet, ensure_accepted_file_name, read_workbook
from labsite_admin.imports.serializer import serialize_worksheet, single_sheet_file_name
from labsite_admin.imports.submitter import ImportOutcome, ImportSubmitter, ImportTarget
from labsite_admin.notifications import NotificationQueue

LOGGER = logging.getLogger(__name__)

EMPTY_WORKSHEET_MESSAGE = "The selected worksheet contains no data."

RefetchCallback = Callable[[ImportTarget], None]


@dataclass(frozen=True)
class ImportStep:
    """Either a finished outcome or a picker waiting for a sheet choice."""

    outcome: ImportOutcome | None = None
    picker: WorksheetPicker | None = None

    @property
    def needs_selection(self) -> bool:
        return self.picker is not None


class ImportFlow:
    def __init__(
        self,
        submitter: ImportSubmitter,
        *,
        preview_row_limit: int = DEFAULT_PREVIEW_ROW_LIMIT,
        notifications: NotificationQueue | None = None,
        on_success: RefetchCallback | None = None,
    ) -> None:
        self.submitter = submitter
        self.preview_row_limit = preview_row_limit
        self.notifications = notifications if notifications is not None else NotificationQueue()
        self.on_success = on_success

    def _report(self, outcome: ImportOutcome) -> ImportOutcome:
        if outcome.success:
            self.notifications.success(outcome.message)
        else:
            self.notifications.error(outcome.message)
        return outcome

    def start(self, target: ImportTarget, file_name: str, raw_bytes: bytes) -> ImportStep:
        ensure_accepted_file_name(file_name)
        try:
            result = read_workbook(file_name, raw_bytes)
        except ParseError as exc:
            return ImportStep(outcome=self._report(ImportOutcome(success=False, message=str(exc))))

        if result.is_single_sheet:
            outcome = self.submit_worksheet(target, result.source_file_name, result.worksheets[0])
            return ImportStep(outcome=outcome)
        LOGGER.info(
            "Workbook needs a worksheet choice. file=%s sheets=%s",
            file_name,
            len(result.worksheets),
            extra={"event": "import_sheet_selection", "import_target": target.key},
        )
        return ImportStep(picker=WorksheetPicker(result, preview_row_limit=self.preview_row_limit))

    def confirm(self, target: ImportTarget, picker: WorksheetPicker) -> ImportOutcome:
        sheet = picker.confirm()
        source_file_name = picker.source_file_name
        picker.cancel()
        return self.submit_worksheet(target, source_file_name, sheet)

    def submit_worksheet(self, target: ImportTarget, source_file_name: str, sheet: Worksheet) -> ImportOutcome:
        if sheet.row_count == 0:
            return self._report(ImportOutcome(success=False, message=EMPTY_WORKSHEET_MESSAGE))
        content = serialize_worksheet(sheet.grid, sheet.name)
        outcome = self.submitter.submit(
            target,
            file_name=single_sheet_file_name(source_file_name),
            content=content,
            sheet_name=sheet.name,
        )
        self._report(outcome)
        if outcome.success and self.on_success is not None:
            self.on_success(target)
        return outcome
