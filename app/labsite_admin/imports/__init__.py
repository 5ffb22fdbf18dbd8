"""Spreadsheet import flow: read, pick a worksheet, re-serialize, submit."""

from labsite_admin.imports.flow import ImportFlow, ImportStep
from labsite_admin.imports.picker import WorksheetPicker
from labsite_admin.imports.reader import ParseResult, Worksheet, read_workbook
from labsite_admin.imports.submitter import ImportOutcome, ImportSubmitter, get_import_target

__all__ = [
    "ImportFlow",
    "ImportOutcome",
    "ImportStep",
    "ImportSubmitter",
    "ParseResult",
    "Worksheet",
    "WorksheetPicker",
    "get_import_target",
    "read_workbook",
]
