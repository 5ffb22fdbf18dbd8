from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from labsite_admin.backend.client import BackendClient, server_error_message
from labsite_admin.core.errors import AuthenticationRequired, BackendError, PermissionDenied
from labsite_admin.domain.entities import ENTITY_AWARDS, ENTITY_TEAM
from labsite_admin.imports.serializer import content_type_for

LOGGER = logging.getLogger(__name__)

IMPORT_FAILED_MESSAGE = "Import failed."
PERMISSION_DENIED_MESSAGE = "Permission denied."
COUNT_KEYS = ("count", "imported", "insertedCount")


@dataclass(frozen=True)
class ImportTarget:
    key: str
    label: str
    endpoint: str
    refetch_entity: str


TARGET_GRADUATES = "graduates"
TARGET_AWARDS = "awards"

IMPORT_TARGETS: dict[str, ImportTarget] = {
    TARGET_GRADUATES: ImportTarget(TARGET_GRADUATES, "graduates", "/api/team/graduates/import", ENTITY_TEAM),
    TARGET_AWARDS: ImportTarget(TARGET_AWARDS, "awards", "/api/awards/import", ENTITY_AWARDS),
}

_TARGET_ALIASES = {"graduate": TARGET_GRADUATES, "award": TARGET_AWARDS}


def get_import_target(key: str) -> ImportTarget:
    normalized = str(key or "").strip().lower()
    normalized = _TARGET_ALIASES.get(normalized, normalized)
    if normalized not in IMPORT_TARGETS:
        raise KeyError(f"Unknown import target: {key}")
    return IMPORT_TARGETS[normalized]


@dataclass(frozen=True)
class ImportOutcome:
    success: bool
    message: str
    row_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message, "count": self.row_count}


def imported_row_count(payload: Any) -> int | None:
    if not isinstance(payload, dict):
        return None
    for key in COUNT_KEYS:
        value = payload.get(key)
        if value is None or isinstance(value, bool):
            continue
        try:
            return int(value)
        except (TypeError, ValueError):
            continue
    return None


def success_message(row_count: int | None) -> str:
    if row_count is None:
        return "Import completed."
    noun = "record" if row_count == 1 else "records"
    return f"Imported {row_count} {noun}."


class ImportSubmitter:
    """Uploads one single-sheet workbook and interprets the server's answer."""

    def __init__(self, client: BackendClient) -> None:
        self.client = client

    def submit(self, target: ImportTarget, *, file_name: str, content: bytes, sheet_name: str) -> ImportOutcome:
        LOGGER.info(
            "Submitting import. target=%s file=%s sheet=%s bytes=%s",
            target.key,
            file_name,
            sheet_name,
            len(content),
            extra={"event": "import_submitted", "import_target": target.key, "sheet_name": str(sheet_name)},
        )
        try:
            payload = self.client.upload(
                target.endpoint,
                file_name=file_name,
                content=content,
                content_type=content_type_for(file_name),
                fields={"sheetName": sheet_name},
            )
        except AuthenticationRequired:
            raise
        except PermissionDenied:
            outcome = ImportOutcome(success=False, message=PERMISSION_DENIED_MESSAGE)
        except BackendError as exc:
            outcome = ImportOutcome(success=False, message=server_error_message(exc.payload) or IMPORT_FAILED_MESSAGE)
        else:
            row_count = imported_row_count(payload)
            outcome = ImportOutcome(success=True, message=success_message(row_count), row_count=row_count)

        log_fn = LOGGER.info if outcome.success else LOGGER.warning
        log_fn(
            "Import finished. target=%s success=%s count=%s",
            target.key,
            outcome.success,
            outcome.row_count,
            extra={
                "event": "import_outcome",
                "import_target": target.key,
                "success": outcome.success,
                "row_count": outcome.row_count,
            },
        )
        return outcome
