from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import Response
from starlette.concurrency import run_in_threadpool

from labsite_admin.core.errors import PendingImportNotFoundError, WorksheetSelectionError
from labsite_admin.imports.flow import ImportStep
from labsite_admin.imports.picker import WorksheetPicker
from labsite_admin.imports.reader import ensure_accepted_file_name
from labsite_admin.imports.serializer import XLSX_CONTENT_TYPE
from labsite_admin.imports.store import (
    discard_pending_import,
    load_pending_import,
    restore_pending_import,
    save_pending_import,
    take_pending_import,
    update_pending_import,
)
from labsite_admin.imports.submitter import ImportOutcome, ImportTarget, get_import_target
from labsite_admin.imports.templates import build_import_template, template_file_name
from labsite_admin.web.http.errors import ApiError, ERROR_CODE_BAD_REQUEST, ERROR_CODE_NOT_FOUND
from labsite_admin.web.routers.common import read_json_body
from labsite_admin.web.services import build_import_flow, get_config, require_authenticated


router = APIRouter(prefix="/api/admin/imports")
PENDING_EXPIRED_MESSAGE = "This import is no longer pending. Upload the file again."


def _target(value: str) -> ImportTarget:
    try:
        return get_import_target(value)
    except KeyError:
        raise ApiError(status_code=404, code=ERROR_CODE_NOT_FOUND, message=f"Unknown import target: {value}") from None


async def _read_upload(request: Request) -> tuple[str, bytes]:
    form = await request.form()
    upload = form.get("file")
    if upload is None or not hasattr(upload, "filename"):
        raise ApiError(status_code=400, code=ERROR_CODE_BAD_REQUEST, message="Select a file to upload.")
    file_name = str(getattr(upload, "filename", "") or "").strip()
    ensure_accepted_file_name(file_name)
    raw_bytes = await upload.read()
    max_bytes = get_config().max_upload_bytes
    if len(raw_bytes) > max_bytes:
        raise ApiError(
            status_code=413,
            code="FILE_TOO_LARGE",
            message=f"File is larger than the {max_bytes // (1024 * 1024)} MB upload limit.",
        )
    return file_name, raw_bytes


def _outcome_payload(request: Request, outcome: ImportOutcome) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "ok": outcome.success,
        "status": "submitted" if outcome.success else "failed",
        "outcome": outcome.to_dict(),
    }
    refetched = getattr(request.state, "refetched", None)
    if refetched is not None:
        payload["refetched"] = refetched
    return payload


def _picker_payload(token: str, picker: WorksheetPicker) -> dict[str, Any]:
    return {
        "ok": True,
        "status": "selection_required",
        "token": token,
        "file_name": picker.source_file_name,
        "selected": picker.selected,
        "sheets": picker.summaries(),
        "preview": picker.preview() if picker.selected else None,
    }


def _load_picker(target: ImportTarget, token: str) -> WorksheetPicker:
    payload = load_pending_import(token)
    if payload is None or payload.get("target") != target.key:
        raise PendingImportNotFoundError(PENDING_EXPIRED_MESSAGE)
    return WorksheetPicker.from_snapshot(payload)


def _save_picker(target: ImportTarget, picker: WorksheetPicker, token: str | None = None) -> str:
    payload = {"target": target.key, **picker.snapshot()}
    if token is None:
        return save_pending_import(payload)
    if not update_pending_import(token, payload):
        raise PendingImportNotFoundError(PENDING_EXPIRED_MESSAGE)
    return token


@router.post("/{target}")
async def upload_import(request: Request, target: str):
    require_authenticated(request)
    import_target = _target(target)
    file_name, raw_bytes = await _read_upload(request)
    flow = build_import_flow(request)
    step: ImportStep = await run_in_threadpool(flow.start, import_target, file_name, raw_bytes)
    if step.picker is None:
        return _outcome_payload(request, step.outcome)
    token = _save_picker(import_target, step.picker)
    return _picker_payload(token, step.picker)


@router.get("/{target}/pending/{token}")
def read_pending_import(request: Request, target: str, token: str, sheet: str | None = None):
    require_authenticated(request)
    import_target = _target(target)
    picker = _load_picker(import_target, token)
    if sheet is not None:
        picker.select(sheet)
        _save_picker(import_target, picker, token)
    return _picker_payload(token, picker)


@router.post("/{target}/pending/{token}/confirm")
async def confirm_pending_import(request: Request, target: str, token: str):
    require_authenticated(request)
    import_target = _target(target)
    body: dict[str, Any] = {}
    if await request.body():
        body = await read_json_body(request)

    # Removed before submitting; a second confirm on the same token finds nothing.
    payload = take_pending_import(token)
    if payload is None:
        raise PendingImportNotFoundError(PENDING_EXPIRED_MESSAGE)
    if payload.get("target") != import_target.key:
        restore_pending_import(token, payload)
        raise PendingImportNotFoundError(PENDING_EXPIRED_MESSAGE)

    picker = WorksheetPicker.from_snapshot(payload)
    flow = build_import_flow(request)
    try:
        if "sheet" in body:
            if body["sheet"]:
                picker.select(str(body["sheet"]))
            else:
                picker.clear_selection()
        outcome = await run_in_threadpool(flow.confirm, import_target, picker)
    except WorksheetSelectionError:
        restore_pending_import(token, payload)
        raise
    return _outcome_payload(request, outcome)


@router.delete("/{target}/pending/{token}")
def cancel_pending_import(request: Request, target: str, token: str):
    require_authenticated(request)
    import_target = _target(target)
    picker = _load_picker(import_target, token)
    picker.cancel()
    discard_pending_import(token)
    return {"ok": True, "status": "cancelled"}


@router.get("/{target}/template")
def download_import_template(request: Request, target: str):
    require_authenticated(request)
    import_target = _target(target)
    filename = template_file_name(import_target.key)
    return Response(
        content=build_import_template(import_target.key),
        media_type=XLSX_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
