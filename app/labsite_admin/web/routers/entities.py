from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from labsite_admin.backend.controller import CrudController
from labsite_admin.domain.entities import normalize_member_type
from labsite_admin.web.http.errors import ApiError, ERROR_CODE_NOT_FOUND
from labsite_admin.web.routers.common import read_json_body
from labsite_admin.web.services import build_entity_controller, build_team_controller, require_authenticated


router = APIRouter(prefix="/api/admin")


def _controller_response(controller: CrudController, *, ok: bool = True) -> JSONResponse:
    payload: dict[str, Any] = {"ok": ok and controller.last_error is None, **controller.snapshot()}
    status_code = 200
    if controller.last_error is not None:
        status_code = int(controller.last_error.status_code or 502)
        if not 400 <= status_code < 600:
            status_code = 502
    return JSONResponse(payload, status_code=status_code)


def _member_type(value: str) -> str:
    try:
        return normalize_member_type(value)
    except ValueError as exc:
        raise ApiError(status_code=404, code=ERROR_CODE_NOT_FOUND, message=str(exc)) from None


@router.get("/team")
def list_team(request: Request, search: str = ""):
    require_authenticated(request)
    controller = build_team_controller(request)
    controller.fetch(search=search)
    return _controller_response(controller)


@router.post("/team/{member_type}")
async def create_team_member(request: Request, member_type: str):
    require_authenticated(request)
    resolved = _member_type(member_type)
    form = await read_json_body(request)
    controller = build_team_controller(request)
    ok = await run_in_threadpool(controller.create_member, resolved, form)
    return _controller_response(controller, ok=ok)


@router.put("/team/{member_type}/{record_id}")
async def update_team_member(request: Request, member_type: str, record_id: int):
    require_authenticated(request)
    resolved = _member_type(member_type)
    form = await read_json_body(request)
    controller = build_team_controller(request)
    ok = await run_in_threadpool(controller.update_member, resolved, record_id, form)
    return _controller_response(controller, ok=ok)


@router.delete("/team/{member_type}/{record_id}")
def delete_team_member(request: Request, member_type: str, record_id: int):
    require_authenticated(request)
    resolved = _member_type(member_type)
    controller = build_team_controller(request)
    ok = controller.delete_member(resolved, record_id)
    return _controller_response(controller, ok=ok)


@router.get("/{entity}")
def list_entity(request: Request, entity: str, page: int | None = None, limit: int | None = None, search: str = ""):
    require_authenticated(request)
    controller = build_entity_controller(request, entity)
    controller.fetch(page=page, limit=limit, search=search)
    return _controller_response(controller)


@router.post("/{entity}")
async def create_entity(request: Request, entity: str):
    require_authenticated(request)
    controller = build_entity_controller(request, entity)
    form = await read_json_body(request)
    ok = await run_in_threadpool(controller.create, form)
    return _controller_response(controller, ok=ok)


@router.put("/{entity}/{record_id}")
async def update_entity(request: Request, entity: str, record_id: int):
    require_authenticated(request)
    controller = build_entity_controller(request, entity)
    form = await read_json_body(request)
    ok = await run_in_threadpool(controller.update, record_id, form)
    return _controller_response(controller, ok=ok)


@router.delete("/{entity}/{record_id}")
def delete_entity(request: Request, entity: str, record_id: int):
    require_authenticated(request)
    controller = build_entity_controller(request, entity)
    ok = controller.delete(record_id)
    return _controller_response(controller, ok=ok)
