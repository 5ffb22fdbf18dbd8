from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from labsite_admin.backend.dashboard import fetch_dashboard_stats
from labsite_admin.web.routers.common import read_json_body
from labsite_admin.web.services import build_backend_client, build_footer_controller, require_authenticated


router = APIRouter(prefix="/api/admin")


@router.get("/dashboard")
def read_dashboard(request: Request) -> dict:
    require_authenticated(request)
    stats = fetch_dashboard_stats(build_backend_client(request))
    return {"ok": True, **stats.to_dict()}


@router.get("/footer")
def read_footer(request: Request) -> dict:
    require_authenticated(request)
    controller = build_footer_controller(request)
    controller.load()
    return {"ok": True, **controller.snapshot()}


@router.put("/footer")
async def save_footer(request: Request) -> dict:
    require_authenticated(request)
    form = await read_json_body(request)
    controller = build_footer_controller(request)
    await run_in_threadpool(controller.load)
    await run_in_threadpool(controller.save, form)
    return {"ok": True, **controller.snapshot()}


@router.delete("/footer/{footer_id}")
def delete_footer(request: Request, footer_id: int) -> dict:
    require_authenticated(request)
    controller = build_footer_controller(request)
    controller.delete(footer_id)
    return {"ok": True, **controller.snapshot()}
