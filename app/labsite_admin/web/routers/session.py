from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from labsite_admin.core.errors import FormValidationError
from labsite_admin.web.http.flash import pop_flashes
from labsite_admin.web.routers.common import read_json_body
from labsite_admin.web.services import build_backend_client, require_authenticated, session_context


router = APIRouter(prefix="/api/admin")


@router.get("/session")
def read_session(request: Request) -> dict:
    session = session_context(request)
    authenticated = session.is_authenticated()
    return {
        "authenticated": authenticated,
        "user": session.get_user() if authenticated else None,
    }


@router.post("/session")
async def create_session(request: Request) -> dict:
    body = await read_json_body(request)
    username = str(body.get("username") or "").strip()
    password = str(body.get("password") or "")
    errors: dict[str, str] = {}
    if not username:
        errors["username"] = "Username is required."
    if not password:
        errors["password"] = "Password is required."
    if errors:
        raise FormValidationError(errors)

    result = await run_in_threadpool(build_backend_client(request).login, username, password)
    return {"ok": True, "authenticated": True, "user": result["user"]}


@router.delete("/session")
def delete_session(request: Request) -> dict:
    session_context(request).clear_session()
    return {"ok": True, "authenticated": False}


@router.get("/notifications")
def drain_notifications(request: Request) -> dict:
    require_authenticated(request)
    return {"notifications": pop_flashes(request)}
