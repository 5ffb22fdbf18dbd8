from __future__ import annotations

from fastapi import APIRouter

from labsite_admin import __version__
from labsite_admin.web.services import get_config


router = APIRouter(prefix="/api")


@router.get("/health")
def api_health() -> dict:
    config = get_config()
    return {
        "ok": True,
        "service": "labsite-admin",
        "version": __version__,
        "env": config.env,
        "backend_configured": bool(config.backend_url),
    }
