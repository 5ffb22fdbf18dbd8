from __future__ import annotations

import logging
import time
import uuid

from fastapi import FastAPI, Request
from starlette.middleware.sessions import SessionMiddleware

from labsite_admin import __version__
from labsite_admin.logging import setup_app_logging
from labsite_admin.web.http.exception_handlers import register_exception_handlers
from labsite_admin.web.routers import router as web_router
from labsite_admin.web.services import get_config

LOGGER = logging.getLogger(__name__)
REQUEST_LOGGER = logging.getLogger("labsite_admin.requests")


def _route_path_label(request: Request) -> str:
    route = request.scope.get("route")
    route_path = str(getattr(route, "path", "") or "").strip()
    if route_path:
        return route_path
    return str(request.url.path or "/")


def create_app() -> FastAPI:
    setup_app_logging()
    config = get_config()

    app = FastAPI(title="Lab Site Admin", version=__version__)

    @app.middleware("http")
    async def _request_context_middleware(request: Request, call_next):
        request_id = str(request.headers.get("x-request-id", "") or "").strip() or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        response.headers["X-Request-ID"] = request_id
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        REQUEST_LOGGER.info(
            "request id=%s method=%s path=%s status=%s ms=%.2f",
            request_id,
            request.method,
            _route_path_label(request),
            response.status_code,
            elapsed_ms,
            extra={
                "event": "request",
                "request_id": request_id,
                "method": request.method,
                "path": _route_path_label(request),
                "status_code": int(response.status_code),
                "total_ms": round(float(elapsed_ms), 2),
            },
        )
        return response

    app.add_middleware(
        SessionMiddleware,
        secret_key=config.session_secret,
        same_site="lax",
        https_only=config.session_https_only,
    )

    register_exception_handlers(app)
    app.include_router(web_router)
    LOGGER.info(
        "Lab site admin ready. env=%s backend=%s",
        config.env,
        config.backend_url,
        extra={"event": "app_started", "env": config.env},
    )
    return app
