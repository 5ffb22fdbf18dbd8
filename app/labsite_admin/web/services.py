from __future__ import annotations

from functools import lru_cache

import requests
from fastapi import Request

from labsite_admin.backend.client import BackendClient
from labsite_admin.backend.controller import CrudController, FooterController, TeamController
from labsite_admin.backend.repository import EntityRepository, FooterRepository, TeamRepository
from labsite_admin.backend.session import SessionContext
from labsite_admin.core.config import AppConfig
from labsite_admin.domain.entities import ENTITY_AWARDS, ENTITY_TEAM, get_entity
from labsite_admin.imports.flow import ImportFlow
from labsite_admin.imports.submitter import ImportSubmitter, ImportTarget
from labsite_admin.web.http.errors import ApiError, ERROR_CODE_NOT_FOUND, login_required_error
from labsite_admin.web.http.flash import notification_queue


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return AppConfig.from_env()


@lru_cache(maxsize=1)
def get_http_session() -> requests.Session:
    return requests.Session()


def session_context(request: Request) -> SessionContext:
    return SessionContext(request.session)


def require_authenticated(request: Request) -> SessionContext:
    session = session_context(request)
    if not session.is_authenticated():
        session.clear_session()
        raise login_required_error()
    return session


def build_backend_client(request: Request) -> BackendClient:
    return BackendClient(get_config(), session_context(request), http=get_http_session())


def _confirm_from_request(request: Request):
    confirmed = str(request.query_params.get("confirm", "")).strip().lower() in {"1", "true", "yes", "on"}
    return lambda _prompt: confirmed


def build_entity_controller(request: Request, entity_key: str) -> CrudController:
    try:
        entity = get_entity(entity_key)
    except KeyError:
        raise ApiError(
            status_code=404,
            code=ERROR_CODE_NOT_FOUND,
            message=f"Unknown entity: {entity_key}",
        ) from None
    return CrudController.for_entity(
        EntityRepository(build_backend_client(request), entity),
        entity,
        notifications=notification_queue(request),
        page_size=get_config().page_size,
        confirm=_confirm_from_request(request),
    )


def build_team_controller(request: Request) -> TeamController:
    return TeamController(
        TeamRepository(build_backend_client(request)),
        notifications=notification_queue(request),
        page_size=get_config().page_size,
        confirm=_confirm_from_request(request),
    )


def build_footer_controller(request: Request) -> FooterController:
    return FooterController(
        FooterRepository(build_backend_client(request)),
        notifications=notification_queue(request),
        confirm=_confirm_from_request(request),
    )

def build_import_flow(request: Request) -> ImportFlow:
    client = build_backend_client(request)
    notifications = notification_queue(request)

    def _refetch(target: ImportTarget) -> None:
        if target.refetch_entity == ENTITY_TEAM:
            controller: CrudController = build_team_controller(request)
        elif target.refetch_entity == ENTITY_AWARDS:
            controller = build_entity_controller(request, ENTITY_AWARDS)
        else:
            return
        controller.fetch()
        request.state.refetched = {"entity": target.refetch_entity, **controller.snapshot()}

    return ImportFlow(
        ImportSubmitter(client),
        preview_row_limit=get_config().preview_row_limit,
        notifications=notifications,
        on_success=_refetch,
    )
