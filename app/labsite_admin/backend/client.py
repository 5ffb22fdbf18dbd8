from __future__ import annotations

import logging
from typing import Any

import requests

from labsite_admin.backend.session import SessionContext
from labsite_admin.core.config import AppConfig
from labsite_admin.core.errors import (
    AuthenticationRequired,
    BackendRequestError,
    BackendUnavailableError,
    PermissionDenied,
)

LOGGER = logging.getLogger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Sign in again."
PERMISSION_DENIED_MESSAGE = "Permission denied."
BACKEND_UNAVAILABLE_MESSAGE = "The lab site backend is unavailable. Try again shortly."


def server_error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        for key in ("error", "message"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return ""


def _decode_body(response: Any) -> Any:
    content = getattr(response, "content", b"")
    if not content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


class BackendClient:
    """Request wrapper for the lab site REST API.

    Attaches the session's bearer token and applies one status contract:
    401 clears the session and raises ``AuthenticationRequired``, 403 raises
    ``PermissionDenied``, any other non-2xx raises ``BackendRequestError``
    carrying the server's ``error`` string. Nothing is retried.
    """

    def __init__(
        self,
        config: AppConfig,
        session: SessionContext,
        *,
        http: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.session = session
        self._http = http if http is not None else requests.Session()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        token = self.session.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        files: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> Any:
        method = str(method or "GET").upper()
        url = self.config.backend_endpoint(path)
        try:
            response = self._http.request(
                method,
                url,
                headers=self._headers(),
                params=params,
                json=json,
                files=files,
                data=data,
                timeout=self.config.backend_timeout_sec,
            )
        except requests.RequestException as exc:
            LOGGER.warning(
                "Backend request failed to complete. method=%s path=%s error=%s",
                method,
                path,
                exc,
                extra={"event": "backend_unavailable", "method": method, "path": str(path)},
            )
            raise BackendUnavailableError(BACKEND_UNAVAILABLE_MESSAGE, status_code=503) from exc

        status_code = int(getattr(response, "status_code", 0) or 0)
        payload = _decode_body(response)
        if 200 <= status_code < 300:
            return payload

        server_message = server_error_message(payload)
        LOGGER.warning(
            "Backend request rejected. method=%s path=%s status=%s",
            method,
            path,
            status_code,
            extra={
                "event": "backend_request_failed",
                "method": method,
                "path": str(path),
                "status_code": status_code,
            },
        )
        if status_code == 401:
            self.session.clear_session()
            raise AuthenticationRequired(server_message or SESSION_EXPIRED_MESSAGE, payload=payload)
        if status_code == 403:
            raise PermissionDenied(PERMISSION_DENIED_MESSAGE, payload=payload)
        raise BackendRequestError(
            server_message or f"Backend request failed with status {status_code}.",
            status_code=status_code,
            payload=payload,
        )

    def get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, *, json: Any = None) -> Any:
        return self.request("POST", path, json=json)

    def put(self, path: str, *, json: Any = None) -> Any:
        return self.request("PUT", path, json=json)

    def delete(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        return self.request("DELETE", path, params=params)

    def upload(
        self,
        path: str,
        *,
        file_name: str,
        content: bytes,
        content_type: str,
        fields: dict[str, Any] | None = None,
    ) -> Any:
        files = {"file": (file_name, content, content_type)}
        return self.request("POST", path, files=files, data=dict(fields or {}))

    def login(self, username: str, password: str) -> dict[str, Any]:
        payload = self.post("/api/auth/login", json={"username": username, "password": password})
        if not isinstance(payload, dict) or not str(payload.get("token") or "").strip():
            raise BackendRequestError("Login response did not include a token.", status_code=502, payload=payload)
        user = payload.get("user") if isinstance(payload.get("user"), dict) else {}
        self.session.start_session(str(payload["token"]), user)
        LOGGER.info(
            "Signed in through backend. username=%s",
            username,
            extra={"event": "session_started", "username": str(username)},
        )
        return {"token": str(payload["token"]), "user": user}
