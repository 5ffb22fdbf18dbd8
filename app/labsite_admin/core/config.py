from __future__ import annotations

from dataclasses import dataclass

from labsite_admin.core.defaults import (
    DEFAULT_BACKEND_TIMEOUT_SEC,
    DEFAULT_DEV_BACKEND_URL,
    DEFAULT_DEV_ENV_NAMES,
    DEFAULT_ENV_NAME,
    DEFAULT_MAX_PAGE_SIZE,
    DEFAULT_MAX_UPLOAD_MB,
    DEFAULT_PAGE_SIZE,
    DEFAULT_PREVIEW_ROW_LIMIT,
    DEFAULT_SESSION_SECRET,
)
from labsite_admin.core.env import (
    BACKEND_URL_KEYS,
    LABADMIN_BACKEND_TIMEOUT_SEC,
    LABADMIN_ENV,
    LABADMIN_MAX_UPLOAD_MB,
    LABADMIN_PAGE_SIZE,
    LABADMIN_PREVIEW_ROW_LIMIT,
    LABADMIN_SESSION_HTTPS_ONLY,
    LABADMIN_SESSION_SECRET,
    get_env,
    get_env_bool,
    get_env_float,
    get_env_int,
    get_first_env,
)


DEV_ENV_NAMES = set(DEFAULT_DEV_ENV_NAMES)


def _clean_base_url(raw_url: str) -> str:
    value = str(raw_url or "").strip()
    if not value:
        return ""
    if not value.startswith(("http://", "https://")):
        value = f"http://{value}"
    return value.rstrip("/")


def _resolve_backend_url(env_name: str) -> str:
    default_url = DEFAULT_DEV_BACKEND_URL if env_name in DEV_ENV_NAMES else ""
    url = _clean_base_url(get_first_env(BACKEND_URL_KEYS, default_url))
    if not url:
        raise RuntimeError(
            "LABADMIN_BACKEND_URL is required outside local/dev mode."
        )
    return url


def _resolve_session_secret(env_name: str) -> str:
    secret = get_env(LABADMIN_SESSION_SECRET, DEFAULT_SESSION_SECRET) or DEFAULT_SESSION_SECRET
    if env_name not in DEV_ENV_NAMES and secret == DEFAULT_SESSION_SECRET:
        raise RuntimeError(
            "LABADMIN_SESSION_SECRET must be set to a strong, non-default value outside dev/local environments."
        )
    return secret


@dataclass(frozen=True)
class AppConfig:
    backend_url: str
    env: str = DEFAULT_ENV_NAME
    backend_timeout_sec: float | None = None
    page_size: int = DEFAULT_PAGE_SIZE
    preview_row_limit: int = DEFAULT_PREVIEW_ROW_LIMIT
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_MB * 1024 * 1024
    session_secret: str = DEFAULT_SESSION_SECRET
    session_https_only: bool = False

    @property
    def is_dev_env(self) -> bool:
        return self.env in DEV_ENV_NAMES

    def backend_endpoint(self, path: str) -> str:
        return f"{self.backend_url}/{str(path or '').lstrip('/')}"

    @staticmethod
    def from_env() -> "AppConfig":
        env_name = get_env(LABADMIN_ENV, DEFAULT_ENV_NAME).lower() or DEFAULT_ENV_NAME
        timeout = get_env_float(LABADMIN_BACKEND_TIMEOUT_SEC, DEFAULT_BACKEND_TIMEOUT_SEC, min_value=0.0)
        return AppConfig(
            backend_url=_resolve_backend_url(env_name),
            env=env_name,
            # 0 means "no timeout"; requests treats None the same way.
            backend_timeout_sec=timeout or None,
            page_size=get_env_int(LABADMIN_PAGE_SIZE, DEFAULT_PAGE_SIZE, min_value=1, max_value=DEFAULT_MAX_PAGE_SIZE),
            preview_row_limit=get_env_int(LABADMIN_PREVIEW_ROW_LIMIT, DEFAULT_PREVIEW_ROW_LIMIT, min_value=0),
            max_upload_bytes=get_env_int(LABADMIN_MAX_UPLOAD_MB, DEFAULT_MAX_UPLOAD_MB, min_value=1) * 1024 * 1024,
            session_secret=_resolve_session_secret(env_name),
            session_https_only=get_env_bool(
                LABADMIN_SESSION_HTTPS_ONLY,
                default=env_name not in DEV_ENV_NAMES,
            ),
        )
