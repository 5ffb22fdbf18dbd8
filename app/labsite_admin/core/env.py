from __future__ import annotations

import os
from collections.abc import Iterable

LABADMIN_ENV = "LABADMIN_ENV"
LABADMIN_BACKEND_URL = "LABADMIN_BACKEND_URL"
LABADMIN_BACKEND_TIMEOUT_SEC = "LABADMIN_BACKEND_TIMEOUT_SEC"
LABADMIN_PAGE_SIZE = "LABADMIN_PAGE_SIZE"
LABADMIN_PREVIEW_ROW_LIMIT = "LABADMIN_PREVIEW_ROW_LIMIT"
LABADMIN_MAX_UPLOAD_MB = "LABADMIN_MAX_UPLOAD_MB"
LABADMIN_SESSION_SECRET = "LABADMIN_SESSION_SECRET"
LABADMIN_SESSION_HTTPS_ONLY = "LABADMIN_SESSION_HTTPS_ONLY"
LABADMIN_ERROR_INCLUDE_DETAILS = "LABADMIN_ERROR_INCLUDE_DETAILS"
LABADMIN_LOG_LEVEL = "LABADMIN_LOG_LEVEL"
LABADMIN_LOG_JSON = "LABADMIN_LOG_JSON"
LABADMIN_LOG_CAPTURE_ROOT = "LABADMIN_LOG_CAPTURE_ROOT"

BACKEND_URL_KEYS = (
    LABADMIN_BACKEND_URL,
    "LABSITE_API_URL",
    "NEXT_PUBLIC_API_URL",
)

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}


def get_env(key: str, default: str = "") -> str:
    return str(os.getenv(key, default) or "").strip()


def get_first_env(keys: Iterable[str], default: str = "") -> str:
    for key in keys:
        value = get_env(key)
        if value:
            return value
    return default


def get_env_bool(key: str, default: bool = False) -> bool:
    raw = os.getenv(key)
    if raw is None:
        return default
    return str(raw).strip().lower() in _TRUE_VALUES


def get_env_int(
    key: str,
    default: int,
    *,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    raw = get_env(key)
    if not raw:
        value = int(default)
    else:
        try:
            value = int(raw)
        except ValueError as exc:
            raise RuntimeError(f"{key} must be an integer, got '{raw}'.") from exc
    if min_value is not None:
        value = max(min_value, value)
    if max_value is not None:
        value = min(max_value, value)
    return value


def get_env_float(key: str, default: float, *, min_value: float | None = None) -> float:
    raw = get_env(key)
    if not raw:
        value = float(default)
    else:
        try:
            value = float(raw)
        except ValueError as exc:
            raise RuntimeError(f"{key} must be a number, got '{raw}'.") from exc
    if min_value is not None:
        value = max(min_value, value)
    return value
