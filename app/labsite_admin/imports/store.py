from __future__ import annotations

from copy import deepcopy
import threading
import time
import uuid
from typing import Any

from labsite_admin.core.defaults import DEFAULT_PENDING_IMPORT_MAX_ITEMS, DEFAULT_PENDING_IMPORT_TTL_SEC


PENDING_IMPORT_TTL_SEC = DEFAULT_PENDING_IMPORT_TTL_SEC
PENDING_IMPORT_MAX_ITEMS = DEFAULT_PENDING_IMPORT_MAX_ITEMS
PENDING_IMPORT_LOCK = threading.Lock()
_PENDING_IMPORT_STORE: dict[str, tuple[float, dict[str, Any]]] = {}


def _prune_pending_store(now: float) -> None:
    expired = [
        token for token, (created, _) in _PENDING_IMPORT_STORE.items() if (now - created) >= PENDING_IMPORT_TTL_SEC
    ]
    for token in expired:
        _PENDING_IMPORT_STORE.pop(token, None)
    while len(_PENDING_IMPORT_STORE) > PENDING_IMPORT_MAX_ITEMS:
        oldest_token = min(_PENDING_IMPORT_STORE, key=lambda key: _PENDING_IMPORT_STORE[key][0], default=None)
        if oldest_token is None:
            break
        _PENDING_IMPORT_STORE.pop(oldest_token, None)


def save_pending_import(payload: dict[str, Any]) -> str:
    token = uuid.uuid4().hex
    now = time.monotonic()
    with PENDING_IMPORT_LOCK:
        _prune_pending_store(now)
        _PENDING_IMPORT_STORE[token] = (now, deepcopy(payload))
    return token


def load_pending_import(token: str) -> dict[str, Any] | None:
    key = str(token or "").strip()
    if not key:
        return None
    now = time.monotonic()
    with PENDING_IMPORT_LOCK:
        _prune_pending_store(now)
        entry = _PENDING_IMPORT_STORE.get(key)
        if entry is None:
            return None
        _, payload = entry
        return deepcopy(payload)


def take_pending_import(token: str) -> dict[str, Any] | None:
    """Remove and return a pending import; only one caller can ever get it."""
    key = str(token or "").strip()
    if not key:
        return None
    now = time.monotonic()
    with PENDING_IMPORT_LOCK:
        _prune_pending_store(now)
        entry = _PENDING_IMPORT_STORE.pop(key, None)
    if entry is None:
        return None
    _, payload = entry
    return payload


def restore_pending_import(token: str, payload: dict[str, Any]) -> None:
    key = str(token or "").strip()
    if not key:
        return
    now = time.monotonic()
    with PENDING_IMPORT_LOCK:
        _PENDING_IMPORT_STORE[key] = (now, deepcopy(payload))
        _prune_pending_store(now)


def update_pending_import(token: str, payload: dict[str, Any]) -> bool:
    key = str(token or "").strip()
    with PENDING_IMPORT_LOCK:
        entry = _PENDING_IMPORT_STORE.get(key)
        if entry is None:
            return False
        created, _ = entry
        _PENDING_IMPORT_STORE[key] = (created, deepcopy(payload))
    return True


def discard_pending_import(token: str) -> None:
    key = str(token or "").strip()
    if not key:
        return
    with PENDING_IMPORT_LOCK:
        _PENDING_IMPORT_STORE.pop(key, None)


def clear_pending_imports() -> None:
    with PENDING_IMPORT_LOCK:
        _PENDING_IMPORT_STORE.clear()
