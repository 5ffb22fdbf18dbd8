from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any

from labsite_admin.core.defaults import SESSION_FLASH_KEY

LEVEL_INFO = "info"
LEVEL_SUCCESS = "success"
LEVEL_WARNING = "warning"
LEVEL_ERROR = "error"
NOTIFICATION_LEVELS = (LEVEL_INFO, LEVEL_SUCCESS, LEVEL_WARNING, LEVEL_ERROR)


class NotificationQueue:
    """Non-blocking toast queue kept in a mutable mapping (session or dict)."""

    def __init__(self, store: MutableMapping[str, Any] | None = None, *, key: str = SESSION_FLASH_KEY) -> None:
        self._store: MutableMapping[str, Any] = store if store is not None else {}
        self._key = key

    def push(self, level: str, message: str) -> None:
        normalized = str(level or LEVEL_INFO).strip().lower()
        if normalized not in NOTIFICATION_LEVELS:
            normalized = LEVEL_INFO
        text = str(message or "").strip()
        if not text:
            return
        items = list(self._store.get(self._key, []) or [])
        items.append({"message": text, "level": normalized})
        # Reassign so signed-cookie sessions notice the change.
        self._store[self._key] = items

    def info(self, message: str) -> None:
        self.push(LEVEL_INFO, message)

    def success(self, message: str) -> None:
        self.push(LEVEL_SUCCESS, message)

    def error(self, message: str) -> None:
        self.push(LEVEL_ERROR, message)

    def peek(self) -> list[dict[str, str]]:
        return [dict(item) for item in (self._store.get(self._key, []) or [])]

    def drain(self) -> list[dict[str, str]]:
        items = self.peek()
        self._store[self._key] = []
        return items
