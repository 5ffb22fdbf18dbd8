from __future__ import annotations

import base64
import binascii
import json
import logging
import time
from collections.abc import MutableMapping
from typing import Any

from labsite_admin.core.defaults import SESSION_TOKEN_KEY, SESSION_USER_KEY

LOGGER = logging.getLogger(__name__)


def decode_token_claims(token: str) -> dict[str, Any] | None:
    """Decode the payload segment of a JWT without verifying its signature."""
    parts = str(token or "").split(".")
    if len(parts) != 3 or not all(parts):
        return None
    segment = parts[1]
    segment += "=" * (-len(segment) % 4)
    try:
        raw = base64.urlsafe_b64decode(segment.encode("ascii"))
        claims = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError):
        return None
    return claims if isinstance(claims, dict) else None


class SessionContext:
    """The only gateway to the stored bearer token and signed-in user."""

    def __init__(self, store: MutableMapping[str, Any]) -> None:
        self._store = store

    def get_token(self) -> str | None:
        token = str(self._store.get(SESSION_TOKEN_KEY, "") or "").strip()
        return token or None

    def get_user(self) -> dict[str, Any] | None:
        user = self._store.get(SESSION_USER_KEY)
        return dict(user) if isinstance(user, dict) else None

    def is_authenticated(self, *, now: float | None = None) -> bool:
        token = self.get_token()
        if not token:
            return False
        claims = decode_token_claims(token)
        if claims is None:
            return False
        exp = claims.get("exp")
        if exp is None:
            return True
        try:
            expires_at = float(exp)
        except (TypeError, ValueError):
            return False
        current = time.time() if now is None else float(now)
        return expires_at > current

    def start_session(self, token: str, user: dict[str, Any] | None = None) -> None:
        self._store[SESSION_TOKEN_KEY] = str(token or "").strip()
        self._store[SESSION_USER_KEY] = dict(user or {})

    def clear_session(self) -> None:
        had_token = SESSION_TOKEN_KEY in self._store
        self._store.pop(SESSION_TOKEN_KEY, None)
        self._store.pop(SESSION_USER_KEY, None)
        if had_token:
            LOGGER.info("Session cleared.", extra={"event": "session_cleared"})
