from __future__ import annotations

import sys
from pathlib import Path

import pytest

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from fakes import FakeHttpSession  # noqa: E402


@pytest.fixture()
def fake_http() -> FakeHttpSession:
    return FakeHttpSession()


@pytest.fixture()
def admin_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("LABSITE_API_URL", "NEXT_PUBLIC_API_URL", "LABADMIN_SESSION_HTTPS_ONLY", "LABADMIN_PREVIEW_ROW_LIMIT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("LABADMIN_ENV", "dev")
    monkeypatch.setenv("LABADMIN_BACKEND_URL", "http://backend.test")
    monkeypatch.setenv("LABADMIN_SESSION_SECRET", "test-session-secret")
    monkeypatch.setenv("LABADMIN_ERROR_INCLUDE_DETAILS", "false")
