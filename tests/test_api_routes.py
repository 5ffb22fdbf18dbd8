from __future__ import annotations

import sys
import threading
import time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

APP_ROOT = Path(__file__).resolve().parents[1] / "app"
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from fakes import FakeResponse, build_workbook, list_payload, make_token  # noqa: E402
from labsite_admin.imports.reader import read_workbook  # noqa: E402
from labsite_admin.imports.serializer import XLSX_CONTENT_TYPE  # noqa: E402
from labsite_admin.imports.store import clear_pending_imports  # noqa: E402
from labsite_admin.imports.templates import TEMPLATE_HEADERS  # noqa: E402
from labsite_admin.web import services  # noqa: E402
from labsite_admin.web.app import create_app  # noqa: E402

USERS = [
    {"id": 1, "username": "alice", "email": "alice@lab.test", "roleType": "admin"},
    {"id": 2, "username": "bob", "email": "bob@lab.test", "roleType": "editor"},
]
AWARDS = [{"id": 11, "awardee": "Li Na"}, {"id": 12, "awardee": "Wang Fang"}]


@pytest.fixture()
def client(admin_env, fake_http, monkeypatch: pytest.MonkeyPatch):
    services.get_config.cache_clear()
    monkeypatch.setattr(services, "get_http_session", lambda: fake_http)
    clear_pending_imports()
    with TestClient(create_app()) as test_client:
        yield test_client
    services.get_config.cache_clear()
    clear_pending_imports()


def _login(client: TestClient, fake_http) -> None:
    fake_http.routes[("POST", "/api/auth/login")] = FakeResponse(
        200, {"token": make_token(), "user": {"id": 1, "username": "admin", "roleType": "admin"}}
    )
    response = client.post("/api/admin/session", json={"username": "admin", "password": "secret1"})
    assert response.status_code == 200
    assert response.json()["user"]["username"] == "admin"


def _two_sheet_workbook() -> bytes:
    return build_workbook(
        {
            "Awards 2023": [["获奖人员", "获奖时间"], ["Zhang Wei", "2023-05-01"]],
            "Awards 2024": [["获奖人员"], ["Li Na"], ["Wang Fang"]],
        }
    )


def _upload(client: TestClient, target: str, file_name: str, content: bytes):
    return client.post(
        f"/api/admin/imports/{target}",
        files={"file": (file_name, content, "application/octet-stream")},
    )


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["env"] == "dev"
    assert body["backend_configured"] is True
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_unauthenticated_request_gets_login_url(client: TestClient, fake_http) -> None:
    response = client.get("/api/admin/users", headers={"X-Request-ID": "req-123"})

    assert response.status_code == 401
    body = response.json()
    assert body["ok"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"
    assert body["error"]["details"] == {"login_url": "/login"}
    assert body["request_id"] == "req-123"
    assert response.headers["X-Request-ID"] == "req-123"
    assert fake_http.calls == []


def test_login_requires_fields(client: TestClient, fake_http) -> None:
    response = client.post("/api/admin/session", json={"username": "admin"})

    assert response.status_code == 422
    assert response.json()["error"]["details"]["errors"] == {"password": "Password is required."}
    assert fake_http.calls == []


def test_login_runs_backend_call_off_the_event_loop(
    client: TestClient, fake_http, monkeypatch: pytest.MonkeyPatch
) -> None:
    from labsite_admin.web.routers import session as session_routes

    offloaded: list[str] = []
    original = session_routes.run_in_threadpool

    async def _recording_threadpool(func, *args, **kwargs):
        offloaded.append(getattr(func, "__name__", ""))
        return await original(func, *args, **kwargs)

    monkeypatch.setattr(session_routes, "run_in_threadpool", _recording_threadpool)

    _login(client, fake_http)

    assert offloaded == ["login"]


def test_session_roundtrip(client: TestClient, fake_http) -> None:
    assert client.get("/api/admin/session").json() == {"authenticated": False, "user": None}

    _login(client, fake_http)
    assert client.get("/api/admin/session").json()["authenticated"] is True

    client.delete("/api/admin/session")
    assert client.get("/api/admin/session").json()["authenticated"] is False


def test_list_users_forwards_paging(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    fake_http.routes[("GET", "/api/users")] = FakeResponse(200, list_payload(USERS, page=2, limit=2, total=6))

    response = client.get("/api/admin/users", params={"page": 2, "limit": 2, "search": "a"})

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["state"] == "populated"
    assert [record["username"] for record in body["records"]] == ["alice", "bob"]
    assert body["pagination"] == {
        "page": 2,
        "limit": 2,
        "total": 6,
        "totalPages": 3,
        "hasNext": True,
        "hasPrev": True,
    }
    assert fake_http.calls_for("GET", "/api/users")[0]["params"] == {"page": 2, "limit": 2, "search": "a"}


def test_unknown_entity_is_not_found(client: TestClient, fake_http) -> None:
    _login(client, fake_http)

    response = client.get("/api/admin/widgets")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_forbidden_list_returns_error_state(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    fake_http.routes[("GET", "/api/news")] = FakeResponse(403, {"error": "forbidden"})

    response = client.get("/api/admin/news")

    assert response.status_code == 403
    body = response.json()
    assert body["ok"] is False
    assert body["state"] == "error"
    assert body["records"] == []
    assert body["error"] == "Permission denied."


def test_invalid_create_returns_field_errors(client: TestClient, fake_http) -> None:
    _login(client, fake_http)

    response = client.post("/api/admin/awards", json={"awardName": "Best Poster"})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["details"]["errors"] == {"awardee": "Awardee name is required."}
    assert fake_http.calls_for("POST", "/api/awards") == []


def test_delete_requires_confirm_flag(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    fake_http.routes[("DELETE", "/api/users/1")] = FakeResponse(200, None)
    fake_http.routes[("GET", "/api/users")] = FakeResponse(200, list_payload(USERS[1:]))

    refused = client.delete("/api/admin/users/1")

    assert refused.status_code == 409
    assert refused.json()["error"]["code"] == "CONFIRMATION_REQUIRED"
    assert fake_http.calls_for("DELETE", "/api/users/1") == []

    accepted = client.delete("/api/admin/users/1", params={"confirm": "true"})

    assert accepted.status_code == 200
    assert [record["id"] for record in accepted.json()["records"]] == [2]
    assert len(fake_http.calls_for("DELETE", "/api/users/1")) == 1


@pytest.mark.parametrize(
    ("backend_status", "backend_body", "expected_error"),
    [
        (403, {"error": "nope"}, "Permission denied."),
        (500, {"error": "Delete failed upstream"}, "Delete failed upstream"),
    ],
)
def test_confirmed_delete_rejected_by_backend_keeps_its_status(
    client: TestClient, fake_http, backend_status: int, backend_body: dict, expected_error: str
) -> None:
    _login(client, fake_http)
    fake_http.routes[("DELETE", "/api/users/1")] = FakeResponse(backend_status, backend_body)
    fake_http.routes[("GET", "/api/users")] = FakeResponse(200, list_payload(USERS))

    response = client.delete("/api/admin/users/1", params={"confirm": "true"})

    assert response.status_code == backend_status
    body = response.json()
    assert body["ok"] is False
    assert body["state"] == "error"
    assert body["error"] == expected_error
    assert len(body["records"]) == 2
    assert len(fake_http.calls_for("DELETE", "/api/users/1")) == 1


def test_team_delete_requires_confirm_flag(client: TestClient, fake_http) -> None:
    _login(client, fake_http)

    response = client.delete("/api/admin/team/graduates/7")

    assert response.status_code == 409
    assert fake_http.calls_for("DELETE", "/api/team/graduates/7") == []


def test_team_member_create_routes_by_type(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    fake_http.routes[("POST", "/api/team/graduates")] = FakeResponse(201, {"data": {"id": 7, "name": "Zhang Wei"}})
    for path in ("/api/team/pi", "/api/team/researchers"):
        fake_http.routes[("GET", path)] = FakeResponse(200, [])
    fake_http.routes[("GET", "/api/team/graduates")] = FakeResponse(200, [{"id": 7, "name": "Zhang Wei"}])

    response = client.post("/api/admin/team/graduates", json={"name": "Zhang Wei"})

    assert response.status_code == 200
    assert response.json()["records"] == [{"id": 7, "name": "Zhang Wei", "type": "graduate"}]
    assert client.post("/api/admin/team/alumni", json={"name": "X"}).status_code == 404


def test_backend_unauthorized_ends_session(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    fake_http.routes[("GET", "/api/tools")] = FakeResponse(401, {"error": "Token expired"})

    response = client.get("/api/admin/tools")

    assert response.status_code == 401
    assert response.json()["error"]["details"]["login_url"] == "/login"
    assert len(fake_http.calls_for("GET", "/api/tools")) == 1
    assert client.get("/api/admin/session").json()["authenticated"] is False


def test_upload_rejects_non_excel_file(client: TestClient, fake_http) -> None:
    _login(client, fake_http)

    response = _upload(client, "awards", "report.pdf", b"%PDF-1.7")

    assert response.status_code == 400
    assert response.json()["error"] == {
        "code": "UNSUPPORTED_FILE_TYPE",
        "message": "Select an Excel file (.xlsx or .xls).",
    }
    assert fake_http.calls_for("POST", "/api/awards/import") == []


def test_single_sheet_upload_submits_directly(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    fake_http.routes[("POST", "/api/awards/import")] = FakeResponse(200, {"count": 1})
    fake_http.routes[("GET", "/api/awards")] = FakeResponse(200, list_payload(AWARDS))
    content = build_workbook({"Sheet1": [["获奖人员"], ["Li Na"]]})

    response = _upload(client, "award", "awards.xlsx", content)

    body = response.json()
    assert response.status_code == 200
    assert body["status"] == "submitted"
    assert body["outcome"] == {"success": True, "message": "Imported 1 record.", "count": 1}
    assert body["refetched"]["entity"] == "awards"
    assert len(body["refetched"]["records"]) == 2


def test_multi_sheet_import_selection_and_confirm(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    fake_http.routes[("POST", "/api/awards/import")] = FakeResponse(200, {"imported": 2})
    fake_http.routes[("GET", "/api/awards")] = FakeResponse(200, list_payload(AWARDS))

    uploaded = _upload(client, "awards", "awards_2024.xlsx", _two_sheet_workbook())

    body = uploaded.json()
    assert uploaded.status_code == 200
    assert body["status"] == "selection_required"
    assert body["selected"] == "Awards 2023"
    assert [sheet["name"] for sheet in body["sheets"]] == ["Awards 2023", "Awards 2024"]
    assert body["preview"]["sheet"] == "Awards 2023"
    assert fake_http.calls_for("POST", "/api/awards/import") == []
    token = body["token"]

    switched = client.get(f"/api/admin/imports/awards/pending/{token}", params={"sheet": "Awards 2024"})
    assert switched.json()["selected"] == "Awards 2024"
    assert switched.json()["preview"]["row_count"] == 3

    missing = client.get(f"/api/admin/imports/awards/pending/{token}", params={"sheet": "Nope"})
    assert missing.status_code == 400

    confirmed = client.post(f"/api/admin/imports/awards/pending/{token}/confirm")

    result = confirmed.json()
    assert confirmed.status_code == 200
    assert result["outcome"] == {"success": True, "message": "Imported 2 records.", "count": 2}
    assert result["refetched"]["entity"] == "awards"
    call = fake_http.calls_for("POST", "/api/awards/import")[0]
    assert call["data"] == {"sheetName": "Awards 2024"}
    assert call["files"]["file"][0] == "awards_2024.xlsx"
    assert read_workbook("upload.xlsx", call["files"]["file"][1]).worksheet_names == ["Awards 2024"]

    gone = client.get(f"/api/admin/imports/awards/pending/{token}")
    assert gone.status_code == 404
    assert gone.json()["error"]["code"] == "PENDING_IMPORT_NOT_FOUND"

    notices = client.get("/api/admin/notifications").json()["notifications"]
    assert {"message": "Imported 2 records.", "level": "success"} in notices
    assert client.get("/api/admin/notifications").json()["notifications"] == []


def test_overlapping_confirms_upload_once(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    fake_http.routes[("GET", "/api/awards")] = FakeResponse(200, list_payload(AWARDS))

    def _slow_import(**_kwargs) -> FakeResponse:
        time.sleep(0.3)
        return FakeResponse(200, {"count": 1})

    fake_http.routes[("POST", "/api/awards/import")] = _slow_import
    token = _upload(client, "awards", "awards.xlsx", _two_sheet_workbook()).json()["token"]
    statuses: list[int] = []

    def _confirm() -> None:
        statuses.append(client.post(f"/api/admin/imports/awards/pending/{token}/confirm").status_code)

    workers = [threading.Thread(target=_confirm) for _ in range(2)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert sorted(statuses) == [200, 404]
    assert len(fake_http.calls_for("POST", "/api/awards/import")) == 1


def test_confirm_with_unknown_sheet_keeps_pending_import(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    token = _upload(client, "awards", "awards.xlsx", _two_sheet_workbook()).json()["token"]

    response = client.post(f"/api/admin/imports/awards/pending/{token}/confirm", json={"sheet": "Nope"})

    assert response.status_code == 400
    assert client.get(f"/api/admin/imports/awards/pending/{token}").json()["selected"] == "Awards 2023"


def test_confirm_without_selection_keeps_pending_import(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    token = _upload(client, "awards", "awards.xlsx", _two_sheet_workbook()).json()["token"]

    response = client.post(f"/api/admin/imports/awards/pending/{token}/confirm", json={"sheet": None})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "WORKSHEET_SELECTION_REQUIRED"
    assert client.get(f"/api/admin/imports/awards/pending/{token}").status_code == 200
    assert fake_http.calls_for("POST", "/api/awards/import") == []


def test_cancel_discards_pending_import(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    token = _upload(client, "graduates", "grads.xlsx", _two_sheet_workbook()).json()["token"]

    cancelled = client.delete(f"/api/admin/imports/graduates/pending/{token}")

    assert cancelled.json() == {"ok": True, "status": "cancelled"}
    assert client.get(f"/api/admin/imports/graduates/pending/{token}").status_code == 404
    assert fake_http.calls_for("POST", "/api/team/graduates/import") == []


def test_pending_token_is_bound_to_its_target(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    token = _upload(client, "awards", "awards.xlsx", _two_sheet_workbook()).json()["token"]

    assert client.get(f"/api/admin/imports/graduates/pending/{token}").status_code == 404


def test_template_download(client: TestClient, fake_http) -> None:
    _login(client, fake_http)

    response = client.get("/api/admin/imports/graduates/template")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(XLSX_CONTENT_TYPE)
    assert "graduates_import_template.xlsx" in response.headers["content-disposition"]
    sheet = read_workbook("template.xlsx", response.content).worksheets[0]
    assert sheet.grid[0] == list(TEMPLATE_HEADERS["graduates"])


def test_unknown_import_target(client: TestClient, fake_http) -> None:
    _login(client, fake_http)

    response = _upload(client, "publications", "pubs.xlsx", _two_sheet_workbook())

    assert response.status_code == 404


def test_dashboard_requires_login(client: TestClient, fake_http) -> None:
    response = client.get("/api/admin/dashboard")

    assert response.status_code == 401
    assert fake_http.calls == []


def test_dashboard_returns_overview_and_recent_items(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    fake_http.routes[("GET", "/api/dashboard/stats")] = FakeResponse(
        200,
        {
            "overview": {"userCount": 3, "publicationCount": 10, "toolCount": 2, "newsCount": 5, "researcherCount": 6},
            "recent": {"tools": [{"id": 4, "name": "SeqKit", "description": "FASTA toolkit"}]},
        },
    )

    response = client.get("/api/admin/dashboard")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["overview"]["researcherCount"] == 6
    assert body["recent"]["tools"] == [{"id": 4, "name": "SeqKit", "description": "FASTA toolkit"}]
    assert body["recent"]["news"] == []


def test_dashboard_backend_failure_uses_error_envelope(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    fake_http.routes[("GET", "/api/dashboard/stats")] = FakeResponse(500, {"error": "Stats unavailable"})

    response = client.get("/api/admin/dashboard")

    assert response.status_code == 500
    assert response.json()["error"]["message"] == "Stats unavailable"


def test_footer_put_creates_then_updates(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    stored: dict = {}
    footer_form = {
        "title": "Bioinformatics Lab",
        "description": "Computational biology at scale.",
        "copyright": "© 2025 Bioinformatics Lab",
        "links": [{"name": "University", "url": "https://uni.test"}],
    }

    def _get(**_kwargs):
        return FakeResponse(200, {"success": True, "data": dict(stored) or None})

    def _save(**kwargs):
        stored.update(kwargs["json"], id=7)
        return FakeResponse(200, {"success": True, "data": dict(stored)})

    fake_http.routes[("GET", "/api/footer")] = _get
    fake_http.routes[("POST", "/api/footer")] = _save
    fake_http.routes[("PUT", "/api/footer")] = _save

    assert client.get("/api/admin/footer").json() == {"ok": True, "footer": None}

    created = client.put("/api/admin/footer", json=footer_form)
    assert created.status_code == 200
    assert created.json()["footer"]["id"] == 7
    assert len(fake_http.calls_for("POST", "/api/footer")) == 1

    updated = client.put("/api/admin/footer", json={**footer_form, "title": "Genomics Lab"})
    assert updated.status_code == 200
    assert updated.json()["footer"]["title"] == "Genomics Lab"
    assert fake_http.calls_for("PUT", "/api/footer")[0]["json"]["id"] == 7
    assert len(fake_http.calls_for("POST", "/api/footer")) == 1

    notices = client.get("/api/admin/notifications").json()["notifications"]
    assert [notice["message"] for notice in notices] == ["Footer saved.", "Footer saved."]


def test_footer_put_without_title_is_rejected(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    fake_http.routes[("GET", "/api/footer")] = FakeResponse(200, {"success": True, "data": None})

    response = client.put("/api/admin/footer", json={"description": "Lab site", "copyright": "© 2025"})

    assert response.status_code == 422
    assert response.json()["error"]["details"]["errors"] == {"title": "Title is required."}
    assert fake_http.calls_for("POST", "/api/footer") == []


def test_footer_delete_requires_confirm_flag(client: TestClient, fake_http) -> None:
    _login(client, fake_http)
    fake_http.routes[("DELETE", "/api/footer")] = FakeResponse(200, {"success": True})

    refused = client.delete("/api/admin/footer/7")
    assert refused.status_code == 409
    assert fake_http.calls_for("DELETE", "/api/footer") == []

    response = client.delete("/api/admin/footer/7?confirm=true")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "footer": None}
    assert fake_http.calls_for("DELETE", "/api/footer")[0]["params"] == {"id": 7}
