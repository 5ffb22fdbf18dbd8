from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from typing import Any

from labsite_admin.backend.client import BackendClient
from labsite_admin.core.defaults import DEFAULT_PAGE_SIZE
from labsite_admin.domain.entities import TEAM_MEMBER_ENTITIES, EntityDefinition, get_team_member_entity
from labsite_admin.domain.models import Footer, Record, TeamMember


@dataclass(frozen=True)
class PageInfo:
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    total: int = 0
    total_pages: int = 0
    has_next: bool = False
    has_prev: bool = False

    @classmethod
    def from_payload(cls, payload: Any, *, page: int, limit: int, record_count: int) -> "PageInfo":
        if not isinstance(payload, dict):
            return cls(page=1, limit=limit, total=record_count, total_pages=1 if record_count else 0)
        total = _as_int(payload.get("total"), record_count)
        resolved_page = _as_int(payload.get("page", payload.get("currentPage")), page)
        resolved_limit = _as_int(payload.get("limit", payload.get("pageSize")), limit) or limit
        total_pages = _as_int(payload.get("totalPages"), -(-total // resolved_limit) if resolved_limit else 0)
        return cls(
            page=resolved_page,
            limit=resolved_limit,
            total=total,
            total_pages=total_pages,
            has_next=bool(payload.get("hasNext", resolved_page < total_pages)),
            has_prev=bool(payload.get("hasPrev", resolved_page > 1)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
        }


@dataclass(frozen=True)
class ListResult:
    records: list[Record] = field(default_factory=list)
    page_info: PageInfo = field(default_factory=PageInfo)


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(default)


def extract_records(payload: Any) -> list[dict[str, Any]]:
    """Accept a bare list, ``{data: [...]}``, ``{data: {...}}`` or a single object."""
    if payload is None:
        return []
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    if isinstance(payload, dict):
        if "data" in payload:
            return extract_records(payload["data"])
        return [payload]
    return []


class EntityRepository:
    def __init__(self, client: BackendClient, entity: EntityDefinition) -> None:
        self.client = client
        self.entity = entity

    def _record(self, payload: Any) -> Record | None:
        items = extract_records(payload)
        return self.entity.record_type.from_payload(items[0]) if items else None

    def list(self, *, page: int = 1, limit: int = DEFAULT_PAGE_SIZE, search: str = "") -> ListResult:
        params: dict[str, Any] = {"page": int(page), "limit": int(limit)}
        if str(search or "").strip():
            params["search"] = str(search).strip()
        payload = self.client.get(self.entity.endpoint, params=params)
        records = [self.entity.record_type.from_payload(item) for item in extract_records(payload)]
        pagination = payload.get("pagination") if isinstance(payload, dict) else None
        page_info = PageInfo.from_payload(pagination, page=int(page), limit=int(limit), record_count=len(records))
        return ListResult(records=records, page_info=page_info)

    def get(self, record_id: int) -> Record | None:
        return self._record(self.client.get(self.entity.item_endpoint(record_id)))

    def create(self, form: dict[str, Any]) -> Record | None:
        return self._record(self.client.post(self.entity.endpoint, json=dict(form)))

    def update(self, record_id: int, form: dict[str, Any]) -> Record | None:
        return self._record(self.client.put(self.entity.item_endpoint(record_id), json=dict(form)))

    def delete(self, record_id: int) -> None:
        self.client.delete(self.entity.item_endpoint(record_id))


class TeamRepository:
    """Team members live behind three endpoints; reads fan out and merge."""

    def __init__(self, client: BackendClient) -> None:
        self.client = client
        self._members = {
            member_type: EntityRepository(client, entity) for member_type, entity in TEAM_MEMBER_ENTITIES.items()
        }

    def _fetch_member_type(self, member_type: str) -> list[Record]:
        payload = self.client.get(TEAM_MEMBER_ENTITIES[member_type].endpoint)
        records = []
        for item in extract_records(payload):
            member = TeamMember.from_payload(item)
            records.append(replace(member, member_type=member_type))
        return records

    def list(self, *, page: int = 1, limit: int = DEFAULT_PAGE_SIZE, search: str = "") -> ListResult:
        member_types = list(TEAM_MEMBER_ENTITIES)
        with ThreadPoolExecutor(max_workers=len(member_types), thread_name_prefix="team-fetch") as executor:
            futures = [executor.submit(self._fetch_member_type, member_type) for member_type in member_types]
            # result() re-raises the first branch failure in merge order.
            batches = [future.result() for future in futures]
        records: list[Record] = [record for batch in batches for record in batch]
        needle = str(search or "").strip().lower()
        if needle:
            records = [record for record in records if needle in str(getattr(record, "name", "") or "").lower()]
        page_info = PageInfo(page=1, limit=max(int(limit), len(records)), total=len(records), total_pages=1 if records else 0)
        return ListResult(records=records, page_info=page_info)

    def repository_for(self, member_type: str) -> EntityRepository:
        return self._members[get_team_member_entity(member_type).key]

    def create(self, member_type: str, form: dict[str, Any]) -> Record | None:
        return self.repository_for(member_type).create(form)

    def update(self, member_type: str, record_id: int, form: dict[str, Any]) -> Record | None:
        return self.repository_for(member_type).update(record_id, form)

    def delete(self, member_type: str, record_id: int) -> None:
        self.repository_for(member_type).delete(record_id)


class FooterRepository:
    """The site footer is a single record; saving creates it once, then updates it."""

    endpoint = "/api/footer"

    def __init__(self, client: BackendClient) -> None:
        self.client = client

    def get(self) -> Footer | None:
        items = extract_records(self.client.get(self.endpoint))
        return Footer.from_payload(items[0]) if items else None

    def save(self, form: dict[str, Any]) -> Footer | None:
        body = dict(form)
        if body.get("id") not in (None, ""):
            payload = self.client.put(self.endpoint, json=body)
        else:
            body.pop("id", None)
            payload = self.client.post(self.endpoint, json=body)
        items = extract_records(payload)
        return Footer.from_payload(items[0]) if items else None

    def delete(self, footer_id: int) -> None:
        self.client.delete(self.endpoint, params={"id": int(footer_id)})
