from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, replace
from typing import Any, ClassVar

MEMBER_TYPE_PI = "pi"
MEMBER_TYPE_RESEARCHER = "researcher"
MEMBER_TYPE_GRADUATE = "graduate"
MEMBER_TYPES = (MEMBER_TYPE_PI, MEMBER_TYPE_RESEARCHER, MEMBER_TYPE_GRADUATE)

_RECORD_BASE_FIELDS = ("id", "extra")


def camel_case(name: str) -> str:
    head, *rest = str(name).split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def coerce_record_id(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class Record:
    """Flat backend record. Unknown backend keys are carried in ``extra``."""

    FIELD_ALIASES: ClassVar[dict[str, str]] = {}

    id: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def api_key(cls, attr: str) -> str:
        return cls.FIELD_ALIASES.get(attr, camel_case(attr))

    @classmethod
    def _data_fields(cls) -> list[str]:
        return [item.name for item in fields(cls) if item.name not in _RECORD_BASE_FIELDS]

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Record":
        source = dict(payload or {})
        values: dict[str, Any] = {"id": coerce_record_id(source.pop("id", None))}
        for attr in cls._data_fields():
            key = cls.api_key(attr)
            if key in source:
                values[attr] = source.pop(key)
        values["extra"] = source
        return cls(**values)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = dict(self.extra)
        if self.id is not None:
            payload["id"] = self.id
        for attr in self._data_fields():
            value = getattr(self, attr)
            if value is not None:
                payload[self.api_key(attr)] = value
        return payload


@dataclass(frozen=True)
class User(Record):
    username: str | None = None
    email: str | None = None
    role_type: str | None = None
    name: str | None = None
    avatar: str | None = None
    phone: str | None = None
    is_active: bool | None = None
    last_login: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Publication(Record):
    title: str | None = None
    authors: str | None = None
    journal: str | None = None
    year: int | None = None
    type: str | None = None
    content: str | None = None
    doi: str | None = None
    url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Tool(Record):
    name: str | None = None
    description: str | None = None
    short_description: str | None = None
    category: str | None = None
    version: str | None = None
    url: str | None = None
    image: str | None = None
    tags: str | None = None
    homepage: str | None = None
    repository: str | None = None
    documentation: str | None = None
    status: str | None = None
    release_date: str | None = None
    last_update: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class News(Record):
    title: str | None = None
    content: str | None = None
    summary: str | None = None
    image: str | None = None
    is_pinned: bool | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class TeamMember(Record):
    FIELD_ALIASES: ClassVar[dict[str, str]] = {"member_type": "type"}

    member_type: str | None = None
    name: str | None = None
    photo: str | None = None
    email: str | None = None
    phone: str | None = None
    title: str | None = None
    experience: str | None = None
    direction: str | None = None
    position: str | None = None
    company: str | None = None
    graduation_year: int | None = None
    has_paper: bool | None = None
    enrollment_date: str | None = None
    graduation_date: str | None = None
    advisor: str | None = None
    degree: str | None = None
    discipline: str | None = None
    thesis_title: str | None = None
    remarks: str | None = None


@dataclass(frozen=True)
class AwardWinner(Record):
    serial_number: str | None = None
    awardee: str | None = None
    award_date: str | None = None
    award_name: str | None = None
    advisor: str | None = None
    remarks: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass(frozen=True)
class Article(Record):
    title: str | None = None
    authors: str | None = None
    journal: str | None = None
    published_date: str | None = None
    doi: str | None = None
    abstract: str | None = None
    keywords: str | None = None
    impact_factor: float | None = None
    category: str | None = None
    citation_count: int | None = None
    is_open_access: bool | None = None
    created_at: str | None = None
    updated_at: str | None = None


def parse_footer_links(value: Any) -> list[dict[str, str]]:
    """Footer links arrive as a list, a JSON string, or a JSON string of a JSON string."""
    links = value
    for _ in range(2):
        if not isinstance(links, str):
            break
        try:
            links = json.loads(links) if links.strip() else []
        except ValueError:
            return []
    if not isinstance(links, list):
        return []
    return [
        {"name": str(item.get("name") or "").strip(), "url": str(item.get("url") or "").strip()}
        for item in links
        if isinstance(item, dict)
    ]


@dataclass(frozen=True)
class Footer(Record):
    title: str | None = None
    description: str | None = None
    copyright: str | None = None
    icp: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    links: list[dict[str, str]] | None = None
    is_active: bool | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Footer":
        footer = super().from_payload(payload)
        return replace(footer, links=parse_footer_links(footer.links))
