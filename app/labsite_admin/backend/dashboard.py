from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from labsite_admin.backend.client import BackendClient
from labsite_admin.domain.models import News, Publication, Record, Tool

DASHBOARD_STATS_ENDPOINT = "/api/dashboard/stats"
RECENT_ITEM_LIMIT = 5
OVERVIEW_COUNTS = ("userCount", "publicationCount", "toolCount", "newsCount", "researcherCount")


def _count(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


def _recent(items: Any, record_type: type[Record]) -> list[Record]:
    if not isinstance(items, list):
        return []
    return [record_type.from_payload(item) for item in items if isinstance(item, dict)][:RECENT_ITEM_LIMIT]


@dataclass(frozen=True)
class DashboardStats:
    """Site totals plus the newest news, publications and tools."""

    overview: dict[str, int] = field(default_factory=dict)
    recent_news: list[Record] = field(default_factory=list)
    recent_publications: list[Record] = field(default_factory=list)
    recent_tools: list[Record] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> "DashboardStats":
        body = payload.get("data", payload) if isinstance(payload, dict) else {}
        body = body if isinstance(body, dict) else {}
        overview = body.get("overview") if isinstance(body.get("overview"), dict) else {}
        recent = body.get("recent") if isinstance(body.get("recent"), dict) else {}
        return cls(
            overview={key: _count(overview.get(key)) for key in OVERVIEW_COUNTS},
            recent_news=_recent(recent.get("news"), News),
            recent_publications=_recent(recent.get("publications"), Publication),
            recent_tools=_recent(recent.get("tools"), Tool),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "overview": dict(self.overview),
            "recent": {
                "news": [record.to_payload() for record in self.recent_news],
                "publications": [record.to_payload() for record in self.recent_publications],
                "tools": [record.to_payload() for record in self.recent_tools],
            },
        }


def fetch_dashboard_stats(client: BackendClient) -> DashboardStats:
    return DashboardStats.from_payload(client.get(DASHBOARD_STATS_ENDPOINT))
