from __future__ import annotations

from dataclasses import dataclass

from labsite_admin.domain.models import (
    MEMBER_TYPE_GRADUATE,
    MEMBER_TYPE_PI,
    MEMBER_TYPE_RESEARCHER,
    Article,
    AwardWinner,
    News,
    Publication,
    Record,
    TeamMember,
    Tool,
    User,
)
from labsite_admin.domain.validation import (
    FormValidator,
    validate_article_form,
    validate_award_form,
    validate_news_form,
    validate_publication_form,
    validate_team_member_form,
    validate_tool_form,
    validate_user_form,
)

ENTITY_USERS = "users"
ENTITY_PUBLICATIONS = "publications"
ENTITY_TOOLS = "tools"
ENTITY_NEWS = "news"
ENTITY_AWARDS = "awards"
ENTITY_ARTICLES = "articles"
ENTITY_TEAM = "team"


@dataclass(frozen=True)
class EntityDefinition:
    key: str
    label: str
    endpoint: str
    record_type: type[Record]
    validator: FormValidator

    def item_endpoint(self, record_id: int) -> str:
        return f"{self.endpoint}/{int(record_id)}"


ENTITIES: dict[str, EntityDefinition] = {
    ENTITY_USERS: EntityDefinition(ENTITY_USERS, "users", "/api/users", User, validate_user_form),
    ENTITY_PUBLICATIONS: EntityDefinition(
        ENTITY_PUBLICATIONS, "publications", "/api/publications", Publication, validate_publication_form
    ),
    ENTITY_TOOLS: EntityDefinition(ENTITY_TOOLS, "tools", "/api/tools", Tool, validate_tool_form),
    ENTITY_NEWS: EntityDefinition(ENTITY_NEWS, "news", "/api/news", News, validate_news_form),
    ENTITY_AWARDS: EntityDefinition(ENTITY_AWARDS, "awards", "/api/awards", AwardWinner, validate_award_form),
    ENTITY_ARTICLES: EntityDefinition(ENTITY_ARTICLES, "articles", "/api/articles", Article, validate_article_form),
}

# Fetch and merge order of the team fan-out.
TEAM_MEMBER_ENTITIES: dict[str, EntityDefinition] = {
    MEMBER_TYPE_PI: EntityDefinition(
        MEMBER_TYPE_PI, "principal investigators", "/api/team/pi", TeamMember, validate_team_member_form
    ),
    MEMBER_TYPE_RESEARCHER: EntityDefinition(
        MEMBER_TYPE_RESEARCHER, "researchers", "/api/team/researchers", TeamMember, validate_team_member_form
    ),
    MEMBER_TYPE_GRADUATE: EntityDefinition(
        MEMBER_TYPE_GRADUATE, "graduates", "/api/team/graduates", TeamMember, validate_team_member_form
    ),
}

_MEMBER_TYPE_ALIASES = {
    "pi": MEMBER_TYPE_PI,
    "pis": MEMBER_TYPE_PI,
    "researcher": MEMBER_TYPE_RESEARCHER,
    "researchers": MEMBER_TYPE_RESEARCHER,
    "graduate": MEMBER_TYPE_GRADUATE,
    "graduates": MEMBER_TYPE_GRADUATE,
}


def get_entity(key: str) -> EntityDefinition:
    normalized = str(key or "").strip().lower()
    if normalized not in ENTITIES:
        raise KeyError(f"Unknown entity: {key}")
    return ENTITIES[normalized]


def normalize_member_type(value: str) -> str:
    normalized = _MEMBER_TYPE_ALIASES.get(str(value or "").strip().lower())
    if normalized is None:
        raise ValueError(f"Unknown team member type: {value}")
    return normalized


def get_team_member_entity(member_type: str) -> EntityDefinition:
    return TEAM_MEMBER_ENTITIES[normalize_member_type(member_type)]
