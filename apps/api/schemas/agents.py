"""Agent directory schemas. JSON uses camelCase (hasMore, isUpvoted, ...); Python uses snake_case."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for API payloads: extra fields rejected, camelCase on the wire."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)


class AgentCreate(CamelModel):
    """Fields of POST /entities (multipart). Everything optional here; the service reports what is missing."""

    name: str | None = None
    url: str | None = None
    description: str | None = None
    why_hunt: str | None = None
    skill: str | None = None
    other_skill_detail: str | None = None
    fallback_avatar_ref: str | None = None
    author_address: str | None = None


class AgentOut(CamelModel):
    """Created agent row."""

    id: int
    name: str
    avatar_url: str
    url: str
    description: str
    why_hunt: str
    skill: str
    other_skill_detail: str | None = None
    author_id: int
    created_at: datetime


class AuthorOut(CamelModel):
    address: str
    display_name: str


class ActorOut(CamelModel):
    """One upvoter or flagger."""

    address: str
    display_name: str
    reason: str | None = None
    created_at: datetime


class EnrichedAgent(CamelModel):
    """Agent with ledger aggregates and the viewer's own flags."""

    id: int
    name: str
    avatar_url: str
    url: str
    description: str
    why_hunt: str
    skill: str
    other_skill_detail: str | None = None
    created_at: datetime
    author: AuthorOut
    upvotes: list[ActorOut] = Field(default_factory=list)
    upvote_count: int = 0
    duplicate_flags: list[ActorOut] = Field(default_factory=list)
    duplicate_flag_count: int = 0
    spam_flags: list[ActorOut] = Field(default_factory=list)
    spam_flag_count: int = 0
    is_upvoted: bool = False
    is_duplicate_flagged: bool = False
    is_spam_flagged: bool = False


class AgentPage(CamelModel):
    """One page of GET /entities."""

    entities: list[EnrichedAgent] = Field(default_factory=list)
    has_more: bool = False
