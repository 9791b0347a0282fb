"""Agent submissions. Avatar goes to the blob store first; the row is written only after that succeeds."""

import logging
from dataclasses import dataclass
from datetime import datetime

from apps.api.config import Settings
from apps.api.db import Store
from apps.api.models.agent import Skill
from apps.api.schemas.agents import AgentCreate, AgentOut
from apps.api.services import repo
from apps.api.services.blob_store import BlobStore, safe_filename
from apps.api.services.errors import InternalError, InvalidArgument
from apps.api.services.identity import require_address
from apps.api.services.rate_limit import QuotaKind, enforce_quota

_LOG = logging.getLogger(__name__)

NAME_MAX_LENGTH = 255
OTHER_SKILL_MAX_LENGTH = 255
DEFAULT_AVATAR_CONTENT_TYPE = "image/jpeg"

REQUIRED_FIELDS = ("name", "url", "description", "why_hunt", "skill")


@dataclass(frozen=True)
class AvatarUpload:
    filename: str
    content_type: str
    data: bytes


def _clean(value: str | None) -> str:
    return (value or "").strip()


def avatar_key(filename: str | None, now: datetime) -> str:
    """avatars/agent-<epoch ms>-<safe filename>."""
    return f"avatars/agent-{int(now.timestamp() * 1000)}-{safe_filename(filename)}"


def validate_fields(fields: AgentCreate, avatar: AvatarUpload | None) -> dict[str, str | None]:
    """Return cleaned column values. Raises InvalidArgument naming what is missing or malformed."""
    missing = [name for name in REQUIRED_FIELDS if not _clean(getattr(fields, name))]
    has_avatar = avatar is not None and len(avatar.data) > 0
    if not has_avatar and not _clean(fields.fallback_avatar_ref):
        missing.append("avatar")
    if missing:
        raise InvalidArgument(f"Missing required fields or avatar: {', '.join(missing)}.")

    try:
        skill = Skill(_clean(fields.skill).upper())
    except ValueError:
        raise InvalidArgument("Invalid skill.") from None
    other = _clean(fields.other_skill_detail) or None
    if skill == Skill.OTHER and not other:
        raise InvalidArgument("Please specify the skill.")
    if skill != Skill.OTHER:
        other = None

    name = _clean(fields.name)
    if len(name) > NAME_MAX_LENGTH:
        raise InvalidArgument(f"Name must be at most {NAME_MAX_LENGTH} characters.")
    if other is not None and len(other) > OTHER_SKILL_MAX_LENGTH:
        raise InvalidArgument(f"Skill detail must be at most {OTHER_SKILL_MAX_LENGTH} characters.")

    return {
        "name": name,
        "url": _clean(fields.url),
        "description": _clean(fields.description),
        "why_hunt": _clean(fields.why_hunt),
        "skill": skill.value,
        "other_skill_detail": other,
    }


def create_agent(
    store: Store,
    blob_store: BlobStore,
    fields: AgentCreate,
    avatar: AvatarUpload | None = None,
    *,
    settings: Settings,
    now: datetime | None = None,
) -> AgentOut:
    """
    Validate, check the creation quota, store the avatar, then insert the agent.
    Raises Unauthenticated, InvalidArgument, QuotaExceeded, InternalError (blob store).
    """
    address = require_address(fields.author_address)
    values = validate_fields(fields, avatar)
    now = now or repo.utcnow()

    # Pre-flight; read-only so a rejected submission never touches the blob store.
    with store.session() as session:
        author = repo.get_user_by_address(session, address)
        enforce_quota(session, author.id if author else None, QuotaKind.CREATE, settings=settings, now=now)

    if avatar is not None and avatar.data:
        key = avatar_key(avatar.filename, now)
        try:
            avatar_url = blob_store.put(key, avatar.data, avatar.content_type or DEFAULT_AVATAR_CONTENT_TYPE)
        except Exception as e:
            _LOG.exception("avatar upload failed key=%s", key)
            raise InternalError(f"Avatar upload failed: {e}") from e
    else:
        avatar_url = _clean(fields.fallback_avatar_ref)

    with store.session() as session:
        author = repo.upsert_user(session, address, now=now)
        agent = repo.insert_agent(session, author_id=author.id, created_at=now, avatar_url=avatar_url, **values)
        _LOG.info("agent created id=%s author_id=%s skill=%s", agent.id, author.id, agent.skill)
        return AgentOut(
            id=agent.id,
            name=agent.name,
            avatar_url=agent.avatar_url,
            url=agent.url,
            description=agent.description,
            why_hunt=agent.why_hunt,
            skill=agent.skill,
            other_skill_detail=agent.other_skill_detail,
            author_id=agent.author_id,
            created_at=agent.created_at,
        )
