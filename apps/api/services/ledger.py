"""Action ledger: toggle upvote / duplicate / spam rows per (user, agent, kind).

Applying an action the user already has removes it; otherwise the row is inserted.
The composite unique constraint is the only guard against double inserts: a losing
concurrent insert is reported as "added" with the row that won.
"""

import enum
import logging
import re
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from apps.api.config import Settings
from apps.api.db import Store
from apps.api.models.agent_action import ActionKind, AgentAction
from apps.api.services import repo
from apps.api.services.errors import InvalidArgument, NotFound
from apps.api.services.identity import require_address
from apps.api.services.rate_limit import QuotaKind, enforce_quota

_LOG = logging.getLogger(__name__)


class ActionState(str, enum.Enum):
    ADDED = "added"
    REMOVED = "removed"


@dataclass(frozen=True)
class ActionRecord:
    id: int
    agent_id: int
    kind: ActionKind
    reason: str | None
    created_at: datetime
    address: str


@dataclass(frozen=True)
class ActionResult:
    state: ActionState
    action: ActionRecord | None = None


@dataclass(frozen=True)
class ViewerActions:
    upvoted: bool = False
    duplicate_flagged: bool = False
    spam_flagged: bool = False


def parse_action_kind(value: str | ActionKind | None) -> ActionKind:
    """Map 'upvote' | 'duplicate' | 'spam' to ActionKind. Raises InvalidArgument otherwise."""
    try:
        return ActionKind(value)
    except ValueError:
        raise InvalidArgument("Invalid action.") from None


def duplicate_url_pattern(settings: Settings) -> re.Pattern[str]:
    """Canonical agent page URL on this site; scheme optional. Group 1 is the agent id."""
    return re.compile(rf"^(?:https?://)?{re.escape(settings.site_domain)}/agents/(\d+)$")


def validate_reason(
    session: Session,
    kind: ActionKind,
    reason: str | None,
    agent_id: int,
    *,
    settings: Settings,
) -> str | None:
    """
    Return the reason to store (stripped; None when blank and optional).
    upvote: required. duplicate: required, must be the page URL of another existing agent.
    spam: optional. All kinds are capped at settings.reason_max_length.
    """
    text = (reason or "").strip()
    if len(text) > settings.reason_max_length:
        raise InvalidArgument(f"Reason must be at most {settings.reason_max_length} characters.")
    if kind == ActionKind.UPVOTE:
        if not text:
            raise InvalidArgument("A reason is required to upvote.")
        return text
    if kind == ActionKind.DUPLICATE:
        example = f"{settings.site_url.rstrip('/')}/agents/123"
        m = duplicate_url_pattern(settings).match(text)
        if not m:
            raise InvalidArgument(f"A valid agent URL is required (e.g., {example}).")
        original_id = int(m.group(1))
        if original_id == agent_id:
            raise InvalidArgument("An agent cannot be a duplicate of itself.")
        if not repo.agent_exists(session, original_id):
            raise InvalidArgument(f"Agent {original_id} referenced as original does not exist.")
        return text
    return text or None


def _record(row: AgentAction, address: str) -> ActionRecord:
    return ActionRecord(
        id=row.id,
        agent_id=row.agent_id,
        kind=ActionKind(row.kind),
        reason=row.reason,
        created_at=row.created_at,
        address=address,
    )


def apply_action(
    store: Store,
    address: str | None,
    agent_id: int,
    kind: str | ActionKind,
    reason: str | None = None,
    *,
    settings: Settings,
    now: datetime | None = None,
) -> ActionResult:
    """
    Toggle the (user, agent, kind) row. Existing row -> delete, "removed" (no quota or reason check).
    Missing row -> reason check, quota check, insert, "added".
    Raises Unauthenticated, InvalidArgument, NotFound, QuotaExceeded.
    """
    address = require_address(address)
    kind = parse_action_kind(kind)
    now = now or repo.utcnow()

    with store.session() as session:
        if not repo.agent_exists(session, agent_id):
            raise NotFound("Agent not found.")
        user = repo.upsert_user(session, address, now=now)

        existing = repo.find_action(session, user.id, agent_id, kind)
        if existing is not None:
            repo.delete_action(session, user.id, agent_id, kind)
            _LOG.info("action removed kind=%s agent_id=%s user_id=%s", kind.value, agent_id, user.id)
            return ActionResult(state=ActionState.REMOVED)

        clean_reason = validate_reason(session, kind, reason, agent_id, settings=settings)
        enforce_quota(session, user.id, QuotaKind.ACT, settings=settings, now=now)

        row = repo.insert_action(
            session,
            user_id=user.id,
            agent_id=agent_id,
            kind=kind,
            reason=clean_reason,
            created_at=now,
        )
        if row is None:
            # Lost a race on the unique constraint; the winner's row is the active one.
            _LOG.info("concurrent insert kind=%s agent_id=%s user_id=%s; treating as active", kind.value, agent_id, user.id)
            row = repo.find_action(session, user.id, agent_id, kind)
            return ActionResult(state=ActionState.ADDED, action=_record(row, address) if row is not None else None)

        _LOG.info("action added kind=%s agent_id=%s user_id=%s", kind.value, agent_id, user.id)
        return ActionResult(state=ActionState.ADDED, action=_record(row, address))


def get_viewer_actions(store: Store, agent_id: int, address: str | None) -> ViewerActions:
    """Which actions address currently has on agent_id. Unknown address -> all False; nothing is created."""
    address = require_address(address)
    with store.session() as session:
        if not repo.agent_exists(session, agent_id):
            raise NotFound("Agent not found.")
        user = repo.get_user_by_address(session, address)
        if user is None:
            return ViewerActions()
        keys = repo.fetch_viewer_action_keys(session, user.id, [agent_id])
    return ViewerActions(
        upvoted=(agent_id, ActionKind.UPVOTE.value) in keys,
        duplicate_flagged=(agent_id, ActionKind.DUPLICATE.value) in keys,
        spam_flagged=(agent_id, ActionKind.SPAM.value) in keys,
    )


def get_action_counts(store: Store, agent_id: int) -> dict[str, int]:
    """{kind: count} for agent_id, derived from the ledger."""
    with store.session() as session:
        if not repo.agent_exists(session, agent_id):
            raise NotFound("Agent not found.")
        return repo.count_actions_by_kind(session, agent_id)
