"""Per-identity quotas over a trailing window.

create: agents authored in the window. act: ledger rows (all kinds) created in the window.
Undo never reaches this module, so removing an action is never blocked and frees no quota
beyond the row it deletes.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from apps.api.config import Settings
from apps.api.db import Store
from apps.api.services import repo
from apps.api.services.errors import QuotaExceeded
from apps.api.services.identity import optional_address

_LOG = logging.getLogger(__name__)


class QuotaKind(str, enum.Enum):
    CREATE = "create"
    ACT = "act"


@dataclass(frozen=True)
class Quota:
    allowed: bool
    current_count: int
    limit: int  # 0 = unlimited


@dataclass(frozen=True)
class ActivitySummary:
    creation_count: int
    total_action_count: int
    creation_limit: int
    action_limit: int


def window_start(settings: Settings, now: datetime | None = None) -> datetime:
    return (now or repo.utcnow()) - timedelta(hours=settings.quota_window_hours)


def _limit_for(kind: QuotaKind, settings: Settings) -> int:
    return settings.create_quota if kind == QuotaKind.CREATE else settings.action_quota


def check_quota(
    session: Session,
    user_id: int | None,
    kind: QuotaKind,
    *,
    settings: Settings,
    now: datetime | None = None,
) -> Quota:
    """Count this identity's activity in the window ending at now. Unknown identity counts 0."""
    kind = QuotaKind(kind)
    limit = _limit_for(kind, settings)
    if user_id is None:
        count = 0
    elif kind == QuotaKind.CREATE:
        count = repo.count_agents_by_author_since(session, user_id, window_start(settings, now))
    else:
        count = repo.count_actions_by_user_since(session, user_id, window_start(settings, now))
    return Quota(allowed=limit == 0 or count < limit, current_count=count, limit=limit)


def enforce_quota(
    session: Session,
    user_id: int | None,
    kind: QuotaKind,
    *,
    settings: Settings,
    now: datetime | None = None,
) -> Quota:
    """check_quota, raising QuotaExceeded when not allowed."""
    quota = check_quota(session, user_id, kind, settings=settings, now=now)
    if not quota.allowed:
        _LOG.info("quota exceeded user_id=%s kind=%s count=%d limit=%d", user_id, kind.value, quota.current_count, quota.limit)
        noun = "agent submissions" if QuotaKind(kind) == QuotaKind.CREATE else "actions"
        raise QuotaExceeded(
            f"Daily limit reached: max {quota.limit} {noun} per {settings.quota_window_hours}h.",
            current_count=quota.current_count,
            limit=quota.limit,
        )
    return quota


def activity_check(
    store: Store,
    address: str | None,
    *,
    settings: Settings,
    now: datetime | None = None,
) -> ActivitySummary:
    """Pre-flight hint for clients. Read-only: an unknown address reports zeros and creates nothing."""
    address = optional_address(address)
    with store.session() as session:
        user = repo.get_user_by_address(session, address) if address else None
        user_id = user.id if user is not None else None
        created = check_quota(session, user_id, QuotaKind.CREATE, settings=settings, now=now)
        acted = check_quota(session, user_id, QuotaKind.ACT, settings=settings, now=now)
    return ActivitySummary(
        creation_count=created.current_count,
        total_action_count=acted.current_count,
        creation_limit=created.limit,
        action_limit=acted.limit,
    )
