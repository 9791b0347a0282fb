"""Listing query engine: paginated agents with ledger aggregates and per-viewer flags."""

from collections import defaultdict
from collections.abc import Sequence
from typing import Any

from sqlalchemy.orm import Session

from apps.api.config import Settings
from apps.api.db import Store
from apps.api.models.agent import Agent
from apps.api.models.agent_action import ActionKind
from apps.api.models.base import BIGINT_MAX
from apps.api.schemas.agents import ActorOut, AgentPage, AuthorOut, EnrichedAgent
from apps.api.services import repo
from apps.api.services.errors import InvalidArgument, NotFound
from apps.api.services.identity import optional_address, resolve_display_name

SORT_OPTIONS = (repo.SORT_NEW, repo.SORT_TOP)


def parse_sort(sort_by: str | None) -> str:
    """'new' (default) or 'top'. Raises InvalidArgument otherwise."""
    value = (sort_by or repo.SORT_NEW).strip().lower()
    if value not in SORT_OPTIONS:
        raise InvalidArgument("sortBy must be 'new' or 'top'.")
    return value


def parse_positive_int(value: Any, name: str, maximum: int | None = BIGINT_MAX) -> int:
    """Parse a base-10 integer in 1..maximum. Raises InvalidArgument otherwise (maximum=None: no cap)."""
    if isinstance(value, bool):
        raise InvalidArgument(f"Invalid {name}.")
    if isinstance(value, int):
        n = value
    else:
        text = str(value).strip() if value is not None else ""
        if not (text.isascii() and text.isdigit()):
            raise InvalidArgument(f"Invalid {name}.")
        try:
            n = int(text)
        except ValueError:
            # beyond the interpreter's int digit limit
            raise InvalidArgument(f"Invalid {name}.") from None
    if n < 1 or (maximum is not None and n > maximum):
        raise InvalidArgument(f"Invalid {name}.")
    return n


def _actor(address: str, reason: str | None, created_at) -> ActorOut:
    return ActorOut(
        address=address,
        display_name=resolve_display_name(address),
        reason=reason,
        created_at=created_at,
    )


def _enrich(
    session: Session,
    rows: Sequence[tuple[Agent, str]],
    viewer_address: str | None,
) -> list[EnrichedAgent]:
    """Attach actor lists, counts and viewer flags. One ledger query for the page, one more for a known viewer."""
    agent_ids = [agent.id for agent, _ in rows]

    actors: dict[int, dict[str, list[ActorOut]]] = defaultdict(lambda: defaultdict(list))
    for agent_id, kind, address, reason, created_at in repo.fetch_actions_for_agents(session, agent_ids):
        actors[int(agent_id)][kind].append(_actor(address, reason, created_at))

    viewer_keys: set[tuple[int, str]] = set()
    viewer_address = optional_address(viewer_address)
    if viewer_address and agent_ids:
        viewer = repo.get_user_by_address(session, viewer_address)
        if viewer is not None:
            viewer_keys = repo.fetch_viewer_action_keys(session, viewer.id, agent_ids)

    out: list[EnrichedAgent] = []
    for agent, author_address in rows:
        by_kind = actors.get(agent.id, {})
        upvotes = list(by_kind.get(ActionKind.UPVOTE.value, []))
        duplicates = list(by_kind.get(ActionKind.DUPLICATE.value, []))
        spam = list(by_kind.get(ActionKind.SPAM.value, []))
        out.append(
            EnrichedAgent(
                id=agent.id,
                name=agent.name,
                avatar_url=agent.avatar_url,
                url=agent.url,
                description=agent.description,
                why_hunt=agent.why_hunt,
                skill=agent.skill,
                other_skill_detail=agent.other_skill_detail,
                created_at=agent.created_at,
                author=AuthorOut(address=author_address, display_name=resolve_display_name(author_address)),
                upvotes=upvotes,
                upvote_count=len(upvotes),
                duplicate_flags=duplicates,
                duplicate_flag_count=len(duplicates),
                spam_flags=spam,
                spam_flag_count=len(spam),
                is_upvoted=(agent.id, ActionKind.UPVOTE.value) in viewer_keys,
                is_duplicate_flagged=(agent.id, ActionKind.DUPLICATE.value) in viewer_keys,
                is_spam_flagged=(agent.id, ActionKind.SPAM.value) in viewer_keys,
            )
        )
    return out


def list_agents(
    store: Store,
    sort_by: str | None,
    page: Any,
    viewer_address: str | None = None,
    *,
    settings: Settings,
) -> AgentPage:
    """
    One page of agents. Fetches page_size + 1 rows to compute has_more without a COUNT query.
    new: created_at desc, id desc. top: upvote count desc, then created_at desc, id desc.
    """
    sort_by = parse_sort(sort_by)
    page = parse_positive_int(page, "page")
    size = settings.page_size
    offset = (page - 1) * size
    if offset > BIGINT_MAX - size - 1:
        return AgentPage(entities=[], has_more=False)
    with store.session() as session:
        rows = repo.fetch_agent_page(session, sort_by, limit=size + 1, offset=offset)
        has_more = len(rows) > size
        entities = _enrich(session, [(agent, author) for agent, author, _ in rows[:size]], viewer_address)
    return AgentPage(entities=entities, has_more=has_more)


def get_agent(store: Store, agent_id: Any, viewer_address: str | None = None) -> EnrichedAgent:
    """Single agent with the same enrichment as list_agents. Raises InvalidArgument or NotFound."""
    # Numeric but beyond any stored id is NotFound, not InvalidArgument.
    agent_id = parse_positive_int(agent_id, "agent ID", maximum=None)
    with store.session() as session:
        found = repo.fetch_agent_with_author(session, agent_id)
        if found is None:
            raise NotFound("Agent not found.")
        return _enrich(session, [found], viewer_address)[0]
