"""Repository layer: ledger select builders shared by repo.py."""

from apps.api.repositories.action_filters import (
    count_actions_since,
    count_agents_since,
    kind_where,
    select_action,
    select_actions_for_agents,
    select_viewer_actions,
    upvote_count_subquery,
)

__all__ = [
    "count_actions_since",
    "count_agents_since",
    "kind_where",
    "select_action",
    "select_actions_for_agents",
    "select_viewer_actions",
    "upvote_count_subquery",
]
