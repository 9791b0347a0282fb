"""Ledger endpoints: toggle an action, read the viewer's state, read counts."""

from fastapi import APIRouter, Query, Response

from apps.api.models.agent_action import ActionKind
from apps.api.schemas.actions import (
    ActionCountsOut,
    ActionOut,
    ActionRequest,
    ActionResponse,
    ViewerActionsOut,
)
from apps.api.services.app_context import SettingsDep, StoreDep
from apps.api.services.ledger import ActionState, apply_action, get_action_counts, get_viewer_actions

router = APIRouter()

ACTION_LABELS = {
    ActionKind.UPVOTE: "Upvote",
    ActionKind.DUPLICATE: "Duplicate flag",
    ActionKind.SPAM: "Spam flag",
}


@router.post("/{agent_id}/actions", response_model=ActionResponse, status_code=201)
def post_action(
    agent_id: int,
    body: ActionRequest,
    response: Response,
    store: StoreDep,
    settings: SettingsDep,
) -> ActionResponse:
    """Toggle an action. 201 when added, 200 when removed. Clients should refetch listings afterwards."""
    result = apply_action(store, body.address, agent_id, body.action, body.reason, settings=settings)
    label = ACTION_LABELS[ActionKind(body.action)]
    if result.state == ActionState.REMOVED:
        response.status_code = 200
        return ActionResponse(state=result.state.value, message=f"{label} removed.")
    action = None
    if result.action is not None:
        action = ActionOut(
            id=result.action.id,
            agent_id=result.action.agent_id,
            kind=result.action.kind.value,
            reason=result.action.reason,
            address=result.action.address,
            created_at=result.action.created_at,
        )
    return ActionResponse(state=result.state.value, message=f"{label} added.", action=action)


@router.get("/{agent_id}/actions", response_model=ViewerActionsOut)
def get_actions(
    agent_id: int,
    store: StoreDep,
    address: str | None = Query(None, description="Viewer wallet address"),
) -> ViewerActionsOut:
    """Which actions the viewer currently has on this agent."""
    state = get_viewer_actions(store, agent_id, address)
    return ViewerActionsOut(
        upvoted=state.upvoted,
        duplicate_flagged=state.duplicate_flagged,
        spam_flagged=state.spam_flagged,
    )


@router.get("/{agent_id}/counts", response_model=ActionCountsOut)
def get_counts(agent_id: int, store: StoreDep) -> ActionCountsOut:
    """Ledger-derived counts per kind."""
    counts = get_action_counts(store, agent_id)
    return ActionCountsOut(
        upvotes=counts[ActionKind.UPVOTE.value],
        duplicate_flags=counts[ActionKind.DUPLICATE.value],
        spam_flags=counts[ActionKind.SPAM.value],
    )
