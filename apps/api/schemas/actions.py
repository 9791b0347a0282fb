"""Action ledger and activity schemas."""

from datetime import datetime

from pydantic import Field

from apps.api.schemas.agents import CamelModel


class ActionRequest(CamelModel):
    """Body for POST /entities/{id}/actions. Fields are optional so the service can answer 400/401 itself."""

    action: str | None = Field(None, description="upvote | duplicate | spam")
    address: str | None = Field(None, description="Wallet address of the actor")
    reason: str | None = Field(None, description="Required for upvote and duplicate")


class ActionOut(CamelModel):
    id: int
    agent_id: int
    kind: str
    reason: str | None = None
    address: str
    created_at: datetime


class ActionResponse(CamelModel):
    state: str
    message: str
    action: ActionOut | None = None


class ViewerActionsOut(CamelModel):
    upvoted: bool
    duplicate_flagged: bool
    spam_flagged: bool


class ActionCountsOut(CamelModel):
    upvotes: int
    duplicate_flags: int
    spam_flags: int


class ActivityCheckOut(CamelModel):
    """Pre-flight quota hint. Limits of 0 mean unlimited."""

    creation_count: int
    total_action_count: int
    creation_limit: int
    action_limit: int
