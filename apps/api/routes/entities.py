"""Agent directory endpoints: list/get and submit."""

from typing import Union

from fastapi import APIRouter, File, Form, Query, UploadFile

from apps.api.schemas.agents import AgentCreate, AgentOut, AgentPage, EnrichedAgent
from apps.api.services.agents import AvatarUpload, create_agent
from apps.api.services.app_context import BlobStoreDep, SettingsDep, StoreDep
from apps.api.services.listing import get_agent, list_agents

router = APIRouter()


@router.get("", response_model=Union[AgentPage, EnrichedAgent])
def get_entities(
    store: StoreDep,
    settings: SettingsDep,
    sort_by: str | None = Query(None, alias="sortBy", description="new | top"),
    page: str | None = Query("1", description="1-based page number"),
    address: str | None = Query(None, description="Viewer wallet address for isUpvoted/isDuplicateFlagged/isSpamFlagged"),
    id: str | None = Query(None, description="Fetch a single agent instead of a page"),
) -> AgentPage | EnrichedAgent:
    """Page of agents sorted by recency or upvotes, or a single agent when id is given."""
    if id is not None:
        return get_agent(store, id, viewer_address=address)
    return list_agents(store, sort_by, page, viewer_address=address, settings=settings)


@router.post("", response_model=AgentOut, status_code=201)
def post_entity(
    store: StoreDep,
    blob_store: BlobStoreDep,
    settings: SettingsDep,
    name: str | None = Form(None),
    url: str | None = Form(None),
    description: str | None = Form(None),
    why_hunt: str | None = Form(None, alias="whyHunt"),
    skill: str | None = Form(None),
    other_skill_detail: str | None = Form(None, alias="otherSkillDetail"),
    fallback_avatar_ref: str | None = Form(None, alias="fallbackAvatarRef"),
    author_address: str | None = Form(None, alias="authorAddress"),
    avatar: UploadFile | None = File(None),
) -> AgentOut:
    """Submit an agent. Avatar file (or fallbackAvatarRef) is required."""
    upload = None
    if avatar is not None:
        upload = AvatarUpload(
            filename=avatar.filename or "avatar",
            content_type=avatar.content_type or "",
            data=avatar.file.read(),
        )
    fields = AgentCreate(
        name=name,
        url=url,
        description=description,
        why_hunt=why_hunt,
        skill=skill,
        other_skill_detail=other_skill_detail,
        fallback_avatar_ref=fallback_avatar_ref,
        author_address=author_address,
    )
    return create_agent(store, blob_store, fields, upload, settings=settings)
