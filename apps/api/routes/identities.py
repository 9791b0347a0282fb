"""Identity endpoints. Read-only; looking up an unknown address creates nothing."""

from fastapi import APIRouter

from apps.api.schemas.actions import ActivityCheckOut
from apps.api.services.app_context import SettingsDep, StoreDep
from apps.api.services.rate_limit import activity_check

router = APIRouter()


@router.get("/{address}/activity-check", response_model=ActivityCheckOut)
def get_activity_check(address: str, store: StoreDep, settings: SettingsDep) -> ActivityCheckOut:
    """Agents created and actions taken by address in the trailing quota window, with the limits."""
    summary = activity_check(store, address, settings=settings)
    return ActivityCheckOut(
        creation_count=summary.creation_count,
        total_action_count=summary.total_action_count,
        creation_limit=summary.creation_limit,
        action_limit=summary.action_limit,
    )
