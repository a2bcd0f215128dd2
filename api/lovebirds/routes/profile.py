from typing import Any

from fastapi import APIRouter, Depends

from ..deps import current_user_id, get_clock, get_repository
from ..schemas import CustomPreferenceRequest, EngagementEventRequest, QuietModeRequest
from ..services.profiles import PartnerProfileService

router = APIRouter()
scaffold_router = APIRouter()

# Columns the client may not set directly
_READ_ONLY_PROFILE_FIELDS = {
    "id",
    "user_id",
    "created_at",
    "updated_at",
    "custom_preferences",
    "learned_patterns",
    "engagement_score",
}


def _profile_fields(payload: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in payload.items() if k not in _READ_ONLY_PROFILE_FIELDS}


@scaffold_router.get("/health")
def profile_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "profile"}


@router.get("/profile")
def get_profile(user_id: str = Depends(current_user_id), repo=Depends(get_repository)) -> dict[str, Any]:
    return {"profile": PartnerProfileService(repo).get_profile(user_id)}


@router.get("/profile/partner")
def get_partner_profile(
    couple_id: str = "",
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
) -> dict[str, Any]:
    return {"profile": PartnerProfileService(repo).get_partner_profile(couple_id, user_id)}


@router.get("/profile/partner-guess")
def get_partner_guess(user_id: str = Depends(current_user_id), repo=Depends(get_repository)) -> dict[str, Any]:
    return {"guess": PartnerProfileService(repo).get_partner_guess_about_me(user_id)}


@router.post("/profile")
def create_profile(
    payload: dict[str, Any],
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    profile = PartnerProfileService(repo, clock=clock).create_profile(user_id, _profile_fields(payload))
    return {"profile": profile}


@router.patch("/profile")
def update_profile(
    payload: dict[str, Any],
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    profile = PartnerProfileService(repo, clock=clock).update_profile(user_id, _profile_fields(payload))
    return {"profile": profile}


@router.post("/profile/preferences")
def add_custom_preference(
    payload: CustomPreferenceRequest,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    preference = PartnerProfileService(repo, clock=clock).add_custom_preference(user_id, payload.category, payload.rule)
    return {"preference": preference}


@router.get("/profile/patterns")
def engagement_patterns(
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    return PartnerProfileService(repo, clock=clock).get_engagement_patterns(user_id).to_dict()


@router.get("/profile/frequency")
def optimal_frequency(
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    return PartnerProfileService(repo, clock=clock).calculate_optimal_frequency(user_id).to_dict()


@router.get("/profile/quiet-mode")
def get_quiet_mode(user_id: str = Depends(current_user_id), repo=Depends(get_repository)) -> dict[str, Any]:
    return {"quiet_mode": PartnerProfileService(repo).get_quiet_mode(user_id)}


@router.post("/profile/quiet-mode")
def enter_quiet_mode(
    payload: QuietModeRequest,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    quiet = PartnerProfileService(repo, clock=clock).enter_quiet_mode(user_id, payload.reason, payload.duration_hours)
    return {"quiet_mode": quiet}


@router.delete("/profile/quiet-mode")
def exit_quiet_mode(user_id: str = Depends(current_user_id), repo=Depends(get_repository)) -> dict[str, str]:
    PartnerProfileService(repo).exit_quiet_mode(user_id)
    return {"status": "ok"}


@router.post("/profile/events")
def record_event(
    payload: EngagementEventRequest,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    event_id = PartnerProfileService(repo, clock=clock).record_engagement_event(user_id, payload.event_type, payload.context)
    return {"status": "ok", "event_id": event_id}
