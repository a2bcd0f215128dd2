from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from ..deps import current_user_id, get_clock, get_repository
from ..services.frequency import FrequencyService

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def frequency_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "frequency"}


@router.get("/frequency/should-send")
def should_send_checkin(
    prompt_type: str = "daily_question",
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    return FrequencyService(repo, clock=clock).should_send_checkin(user_id, prompt_type).to_dict()


@router.get("/frequency/graduation")
def graduation_status(
    couple_id: str = "",
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    return FrequencyService(repo, clock=clock).get_graduation_status(user_id, couple_id).to_dict()


@router.get("/frequency/graduation/milestones")
def graduation_milestones(
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    milestones = FrequencyService(repo, clock=clock).get_graduation_milestones(user_id)
    return {"milestones": [m.to_dict() for m in milestones]}


@router.get("/frequency/graduation/eligibility")
def graduation_eligibility(
    couple_id: str = "",
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    return FrequencyService(repo, clock=clock).check_graduation_eligibility(user_id, couple_id).to_dict()


@router.post("/frequency/adjust")
def adjust_for_graduation(
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    preference = FrequencyService(repo, clock=clock).adjust_for_graduation(user_id)
    return {"changed": preference is not None, "frequency_preference": preference}


@router.post("/frequency/prompts/{prompt_type}/{action}")
def record_prompt(
    prompt_type: str,
    action: str,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    service = FrequencyService(repo, clock=clock)
    if action == "sent":
        event_id = service.record_prompt_sent(user_id, prompt_type)
    elif action == "engaged":
        event_id = service.record_prompt_engaged(user_id, prompt_type)
    else:
        raise HTTPException(status_code=404, detail="Unknown prompt action")
    return {"status": "ok", "event_id": event_id}
