from datetime import date
from typing import Any

from fastapi import APIRouter, Depends

from ..deps import current_user_id, get_clock, get_repository
from ..schemas import (
    CalendarEventRequest,
    CompleteSuggestionRequest,
    CustomSuggestionRequest,
    PartnerHintRequest,
    ReminderRequest,
    SelectSuggestionRequest,
    UserStatusRequest,
)
from ..services.helping_hand import HelpingHandService

router = APIRouter()
scaffold_router = APIRouter()


def _week(service: HelpingHandService, week_start_date: date | None) -> date:
    return week_start_date or service.current_week_start()


@scaffold_router.get("/health")
def helping_hand_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "helping_hand"}


@router.get("/helping-hand/status")
def get_status(
    week_start_date: date | None = None,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    service = HelpingHandService(repo, clock=clock)
    week = _week(service, week_start_date)
    return {"week": service.get_week_context(week), "status": service.get_user_status(user_id, week)}


@router.put("/helping-hand/status")
def save_status(
    payload: UserStatusRequest,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    service = HelpingHandService(repo, clock=clock)
    week = _week(service, payload.week_start_date)
    return {"status": service.upsert_user_status(user_id, week, payload.status)}


@router.get("/helping-hand/categories")
def list_categories(repo=Depends(get_repository)) -> dict[str, Any]:
    return {"categories": HelpingHandService(repo).get_categories()}


@router.get("/helping-hand/categories/counts")
def category_counts(
    week_start_date: date | None = None,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    service = HelpingHandService(repo, clock=clock)
    return service.get_category_counts(user_id, _week(service, week_start_date))


@router.get("/helping-hand/categories/{category_id}")
def get_category(category_id: str, repo=Depends(get_repository)) -> dict[str, Any]:
    return {"category": HelpingHandService(repo).get_category_by_id(category_id)}


@router.get("/helping-hand/suggestions")
def list_suggestions(
    week_start_date: date | None = None,
    category_id: str | None = None,
    include_completed: bool = False,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    service = HelpingHandService(repo, clock=clock)
    return service.get_suggestions(user_id, _week(service, week_start_date), category_id, include_completed)


@router.get("/helping-hand/suggestions/{suggestion_id}")
def get_suggestion(suggestion_id: str, user_id: str = Depends(current_user_id), repo=Depends(get_repository)) -> dict[str, Any]:
    suggestion = HelpingHandService(repo).get_suggestion_by_id(suggestion_id)
    return {"suggestion": suggestion, "time_estimate": HelpingHandService.format_time_estimate(suggestion.time_estimate_minutes)}


@router.post("/helping-hand/suggestions")
def create_suggestion(
    payload: CustomSuggestionRequest,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    service = HelpingHandService(repo, clock=clock)
    fields = payload.model_dump()
    fields["week_start_date"] = _week(service, payload.week_start_date)
    return {"suggestion": service.create_custom_suggestion(user_id, fields)}


@router.post("/helping-hand/suggestions/{suggestion_id}/select")
def select_suggestion(
    suggestion_id: str,
    payload: SelectSuggestionRequest,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
) -> dict[str, str]:
    HelpingHandService(repo).select_suggestion(suggestion_id, user_id, payload.selected)
    return {"status": "ok"}


@router.post("/helping-hand/suggestions/{suggestion_id}/complete")
def complete_suggestion(
    suggestion_id: str,
    payload: CompleteSuggestionRequest,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, str]:
    HelpingHandService(repo, clock=clock).complete_suggestion(suggestion_id, user_id, payload.feedback, payload.notes)
    return {"status": "ok"}


@router.delete("/helping-hand/suggestions/{suggestion_id}")
def delete_suggestion(suggestion_id: str, user_id: str = Depends(current_user_id), repo=Depends(get_repository)) -> dict[str, str]:
    HelpingHandService(repo).delete_suggestion(suggestion_id, user_id)
    return {"status": "ok"}


@router.post("/helping-hand/reminders")
def create_reminder(
    payload: ReminderRequest,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
) -> dict[str, Any]:
    return HelpingHandService(repo).setup_reminder(user_id, payload.model_dump())


@router.get("/helping-hand/reminders")
def list_reminders(user_id: str = Depends(current_user_id), repo=Depends(get_repository)) -> dict[str, Any]:
    return {"reminders": HelpingHandService(repo).get_reminders(user_id)}


@router.post("/helping-hand/reminders/{reminder_id}/calendar")
def link_calendar_event(
    reminder_id: str,
    payload: CalendarEventRequest,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
) -> dict[str, str]:
    HelpingHandService(repo).update_reminder_calendar_event(reminder_id, user_id, payload.calendar_event_id)
    return {"status": "ok"}


@router.delete("/helping-hand/reminders/{reminder_id}")
def cancel_reminder(reminder_id: str, user_id: str = Depends(current_user_id), repo=Depends(get_repository)) -> dict[str, str]:
    HelpingHandService(repo).cancel_reminder(reminder_id, user_id)
    return {"status": "ok"}


@router.post("/helping-hand/hints")
def add_hint(
    payload: PartnerHintRequest,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
) -> dict[str, Any]:
    return HelpingHandService(repo).add_partner_hint(user_id, payload.model_dump())


@router.get("/helping-hand/hints/active")
def active_hints(user_id: str = Depends(current_user_id), repo=Depends(get_repository)) -> dict[str, Any]:
    return {"hints": HelpingHandService(repo).get_active_hints_for_partner(user_id)}


@router.get("/helping-hand/hints/sent")
def sent_hints(user_id: str = Depends(current_user_id), repo=Depends(get_repository)) -> dict[str, Any]:
    return {"hints": HelpingHandService(repo).get_hints_sent_by_user(user_id)}


@router.delete("/helping-hand/hints/{hint_id}")
def delete_hint(hint_id: str, user_id: str = Depends(current_user_id), repo=Depends(get_repository)) -> dict[str, str]:
    HelpingHandService(repo).delete_partner_hint(hint_id, user_id)
    return {"status": "ok"}
