from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from ..deps import current_user_id, get_clock, get_repository
from ..schemas import GenerateSuggestionsRequest, UpdateSuggestionRequest
from ..services.suggestions import SuggestionService

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def suggestions_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "suggestions"}


@router.get("/suggestions/{category}")
def list_weekly_suggestions(
    category: str,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    service = SuggestionService(repo, clock=clock)
    rows = service.get_weekly_suggestions(user_id, category)
    return {"week_start_date": service.current_week_start(), "suggestions": rows}


@router.post("/suggestions/{category}/generate")
def generate_weekly_suggestions(
    category: str,
    payload: GenerateSuggestionsRequest,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    service = SuggestionService(repo, clock=clock)
    rows = service.generate_suggestions(user_id, payload.partner_id, category)
    return {"week_start_date": service.current_week_start(), "suggestions": rows}


@router.patch("/suggestions/{suggestion_id}")
def update_suggestion(
    suggestion_id: str,
    payload: UpdateSuggestionRequest,
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
) -> dict[str, Any]:
    row = SuggestionService(repo).update_suggestion(
        suggestion_id, user_id, saved=payload.saved, completed=payload.completed
    )
    if row is None:
        raise HTTPException(status_code=404, detail="Suggestion not found")
    return {"suggestion": row}
