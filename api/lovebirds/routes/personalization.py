from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, Depends

from ..deps import current_user_id, get_clock, get_repository
from ..services.personalization import PersonalizationService, data_sources_summary

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def personalization_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "personalization"}


@router.get("/personalization/context")
def personalization_context(
    partner_id: str = "",
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    context = PersonalizationService(repo, clock=clock).get_personalization_context(user_id, partner_id)
    return asdict(context)


@router.get("/personalization/summary")
def personalization_summary(
    partner_id: str = "",
    user_id: str = Depends(current_user_id),
    repo=Depends(get_repository),
    clock=Depends(get_clock),
) -> dict[str, Any]:
    context = PersonalizationService(repo, clock=clock).get_personalization_context(user_id, partner_id)
    return data_sources_summary(context)
