from typing import Any

from fastapi import APIRouter

from ..schemas import NotificationTimingRequest
from ..services.notifications import (
    NotificationContext,
    adaptive_preferences,
    calculate_optimal_timing,
    is_appropriate_time,
)

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def notifications_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "notifications"}


@router.post("/notifications/timing")
def notification_timing(payload: NotificationTimingRequest) -> dict[str, Any]:
    ctx = NotificationContext(
        hour=payload.hour,
        partner_mood=payload.partner_mood,
        partner_energy=payload.partner_energy,
        user_energy=payload.user_energy,
        overlap_hours=payload.overlap_hours,
    )
    return {
        "schedule": calculate_optimal_timing(payload.type, ctx).to_dict(),
        "appropriate_time": is_appropriate_time(ctx.hour, ctx.partner_energy, ctx.user_energy),
        "preferences": adaptive_preferences(ctx),
    }
