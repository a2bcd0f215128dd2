from fastapi import APIRouter, FastAPI

from .frequency import router as frequency_router, scaffold_router as frequency_scaffold_router
from .helping_hand import router as helping_hand_router, scaffold_router as helping_hand_scaffold_router
from .notifications import router as notifications_router, scaffold_router as notifications_scaffold_router
from .personalization import router as personalization_router, scaffold_router as personalization_scaffold_router
from .profile import router as profile_router, scaffold_router as profile_scaffold_router
from .suggestions import router as suggestions_router, scaffold_router as suggestions_scaffold_router


def include_modular_routers(app: FastAPI) -> None:
    app.include_router(suggestions_router, tags=["suggestions"])
    app.include_router(personalization_router, tags=["personalization"])
    app.include_router(profile_router, tags=["profile"])
    app.include_router(frequency_router, tags=["frequency"])
    app.include_router(notifications_router, tags=["notifications"])
    app.include_router(helping_hand_router, tags=["helping-hand"])

    app.include_router(suggestions_scaffold_router, prefix="/_scaffold/suggestions", tags=["scaffold-suggestions"])
    app.include_router(personalization_scaffold_router, prefix="/_scaffold/personalization", tags=["scaffold-personalization"])
    app.include_router(profile_scaffold_router, prefix="/_scaffold/profile", tags=["scaffold-profile"])
    app.include_router(frequency_scaffold_router, prefix="/_scaffold/frequency", tags=["scaffold-frequency"])
    app.include_router(notifications_scaffold_router, prefix="/_scaffold/notifications", tags=["scaffold-notifications"])
    app.include_router(helping_hand_scaffold_router, prefix="/_scaffold/helping_hand", tags=["scaffold-helping_hand"])


__all__ = ["include_modular_routers", "APIRouter"]
