from fastapi import Header, HTTPException

from .repo import SqlRepository
from .services.weeks import Clock, utc_now


def parse_user_id(raw_user_id: str | None) -> str:
    value = (raw_user_id or "").strip()
    if not value:
        raise HTTPException(status_code=400, detail="X-User-Id header is required")
    return value


def current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    return parse_user_id(x_user_id)


def get_repository() -> SqlRepository:
    return SqlRepository()


def get_clock() -> Clock:
    return utc_now
