from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

from ..errors import PreconditionError
from ..models import RelationshipNeed
from .weeks import Clock, utc_now


@dataclass
class NeedsAnalytics:
    couple_id: str
    total_needs_submitted: int = 0
    needs_per_month: int = 0
    needs_trend: str = "stable"
    most_common_need: str = "communication"
    least_common_need: str = "space"
    average_resolution_time: int = 24
    resolution_rate: int = 0
    spontaneous_resolution: int = 0
    needing_app_less: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def analyze_needs(couple_id: str, needs: Iterable[RelationshipNeed], now: datetime) -> NeedsAnalytics:
    needs = list(needs)
    now = _aware(now)
    thirty_days_ago = now - timedelta(days=30)
    fifteen_days_ago = now - timedelta(days=15)

    total = len(needs)
    last_month = [n for n in needs if _aware(n.created_at) >= thirty_days_ago]
    recent = sum(1 for n in needs if _aware(n.created_at) >= fifteen_days_ago)
    previous = sum(1 for n in last_month if _aware(n.created_at) < fifteen_days_ago)
    if recent > previous * 1.5:
        trend = "increasing"
    elif recent < previous * 0.5:
        trend = "decreasing"
    else:
        trend = "stable"

    categories = Counter(n.need_category for n in needs)
    most_common = categories.most_common()[0][0] if categories else "communication"
    least_common = min(categories.items(), key=lambda kv: kv[1])[0] if categories else "space"

    resolved = [n for n in needs if n.status == "resolved"]
    resolution_rate = round(len(resolved) / total * 100) if total else 0
    hours = [
        (_aware(n.resolved_at) - _aware(n.created_at)).total_seconds() / 3600
        for n in resolved
        if n.resolved_at is not None
    ]
    average_hours = round(sum(hours) / len(hours)) if hours else 24

    # Resolved before the app-driven acknowledgement arrived.
    spontaneous = sum(
        1
        for n in resolved
        if n.resolved_at is not None and n.acknowledged_at is not None and _aware(n.resolved_at) < _aware(n.acknowledged_at)
    )
    needing_app_less = trend == "decreasing" and spontaneous > len(resolved) * 0.3 and average_hours < 12

    return NeedsAnalytics(
        couple_id=couple_id,
        total_needs_submitted=total,
        needs_per_month=len(last_month),
        needs_trend=trend,
        most_common_need=most_common,
        least_common_need=least_common,
        average_resolution_time=average_hours,
        resolution_rate=resolution_rate,
        spontaneous_resolution=spontaneous,
        needing_app_less=needing_app_less,
    )


class NeedsService:
    def __init__(self, repo, clock: Clock = utc_now) -> None:
        self.repo = repo
        self.clock = clock

    def get_needs_analytics(self, couple_id: str) -> NeedsAnalytics:
        if not couple_id:
            raise PreconditionError("couple_id is required")
        needs = RelationshipNeed.from_rows(self.repo.list_relationship_needs(couple_id))
        return analyze_needs(couple_id, needs, self.clock())
