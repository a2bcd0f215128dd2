"""Partner profiles, the engagement log and quiet mode.

``analyze_engagement`` and ``calculate_frequency_config`` are pure; the service
only fetches rows and hands them over.
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

from ..config import ENGAGEMENT_LOOKBACK_DAYS
from ..errors import NotFoundError, PreconditionError
from ..models import CustomPreference, EngagementEvent, PartnerGuess, PartnerProfile, QuietMode
from .weeks import Clock, utc_now

logger = logging.getLogger(__name__)

SUGGESTION_OUTCOMES = ("suggestion_accepted", "suggestion_skipped", "suggestion_modified")
SPONTANEOUS_EVENTS = ("message_sent", "gift_sent", "date_completed")

BASE_FREQUENCIES: dict[str, dict[str, Any]] = {
    "high_touch": {"daily_question_enabled": True, "weekly_reflection_enabled": True, "nudges_per_week": 5, "suggestions_per_week": 7},
    "moderate": {"daily_question_enabled": True, "weekly_reflection_enabled": True, "nudges_per_week": 3, "suggestions_per_week": 4},
    "low_touch": {"daily_question_enabled": False, "weekly_reflection_enabled": True, "nudges_per_week": 1, "suggestions_per_week": 2},
}


@dataclass
class EngagementPatterns:
    user_id: str
    total_interactions: int = 0
    interactions_per_week: int = 0
    engagement_trend: str = "stable"
    suggestion_acceptance_rate: int = 50
    spontaneous_actions: int = 0
    most_used_feature: str = "daily_question"
    least_used_feature: str = "unknown"
    ready_for_reduction: bool = False
    independence_score: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class FrequencyConfig:
    user_id: str
    daily_question_enabled: bool = True
    weekly_reflection_enabled: bool = True
    nudges_per_week: int = 3
    suggestions_per_week: int = 5
    quiet_mode_active: bool = False
    quiet_mode_until: datetime | None = None
    reasoning: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def base_frequency(preference: str) -> dict[str, Any]:
    return dict(BASE_FREQUENCIES.get(preference, BASE_FREQUENCIES["moderate"]))


def analyze_engagement(
    user_id: str,
    events: Iterable[EngagementEvent],
    now: datetime,
    window_days: int = ENGAGEMENT_LOOKBACK_DAYS,
) -> EngagementPatterns:
    """Derive engagement patterns from the events of the lookback window.

    The trend compares activity in the newer half of the window with the older
    half: more than 1.2x is increasing, under 0.8x is decreasing.
    """
    events = list(events)
    total = len(events)

    if events:
        oldest = min(_aware(e.created_at) for e in events)
        span = (_aware(now) - oldest).total_seconds() / (7 * 24 * 3600)
        weeks_of_data = max(1.0, span)
    else:
        weeks_of_data = 1.0
    per_week = round(total / weeks_of_data)

    split = _aware(now) - timedelta(days=window_days / 2)
    recent = sum(1 for e in events if _aware(e.created_at) >= split)
    older = total - recent
    if recent > older * 1.2:
        trend = "increasing"
    elif recent < older * 0.8:
        trend = "decreasing"
    else:
        trend = "stable"

    outcomes = [e for e in events if e.event_type in SUGGESTION_OUTCOMES]
    accepted = sum(1 for e in outcomes if e.event_type == "suggestion_accepted")
    acceptance = round(accepted / len(outcomes) * 100) if outcomes else 50

    spontaneous = sum(
        1 for e in events if e.event_type in SPONTANEOUS_EVENTS and not e.context.get("was_prompted")
    )

    features = Counter(str(e.context.get("feature") or "unknown") for e in events)
    most_used = features.most_common()[0][0] if features else "daily_question"
    least_used = min(features.items(), key=lambda kv: kv[1])[0] if features else "unknown"

    independence = min(100, round(spontaneous / max(1, total) * 100 + (100 - acceptance) * 0.3))
    ready = spontaneous >= 10 and acceptance < 30 and independence > 70

    return EngagementPatterns(
        user_id=user_id,
        total_interactions=total,
        interactions_per_week=per_week,
        engagement_trend=trend,
        suggestion_acceptance_rate=acceptance,
        spontaneous_actions=spontaneous,
        most_used_feature=most_used,
        least_used_feature=least_used,
        ready_for_reduction=ready,
        independence_score=independence,
    )


def calculate_frequency_config(
    user_id: str,
    profile: PartnerProfile | None,
    patterns: EngagementPatterns,
    quiet_mode: QuietMode | None,
) -> FrequencyConfig:
    if profile is None:
        return FrequencyConfig(user_id=user_id, reasoning="Default configuration for new user")

    if quiet_mode is not None and quiet_mode.active:
        return FrequencyConfig(
            user_id=user_id,
            daily_question_enabled=False,
            weekly_reflection_enabled=False,
            nudges_per_week=0,
            suggestions_per_week=1 if quiet_mode.allow_emergency_messages else 0,
            quiet_mode_active=True,
            quiet_mode_until=quiet_mode.ends_at,
            reasoning=f"Quiet mode active: {quiet_mode.reason}",
        )

    preference = profile.frequency_preference
    base = base_frequency(preference)

    if patterns.engagement_trend == "decreasing":
        return FrequencyConfig(
            user_id=user_id,
            daily_question_enabled=preference != "low_touch",
            nudges_per_week=max(1, base["nudges_per_week"] - 2),
            suggestions_per_week=max(2, base["suggestions_per_week"] - 3),
            reasoning="Reduced frequency due to declining engagement",
        )

    if patterns.engagement_trend == "increasing" and preference == "high_touch":
        return FrequencyConfig(
            user_id=user_id,
            nudges_per_week=min(7, base["nudges_per_week"] + 1),
            suggestions_per_week=min(10, base["suggestions_per_week"] + 2),
            reasoning="High engagement - maintaining active support",
        )

    if patterns.ready_for_reduction:
        return FrequencyConfig(
            user_id=user_id,
            daily_question_enabled=profile.daily_checkins_enabled,
            nudges_per_week=max(1, base["nudges_per_week"] - 3),
            suggestions_per_week=max(1, base["suggestions_per_week"] - 4),
            reasoning="Showing independence - reducing prompts (this is success!)",
        )

    return FrequencyConfig(user_id=user_id, reasoning="Standard configuration based on preference", **base)


class PartnerProfileService:
    def __init__(self, repo, clock: Clock = utc_now, lookback_days: int = ENGAGEMENT_LOOKBACK_DAYS) -> None:
        self.repo = repo
        self.clock = clock
        self.lookback_days = lookback_days

    def get_profile(self, user_id: str) -> PartnerProfile | None:
        if not user_id:
            raise PreconditionError("user_id is required")
        row = self.repo.get_partner_profile(user_id)
        return PartnerProfile.from_row(row) if row else None

    def get_partner_profile(self, couple_id: str, current_user_id: str) -> PartnerProfile | None:
        if not couple_id:
            raise PreconditionError("couple_id is required")
        couple = self.repo.get_relationship(couple_id)
        if not couple:
            raise NotFoundError("relationship", couple_id)
        a, b = str(couple.get("partner_a_id") or ""), str(couple.get("partner_b_id") or "")
        partner_id = b if a == current_user_id else a
        return self.get_profile(partner_id) if partner_id else None

    def get_partner_guess_about_me(self, user_id: str) -> PartnerGuess | None:
        """What the partner guessed about this user during their own onboarding, if anything."""
        if not user_id:
            raise PreconditionError("user_id is required")
        rows = self.repo.partner_guess_about_me(user_id)
        return PartnerGuess.from_row(rows[0]) if rows else None

    def create_profile(self, user_id: str, fields: dict[str, Any]) -> PartnerProfile:
        if not user_id:
            raise PreconditionError("user_id is required")
        profile = PartnerProfile.from_row({**fields, "user_id": user_id})
        row = self.repo.insert_partner_profile(profile.to_row(exclude={"id", "created_at", "updated_at"}))
        logger.info("[profiles] created profile user_id=%s preference=%s", user_id, profile.frequency_preference)
        return PartnerProfile.from_row(row)

    def update_profile(self, user_id: str, updates: dict[str, Any]) -> PartnerProfile:
        current = self.get_profile(user_id)
        if current is None:
            raise NotFoundError("partner_profiles", user_id)
        # Validate the merged result so a partial update cannot leave a bad row behind.
        merged = PartnerProfile.from_row({**current.to_row(), **updates, "user_id": user_id})
        fields = {k: v for k, v in merged.to_row().items() if k in updates}
        if not fields:
            return current
        row = self.repo.update_partner_profile(user_id, fields)
        return PartnerProfile.from_row(row) if row else merged

    def add_custom_preference(self, user_id: str, category: str, rule: str) -> CustomPreference:
        profile = self.get_profile(user_id)
        if profile is None:
            raise NotFoundError("partner_profiles", user_id)
        now = self.clock()
        preference = CustomPreference(id=f"pref_{uuid.uuid4().hex[:12]}", category=category, rule=rule, created_at=now)
        preferences = [p.model_dump() for p in profile.custom_preferences] + [preference.model_dump()]
        self.repo.update_partner_profile(user_id, {"custom_preferences": preferences})
        self.record_engagement_event(user_id, "custom_preference_added", {"preference": preference.model_dump(mode="json")})
        return preference

    def record_engagement_event(self, user_id: str, event_type: str, context: dict[str, Any] | None = None) -> str:
        if not user_id:
            raise PreconditionError("user_id is required")
        if not event_type:
            raise PreconditionError("event_type is required")
        return self.repo.insert_learning_event(user_id, event_type, context or {}, self.clock())

    def get_engagement_patterns(self, user_id: str) -> EngagementPatterns:
        now = self.clock()
        since = now - timedelta(days=self.lookback_days)
        events = EngagementEvent.from_rows(self.repo.list_learning_events(user_id, since=since))
        return analyze_engagement(user_id, events, now, self.lookback_days)

    def calculate_optimal_frequency(self, user_id: str) -> FrequencyConfig:
        profile = self.get_profile(user_id)
        patterns = self.get_engagement_patterns(user_id)
        quiet = self.get_quiet_mode(user_id) if profile is not None else None
        return calculate_frequency_config(user_id, profile, patterns, quiet)

    def enter_quiet_mode(self, user_id: str, reason: str, duration_hours: float | None = None) -> QuietMode:
        if not user_id:
            raise PreconditionError("user_id is required")
        now = self.clock()
        quiet = QuietMode(
            user_id=user_id,
            active=True,
            reason=reason,
            activated_at=now,
            ends_at=now + timedelta(hours=duration_hours) if duration_hours else None,
            # Only an explicit user request blocks emergency messages too.
            allow_emergency_messages=reason != "user_requested",
        )
        row = self.repo.upsert_quiet_mode(quiet.to_row())
        logger.info("[profiles] quiet mode on user_id=%s reason=%s ends_at=%s", user_id, reason, quiet.ends_at)
        return QuietMode.from_row(row) if row else quiet

    def exit_quiet_mode(self, user_id: str) -> None:
        if not user_id:
            raise PreconditionError("user_id is required")
        self.repo.deactivate_quiet_mode(user_id)
        logger.info("[profiles] quiet mode off user_id=%s", user_id)

    def get_quiet_mode(self, user_id: str) -> QuietMode | None:
        row = self.repo.get_quiet_mode(user_id)
        return QuietMode.from_row(row) if row else None
