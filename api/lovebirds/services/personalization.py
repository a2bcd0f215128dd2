"""Personalization context aggregation.

Pulls the partner's onboarding answers, the user's saved partner insights, the
daily-question answer count and the partner's weekly wishes into one
``PersonalizationContext``. The context is rebuilt on every generation request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from ..config import APP_TIMEZONE, RECENT_WISH_WEEKS
from ..errors import PreconditionError, StoreError
from ..models import OnboardingResponse, SavedInsight, WeeklyWish
from .keywords import extract_keywords, group_by_theme
from .weeks import Clock, get_week_start_date, utc_now

logger = logging.getLogger(__name__)

DEFAULT_PARTNER_NAME = "your partner"


@dataclass
class LoveLanguages:
    primary: str | None = None
    secondary: str | None = None
    all: list[str] = field(default_factory=list)


@dataclass
class PartnerPreferences:
    date_types: list[str] = field(default_factory=list)
    gift_budget: str | None = None
    nudge_frequency: str | None = None


@dataclass
class WantsNeeds:
    gestures: list[str] = field(default_factory=list)
    surprise_frequency: str | None = None
    date_style: str | None = None
    gift_types: list[str] = field(default_factory=list)
    planning_style: str | None = None
    avoid: list[str] = field(default_factory=list)
    notes: str | None = None
    favorite_activities: list[str] = field(default_factory=list)
    favorite_cuisines: list[str] = field(default_factory=list)


@dataclass
class PartnerContext:
    name: str = DEFAULT_PARTNER_NAME
    birthday: date | None = None
    love_languages: LoveLanguages = field(default_factory=LoveLanguages)
    preferences: PartnerPreferences = field(default_factory=PartnerPreferences)
    wants_needs: WantsNeeds = field(default_factory=WantsNeeds)


@dataclass
class InsightsContext:
    saved: list[dict[str, Any]] = field(default_factory=list)
    keywords: dict[str, list[str]] = field(default_factory=dict)
    themes: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    count: int = 0


@dataclass
class WeeklyWishes:
    current: str | None = None
    recent: list[str] = field(default_factory=list)

    def all(self) -> list[str]:
        return [w for w in [self.current, *self.recent] if w]


@dataclass
class DataSources:
    onboarding_updated: datetime | None = None
    partner_onboarding_updated: datetime | None = None
    insights_count: int = 0
    answers_count: int = 0


@dataclass
class PersonalizationContext:
    tier: int = 1
    partner: PartnerContext = field(default_factory=PartnerContext)
    insights: InsightsContext = field(default_factory=InsightsContext)
    weekly_wishes: WeeklyWishes = field(default_factory=WeeklyWishes)
    data_sources: DataSources = field(default_factory=DataSources)


def calculate_tier(has_partner_onboarding: bool, insights_count: int, answers_count: int) -> int:
    # Evaluated top-down: data volume outranks onboarding presence.
    if insights_count >= 5 or answers_count >= 30:
        return 4
    if insights_count >= 1 or answers_count >= 10:
        return 3
    if has_partner_onboarding:
        return 2
    return 1


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v]


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_partner_context(onboarding: OnboardingResponse | None) -> PartnerContext:
    if onboarding is None:
        return PartnerContext()
    prefs = onboarding.preferences
    wants = onboarding.wants_needs
    return PartnerContext(
        name=_opt_str(onboarding.name) or DEFAULT_PARTNER_NAME,
        birthday=onboarding.birthday,
        love_languages=LoveLanguages(
            primary=_opt_str(onboarding.love_language_primary),
            secondary=_opt_str(onboarding.love_language_secondary),
            all=_str_list(onboarding.love_languages),
        ),
        preferences=PartnerPreferences(
            date_types=_str_list(prefs.get("date_types")),
            gift_budget=_opt_str(prefs.get("gift_budget")),
            nudge_frequency=_opt_str(prefs.get("nudge_frequency")),
        ),
        wants_needs=WantsNeeds(
            gestures=_str_list(wants.get("gestures")),
            surprise_frequency=_opt_str(wants.get("surprise_frequency")),
            date_style=_opt_str(wants.get("date_style")),
            gift_types=_str_list(wants.get("gift_types")),
            planning_style=_opt_str(wants.get("planning_style")),
            avoid=_str_list(wants.get("avoid")),
            notes=_opt_str(wants.get("notes")),
            favorite_activities=_str_list(wants.get("favorite_activities")),
            favorite_cuisines=_str_list(wants.get("favorite_cuisines")),
        ),
    )


def data_sources_summary(context: PersonalizationContext) -> dict[str, Any]:
    partner = context.partner
    return {
        "tier": context.tier,
        "has_partner_onboarding": context.data_sources.partner_onboarding_updated is not None,
        "insights_count": context.data_sources.insights_count,
        "answers_count": context.data_sources.answers_count,
        "has_keywords": len(context.insights.keywords) > 0,
        "keyword_categories": list(context.insights.keywords.keys()),
        "theme_categories": list(context.insights.themes.keys()),
        "has_weekly_wish": bool(context.weekly_wishes.all()),
        "partner_preferences": {
            "has_date_types": len(partner.preferences.date_types) > 0,
            "has_gift_budget": bool(partner.preferences.gift_budget),
            "has_love_languages": bool(partner.love_languages.primary or partner.love_languages.secondary),
            "has_avoid_list": len(partner.wants_needs.avoid) > 0,
        },
    }


def should_avoid_suggestion(avoid_if: list[str] | None, partner_avoid_list: list[str] | None) -> bool:
    if not avoid_if or not partner_avoid_list:
        return False
    return any(trigger in partner_avoid_list for trigger in avoid_if)


class PersonalizationService:
    def __init__(self, repo, clock: Clock = utc_now, tz: str = APP_TIMEZONE, recent_wish_weeks: int = RECENT_WISH_WEEKS) -> None:
        self.repo = repo
        self.clock = clock
        self.tz = tz
        self.recent_wish_weeks = recent_wish_weeks

    def get_personalization_context(self, user_id: str, partner_id: str) -> PersonalizationContext:
        if not user_id:
            raise PreconditionError("user_id is required")
        if not partner_id:
            raise PreconditionError("partner_id is required")

        try:
            user_row = self.repo.get_onboarding(user_id)
            partner_row = self.repo.get_onboarding(partner_id)
            insight_rows = self.repo.list_saved_insights(user_id)
        except StoreError:
            logger.exception("[personalization] failed to load context user_id=%s partner_id=%s", user_id, partner_id)
            raise
        answers_count = self.get_recent_answers_count(user_id)

        user_onboarding = OnboardingResponse.from_row(user_row) if user_row else None
        partner_onboarding = OnboardingResponse.from_row(partner_row) if partner_row else None
        saved = [i.to_row() for i in SavedInsight.from_rows(insight_rows)]

        tier = calculate_tier(partner_onboarding is not None, len(saved), answers_count)
        context = PersonalizationContext(
            tier=tier,
            partner=build_partner_context(partner_onboarding),
            insights=InsightsContext(
                saved=saved,
                keywords=extract_keywords(saved),
                themes=group_by_theme(saved),
                count=len(saved),
            ),
            weekly_wishes=self.get_weekly_wishes(partner_id),
            data_sources=DataSources(
                onboarding_updated=user_onboarding.updated_at if user_onboarding else None,
                partner_onboarding_updated=(
                    (partner_onboarding.updated_at or self.clock()) if partner_onboarding else None
                ),
                insights_count=len(saved),
                answers_count=answers_count,
            ),
        )
        logger.debug(
            "[personalization] context user_id=%s tier=%s insights=%s answers=%s",
            user_id,
            tier,
            len(saved),
            answers_count,
        )
        return context

    def get_recent_answers_count(self, user_id: str) -> int:
        try:
            return int(self.repo.count_question_answers(user_id) or 0)
        except StoreError:
            logger.warning("[personalization] counting answers failed for user_id=%s; using 0", user_id)
            return 0

    def get_weekly_wishes(self, partner_id: str) -> WeeklyWishes:
        week_start = get_week_start_date(self.clock(), self.tz)
        since = week_start - timedelta(weeks=self.recent_wish_weeks)
        try:
            rows = WeeklyWish.from_rows(self.repo.list_weekly_wishes(partner_id, since))
        except StoreError:
            logger.warning("[personalization] weekly wishes unavailable for partner_id=%s", partner_id)
            return WeeklyWishes()

        current: str | None = None
        recent: list[str] = []
        for row in sorted(rows, key=lambda r: r.week_start_date, reverse=True):
            text = _opt_str(row.wish_text)
            if not text:
                continue
            if row.week_start_date == week_start:
                current = current or text
            elif row.week_start_date < week_start:
                recent.append(text)
        return WeeklyWishes(current=current, recent=recent)
