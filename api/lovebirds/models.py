"""Persisted entities and their row codecs.

Every table the services touch has exactly one model here. ``from_row`` validates a
row coming back from the store and ``to_row`` produces the column mapping used for
inserts and updates, so malformed rows fail at the boundary instead of leaking
``None`` into the scoring code.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Annotated, Any, ClassVar, Literal, Mapping, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError, field_validator

from .errors import RowValidationError

LoveLanguage = Literal["words", "quality_time", "gifts", "acts", "touch"]
FrequencyPreference = Literal["high_touch", "moderate", "low_touch"]
CheckinTime = Literal["morning", "afternoon", "evening"]
QuietModeReason = Literal["user_requested", "stress_detected", "low_engagement", "partner_requested_space"]
SuggestionCategory = Literal["love_language", "gift", "date"]
ReminderFrequency = Literal["once", "daily", "every_other_day", "twice_weekly", "weekly"]
EffortLevel = Literal["minimal", "low", "moderate", "high"]
UserFeedback = Literal["helpful", "not_helpful", "too_much"]
PartnerHintType = Literal["like", "dislike", "need", "preference", "special_occasion"]

R = TypeVar("R", bound="RowModel")


class RowModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    entity: ClassVar[str] = "row"

    @classmethod
    def from_row(cls: type[R], row: Mapping[str, Any]) -> R:
        try:
            return cls.model_validate(dict(row))
        except ValidationError as exc:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
            raise RowValidationError(cls.entity, f"invalid fields: {fields}") from exc
        except (TypeError, ValueError) as exc:
            raise RowValidationError(cls.entity, str(exc)) from exc

    @classmethod
    def from_rows(cls: type[R], rows: list[Mapping[str, Any]] | None) -> list[R]:
        return [cls.from_row(r) for r in (rows or [])]

    def to_row(self, *, exclude: set[str] | None = None) -> dict[str, Any]:
        return self.model_dump(exclude=exclude or set())


def _none_to_list(value: Any) -> Any:
    return [] if value is None else value


def _none_to_dict(value: Any) -> Any:
    return {} if value is None else value


NoneAsEmptyList = BeforeValidator(_none_to_list)
NoneAsEmptyDict = BeforeValidator(_none_to_dict)


# ---------------------------------------------------------------------------
# Onboarding and insights (read-only inputs to personalization)
# ---------------------------------------------------------------------------


class OnboardingResponse(RowModel):
    entity: ClassVar[str] = "onboarding_responses"

    user_id: str
    name: str | None = None
    birthday: date | None = None
    love_language_primary: str | None = None
    love_language_secondary: str | None = None
    love_languages: Annotated[list[str], NoneAsEmptyList] = Field(default_factory=list)
    preferences: Annotated[dict[str, Any], NoneAsEmptyDict] = Field(default_factory=dict)
    wants_needs: Annotated[dict[str, Any], NoneAsEmptyDict] = Field(default_factory=dict)
    updated_at: datetime | None = None


class SavedInsight(RowModel):
    entity: ClassVar[str] = "saved_partner_insights"

    id: str | None = None
    user_id: str | None = None
    question_text: str | None = None
    partner_answer: str | None = None
    created_at: datetime | None = None


class WeeklyWish(RowModel):
    entity: ClassVar[str] = "weekly_wishes"

    user_id: str
    week_start_date: date
    wish_text: str | None = None


# ---------------------------------------------------------------------------
# Partner profile, engagement log, quiet mode
# ---------------------------------------------------------------------------


class PartnerGuess(RowModel):
    entity: ClassVar[str] = "partner_profile_guesses"

    guesser_name: str | None = None
    love_language_primary: str | None = None
    love_language_secondary: str | None = None
    communication_style: str | None = None
    stress_needs: Annotated[dict[str, Any], NoneAsEmptyDict] = Field(default_factory=dict)
    hobbies: str | None = None
    likes: str | None = None
    dislikes: str | None = None


class CustomPreference(BaseModel):
    id: str
    category: Literal["stress", "affection", "communication", "surprises", "general"]
    rule: str
    created_at: datetime


class LearnedPatterns(BaseModel):
    model_config = ConfigDict(extra="allow")

    fastest_response_time: CheckinTime | None = None
    slowest_response_time: CheckinTime | None = None
    most_engaged_features: Annotated[list[str], NoneAsEmptyList] = Field(default_factory=list)
    least_engaged_features: Annotated[list[str], NoneAsEmptyList] = Field(default_factory=list)
    preferred_date_types: Annotated[list[str], NoneAsEmptyList] = Field(default_factory=list)


class PartnerProfile(RowModel):
    entity: ClassVar[str] = "partner_profiles"

    id: str | None = None
    user_id: str
    couple_id: str | None = None
    love_language_primary: LoveLanguage
    love_language_secondary: LoveLanguage | None = None
    communication_style: str
    stress_needs: Annotated[list[str], NoneAsEmptyList] = Field(default_factory=list)
    frequency_preference: FrequencyPreference = "moderate"
    daily_checkins_enabled: bool = True
    preferred_checkin_times: Annotated[list[CheckinTime], NoneAsEmptyList] = Field(default_factory=list)
    custom_preferences: Annotated[list[CustomPreference], NoneAsEmptyList] = Field(default_factory=list)
    learned_patterns: Annotated[LearnedPatterns, NoneAsEmptyDict] = Field(default_factory=LearnedPatterns)
    engagement_score: int = Field(default=50, ge=0, le=100)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("engagement_score", mode="before")
    @classmethod
    def default_engagement(cls, value: Any) -> Any:
        return 50 if value is None else value


class EngagementEvent(RowModel):
    entity: ClassVar[str] = "learning_events"

    id: str | None = None
    user_id: str
    event_type: str
    context: Annotated[dict[str, Any], NoneAsEmptyDict] = Field(default_factory=dict)
    created_at: datetime


class QuietMode(RowModel):
    entity: ClassVar[str] = "quiet_mode"

    user_id: str
    active: bool
    reason: QuietModeReason
    activated_at: datetime
    ends_at: datetime | None = None
    allow_emergency_messages: bool = False


class RelationshipNeed(RowModel):
    entity: ClassVar[str] = "relationship_needs"

    id: str | None = None
    couple_id: str
    need_category: str = "communication"
    status: str = "pending"
    created_at: datetime
    acknowledged_at: datetime | None = None
    resolved_at: datetime | None = None


# ---------------------------------------------------------------------------
# Weekly suggestions
# ---------------------------------------------------------------------------


class Suggestion(RowModel):
    entity: ClassVar[str] = "suggestions"

    id: str | None = None
    user_id: str
    category: SuggestionCategory
    suggestion_text: str
    suggestion_type: str
    time_estimate: str | None = None
    difficulty: str | None = None
    week_start_date: date
    saved: bool = False
    completed: bool = False
    data_sources: Annotated[dict[str, Any], NoneAsEmptyDict] = Field(default_factory=dict)
    personalization_tier: int = Field(default=1, ge=1, le=4)
    metadata: Annotated[dict[str, Any], NoneAsEmptyDict] = Field(default_factory=dict)
    created_at: datetime | None = None


class SuggestionGenerationMetadata(RowModel):
    entity: ClassVar[str] = "suggestion_generation_metadata"

    user_id: str
    category: SuggestionCategory
    week_start_date: date
    onboarding_data_version: datetime | None = None
    partner_onboarding_data_version: datetime | None = None
    saved_insights_count: int = 0
    daily_answers_count: int = 0
    personalization_tier: int = Field(default=1, ge=1, le=4)
    generated_at: datetime


# ---------------------------------------------------------------------------
# Helping Hand
# ---------------------------------------------------------------------------


class HelpingHandUserStatus(RowModel):
    entity: ClassVar[str] = "helping_hand_user_status"

    id: str | None = None
    user_id: str
    week_start_date: date
    work_schedule_type: Literal["full_time", "part_time", "flexible", "unemployed", "student", "shift_work"]
    work_hours_per_week: int | None = None
    available_time_level: Literal["very_limited", "limited", "moderate", "plenty"]
    busy_days: Annotated[list[date], NoneAsEmptyList] = Field(default_factory=list)
    emotional_capacity: Literal["very_low", "low", "moderate", "good", "excellent"]
    stress_level: Literal["very_stressed", "stressed", "moderate", "relaxed", "very_relaxed"]
    energy_level: Literal["exhausted", "tired", "moderate", "energized", "very_energized"]
    current_challenges: Annotated[list[str], NoneAsEmptyList] = Field(default_factory=list)
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class HelpingHandCategory(RowModel):
    entity: ClassVar[str] = "helping_hand_categories"

    id: str
    name: str
    display_name: str
    description: str = ""
    icon: str = ""
    color_class: str = ""
    min_time_required: int = 0
    max_time_required: int = 0
    effort_level: EffortLevel = "low"
    emotional_capacity_required: Literal["low", "moderate", "high"] = "low"
    sort_order: int = 0
    is_active: bool = True
    created_at: datetime | None = None


class SuggestionStep(BaseModel):
    step: int
    action: str
    tip: str | None = None
    estimated_minutes: int | None = None


class HelpingHandSuggestion(RowModel):
    entity: ClassVar[str] = "helping_hand_suggestions"

    id: str | None = None
    user_id: str
    relationship_id: str
    week_start_date: date
    category_id: str
    source_type: Literal["ai", "user_created"] = "user_created"
    title: str
    description: str
    detailed_steps: Annotated[list[SuggestionStep], NoneAsEmptyList] = Field(default_factory=list)
    time_estimate_minutes: int
    effort_level: EffortLevel
    best_timing: Literal["morning", "afternoon", "evening", "weekend", "any"] | None = None
    love_language_alignment: Annotated[list[LoveLanguage], NoneAsEmptyList] = Field(default_factory=list)
    why_suggested: str | None = None
    based_on_factors: Annotated[dict[str, Any], NoneAsEmptyDict] = Field(default_factory=dict)
    partner_hint: str | None = None
    partner_preference_match: bool | None = None
    is_selected: bool = False
    is_completed: bool = False
    completed_at: datetime | None = None
    user_feedback: UserFeedback | None = None
    user_notes: str | None = None
    ai_confidence_score: float | None = None
    generated_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class HelpingHandSuggestionWithCategory(HelpingHandSuggestion):
    entity: ClassVar[str] = "helping_hand_suggestions_with_category"

    category_name: str
    category_display_name: str
    category_icon: str = ""
    category_color_class: str = ""


class HelpingHandReminder(RowModel):
    entity: ClassVar[str] = "helping_hand_reminders"

    id: str | None = None
    suggestion_id: str
    user_id: str
    frequency: ReminderFrequency
    specific_days: Annotated[list[int], NoneAsEmptyList] = Field(default_factory=list)
    preferred_time: str
    start_date: date
    end_date: date | None = None
    is_active: bool = True
    last_sent_at: datetime | None = None
    next_scheduled_at: datetime | None = None
    total_sent: int = 0
    snoozed_until: datetime | None = None
    marked_done: bool = False
    marked_done_at: datetime | None = None
    calendar_event_id: str | None = None
    synced_to_calendar: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("specific_days")
    @classmethod
    def weekdays_in_range(cls, value: list[int]) -> list[int]:
        for day in value:
            if day < 0 or day > 6:
                raise ValueError("specific_days must be between 0 (Sunday) and 6 (Saturday)")
        return value

    @field_validator("preferred_time", mode="before")
    @classmethod
    def hh_mm(cls, value: Any) -> str:
        if isinstance(value, time):
            return value.strftime("%H:%M")
        if not isinstance(value, str):
            raise ValueError("preferred_time must be HH:MM")
        parts = value.split(":")
        if len(parts) < 2 or not all(p.isdigit() for p in parts[:2]):
            raise ValueError("preferred_time must be HH:MM")
        hour, minute = int(parts[0]), int(parts[1])
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            raise ValueError("preferred_time must be HH:MM")
        return f"{hour:02d}:{minute:02d}"


class HelpingHandPartnerHint(RowModel):
    entity: ClassVar[str] = "helping_hand_partner_hints"

    id: str | None = None
    relationship_id: str
    hinting_user_id: str
    receiving_partner_id: str
    hint_type: PartnerHintType
    hint_text: str
    show_directly: bool = False
    expires_at: datetime | None = None
    used_in_suggestion_count: int = 0
    last_used_at: datetime | None = None
    created_at: datetime | None = None
    is_active: bool = True

    @field_validator("used_in_suggestion_count", mode="before")
    @classmethod
    def default_count(cls, value: Any) -> Any:
        return 0 if value is None else value


class ActivePartnerHint(RowModel):
    """Row shape of ``get_active_partner_hints()``, which omits the receiver and bookkeeping columns."""

    entity: ClassVar[str] = "active_partner_hints"

    id: str
    relationship_id: str
    hinting_user_id: str
    hint_type: PartnerHintType
    hint_text: str
    show_directly: bool = False
    created_at: datetime | None = None


class CategoryCount(RowModel):
    entity: ClassVar[str] = "helping_hand_category_counts"

    category_id: str
    category_name: str
    count: int = 0
