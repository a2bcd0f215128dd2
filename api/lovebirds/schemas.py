from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from .models import (
    EffortLevel,
    LoveLanguage,
    PartnerHintType,
    QuietModeReason,
    ReminderFrequency,
    SuggestionStep,
    UserFeedback,
)


class GenerateSuggestionsRequest(BaseModel):
    partner_id: str


class UpdateSuggestionRequest(BaseModel):
    saved: bool | None = None
    completed: bool | None = None


class CustomPreferenceRequest(BaseModel):
    category: Literal["stress", "affection", "communication", "surprises", "general"]
    rule: str = Field(min_length=1)


class QuietModeRequest(BaseModel):
    reason: QuietModeReason = "user_requested"
    duration_hours: float | None = Field(default=None, gt=0)


class EngagementEventRequest(BaseModel):
    event_type: str = Field(min_length=1)
    context: dict[str, Any] = Field(default_factory=dict)


class NotificationTimingRequest(BaseModel):
    type: str
    hour: int = Field(ge=0, le=23)
    partner_mood: int | None = Field(default=None, ge=1, le=10)
    partner_energy: int | None = Field(default=None, ge=1, le=10)
    user_energy: int | None = Field(default=None, ge=1, le=10)
    overlap_hours: float | None = Field(default=None, ge=0)


class UserStatusRequest(BaseModel):
    week_start_date: date | None = None
    status: dict[str, Any]


class CustomSuggestionRequest(BaseModel):
    relationship_id: str
    week_start_date: date | None = None
    category_id: str
    title: str = Field(min_length=1)
    description: str
    detailed_steps: list[SuggestionStep] = Field(default_factory=list)
    time_estimate_minutes: int = Field(gt=0)
    effort_level: EffortLevel
    best_timing: str | None = None
    love_language_alignment: list[LoveLanguage] = Field(default_factory=list)


class SelectSuggestionRequest(BaseModel):
    selected: bool


class CompleteSuggestionRequest(BaseModel):
    feedback: UserFeedback | None = None
    notes: str | None = None


class ReminderRequest(BaseModel):
    suggestion_id: str
    frequency: ReminderFrequency
    specific_days: list[int] = Field(default_factory=list)
    preferred_time: str
    start_date: date
    end_date: date | None = None
    sync_to_calendar: bool = False


class CalendarEventRequest(BaseModel):
    calendar_event_id: str = Field(min_length=1)


class PartnerHintRequest(BaseModel):
    relationship_id: str
    receiving_partner_id: str
    hint_type: PartnerHintType
    hint_text: str = Field(min_length=1)
    show_directly: bool = False
    expires_at: datetime | None = None
