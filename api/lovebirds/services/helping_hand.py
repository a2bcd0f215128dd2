"""Helping Hand: weekly capacity check-in, categorized suggestions, reminders and partner hints."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any

from ..config import APP_TIMEZONE
from ..errors import NotFoundError, PreconditionError
from ..models import (
    ActivePartnerHint,
    CategoryCount,
    HelpingHandCategory,
    HelpingHandPartnerHint,
    HelpingHandReminder,
    HelpingHandSuggestion,
    HelpingHandSuggestionWithCategory,
    HelpingHandUserStatus,
)
from .weeks import Clock, get_week_start_date, utc_now, week_context

logger = logging.getLogger(__name__)

_REMINDER_INSERT_COLUMNS = {
    "suggestion_id",
    "user_id",
    "frequency",
    "specific_days",
    "preferred_time",
    "start_date",
    "end_date",
    "is_active",
    "synced_to_calendar",
}

_HINT_INSERT_COLUMNS = {
    "relationship_id",
    "hinting_user_id",
    "receiving_partner_id",
    "hint_type",
    "hint_text",
    "show_directly",
    "expires_at",
    "is_active",
}


def format_time_estimate(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} min"
    hours, remaining = divmod(minutes, 60)
    label = f"{hours} hr{'s' if hours > 1 else ''}"
    return label if remaining == 0 else f"{label} {remaining} min"


class HelpingHandService:
    def __init__(self, repo, clock: Clock = utc_now, tz: str = APP_TIMEZONE) -> None:
        self.repo = repo
        self.clock = clock
        self.tz = tz

    # Weekly status

    def get_user_status(self, user_id: str, week_start_date: date) -> HelpingHandUserStatus | None:
        if not user_id:
            raise PreconditionError("user_id is required")
        row = self.repo.get_helping_hand_status(user_id, week_start_date)
        if not row:
            logger.info("[helping_hand] no status for user_id=%s week=%s", user_id, week_start_date)
            return None
        return HelpingHandUserStatus.from_row(row)

    def upsert_user_status(self, user_id: str, week_start_date: date, status: dict[str, Any]) -> HelpingHandUserStatus:
        """One status row per user and week; a second save for the same week overwrites it."""
        if not user_id:
            raise PreconditionError("user_id is required")
        record = HelpingHandUserStatus.from_row({**status, "user_id": user_id, "week_start_date": week_start_date})
        row = self.repo.upsert_helping_hand_status(record.to_row(exclude={"id", "created_at", "updated_at"}))
        logger.info("[helping_hand] saved status user_id=%s week=%s", user_id, week_start_date)
        return HelpingHandUserStatus.from_row(row) if row else record

    # Categories

    def get_categories(self) -> list[HelpingHandCategory]:
        return HelpingHandCategory.from_rows(self.repo.list_helping_hand_categories())

    def get_category_by_id(self, category_id: str) -> HelpingHandCategory:
        row = self.repo.get_helping_hand_category(category_id)
        if not row:
            raise NotFoundError("helping_hand_categories", category_id)
        return HelpingHandCategory.from_row(row)

    def get_category_counts(self, user_id: str, week_start_date: date) -> dict[str, Any]:
        counts = CategoryCount.from_rows(self.repo.helping_hand_category_counts(user_id, week_start_date))
        return {"counts": counts, "total_suggestions": sum(c.count for c in counts)}

    # Suggestions

    def get_suggestions(
        self,
        user_id: str,
        week_start_date: date,
        category_id: str | None = None,
        include_completed: bool = False,
    ) -> dict[str, Any]:
        if not user_id:
            raise PreconditionError("user_id is required")
        rows = self.repo.helping_hand_suggestions_with_category(user_id, week_start_date, category_id or None)
        suggestions = HelpingHandSuggestionWithCategory.from_rows(rows)
        if not include_completed:
            suggestions = [s for s in suggestions if not s.is_completed]
        return {"suggestions": suggestions, "total": len(suggestions)}

    def get_suggestion_by_id(self, suggestion_id: str) -> HelpingHandSuggestion:
        row = self.repo.get_helping_hand_suggestion(suggestion_id)
        if not row:
            raise NotFoundError("helping_hand_suggestions", suggestion_id)
        return HelpingHandSuggestion.from_row(row)

    def create_custom_suggestion(self, user_id: str, fields: dict[str, Any]) -> HelpingHandSuggestion:
        if not user_id:
            raise PreconditionError("user_id is required")
        if not fields.get("relationship_id"):
            raise PreconditionError("relationship_id is required")
        suggestion = HelpingHandSuggestion.from_row(
            {
                **fields,
                "user_id": user_id,
                "source_type": "user_created",
                "is_selected": False,
                "is_completed": False,
            }
        )
        row = self.repo.insert_helping_hand_suggestion(
            suggestion.to_row(exclude={"id", "created_at", "updated_at", "completed_at"})
        )
        logger.info("[helping_hand] custom suggestion created user_id=%s category=%s", user_id, suggestion.category_id)
        return HelpingHandSuggestion.from_row(row) if row else suggestion

    def select_suggestion(self, suggestion_id: str, user_id: str, selected: bool) -> None:
        self.repo.update_helping_hand_suggestion(suggestion_id, user_id, {"is_selected": bool(selected)})

    def complete_suggestion(
        self,
        suggestion_id: str,
        user_id: str,
        feedback: str | None = None,
        notes: str | None = None,
    ) -> None:
        fields = {
            "is_completed": True,
            "completed_at": self.clock(),
            "user_feedback": feedback or None,
            "user_notes": notes or None,
        }
        self.repo.update_helping_hand_suggestion(suggestion_id, user_id, fields)
        logger.info("[helping_hand] suggestion completed id=%s feedback=%s", suggestion_id, feedback)

    def delete_suggestion(self, suggestion_id: str, user_id: str) -> None:
        # AI-generated rows are left alone
        self.repo.delete_user_created_suggestion(suggestion_id, user_id)

    # Reminders

    def setup_reminder(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        if not user_id:
            raise PreconditionError("user_id is required")
        values = dict(fields)
        sync = bool(values.pop("sync_to_calendar", False))
        reminder = HelpingHandReminder.from_row({**values, "user_id": user_id, "is_active": True, "synced_to_calendar": sync})
        row = self.repo.insert_helping_hand_reminder(reminder.model_dump(include=_REMINDER_INSERT_COLUMNS))
        logger.info("[helping_hand] reminder set suggestion_id=%s frequency=%s", reminder.suggestion_id, reminder.frequency)
        # calendar_event_id is filled in later by the client after it syncs
        return {"reminder": HelpingHandReminder.from_row(row) if row else reminder, "calendar_event_id": None}

    def get_reminders(self, user_id: str) -> list[HelpingHandReminder]:
        return HelpingHandReminder.from_rows(self.repo.list_active_reminders(user_id))

    def update_reminder_calendar_event(self, reminder_id: str, user_id: str, calendar_event_id: str) -> None:
        if not calendar_event_id:
            raise PreconditionError("calendar_event_id is required")
        self.repo.update_helping_hand_reminder(
            reminder_id, {"calendar_event_id": calendar_event_id, "synced_to_calendar": True}, user_id=user_id
        )

    def cancel_reminder(self, reminder_id: str, user_id: str) -> None:
        self.repo.update_helping_hand_reminder(reminder_id, {"is_active": False}, user_id=user_id)
        logger.info("[helping_hand] reminder cancelled id=%s", reminder_id)

    # Partner hints

    def add_partner_hint(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        if not user_id:
            raise PreconditionError("user_id is required")
        hint = HelpingHandPartnerHint.from_row({**fields, "hinting_user_id": user_id, "is_active": True})
        row = self.repo.insert_partner_hint(hint.model_dump(include=_HINT_INSERT_COLUMNS))
        logger.info("[helping_hand] hint added type=%s for partner=%s", hint.hint_type, hint.receiving_partner_id)
        return {"hint": HelpingHandPartnerHint.from_row(row) if row else hint, "regenerated_suggestions": False}

    def get_active_hints_for_partner(self, receiving_partner_id: str) -> list[ActivePartnerHint]:
        return ActivePartnerHint.from_rows(self.repo.active_partner_hints(receiving_partner_id))

    def get_hints_sent_by_user(self, user_id: str) -> list[HelpingHandPartnerHint]:
        return HelpingHandPartnerHint.from_rows(self.repo.list_hints_sent_by(user_id))

    def delete_partner_hint(self, hint_id: str, user_id: str) -> None:
        self.repo.deactivate_partner_hint(hint_id, user_id)

    # Utilities

    def current_week_start(self, now: datetime | None = None) -> date:
        return get_week_start_date(now or self.clock(), self.tz)

    def get_week_context(self, week_start_date: date) -> dict[str, Any]:
        return week_context(week_start_date, self.clock(), self.tz)

    format_time_estimate = staticmethod(format_time_estimate)
