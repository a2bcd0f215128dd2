import copy
import uuid
from datetime import date, datetime, time, timezone
from typing import Any

import pytest

from lovebirds.errors import StoreError

# Wednesday 2026-02-11, 10:00 in America/New_York
FIXED_NOW = datetime(2026, 2, 11, 15, 0, tzinfo=timezone.utc)

# Columns returned by the get_active_partner_hints() procedure
ACTIVE_HINT_COLUMNS = ("id", "relationship_id", "hinting_user_id", "hint_type", "hint_text", "show_directly", "created_at")


class InMemoryRepository:
    """Dict-backed stand-in for SqlRepository with the same method surface.

    ``fail`` names methods that should raise ``StoreError`` instead of running.
    """

    def __init__(self):
        self.onboarding: dict[str, dict[str, Any]] = {}
        self.insights: list[dict[str, Any]] = []
        self.answer_counts: dict[str, int] = {}
        self.wishes: list[dict[str, Any]] = []
        self.suggestions: list[dict[str, Any]] = []
        self.generation_metadata: list[dict[str, Any]] = []
        self.profiles: dict[str, dict[str, Any]] = {}
        self.relationships: dict[str, dict[str, Any]] = {}
        self.partner_guesses: dict[str, list[dict[str, Any]]] = {}
        self.needs: list[dict[str, Any]] = []
        self.events: list[dict[str, Any]] = []
        self.quiet: dict[str, dict[str, Any]] = {}
        self.hh_status: list[dict[str, Any]] = []
        self.hh_categories: list[dict[str, Any]] = []
        self.hh_suggestions: list[dict[str, Any]] = []
        self.hh_reminders: list[dict[str, Any]] = []
        self.hh_hints: list[dict[str, Any]] = []
        self.fail: set[str] = set()
        self.calls: list[str] = []

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail:
            raise StoreError(name, "simulated failure")

    # Onboarding, insights, answers, wishes

    def get_onboarding(self, user_id):
        self._call("get_onboarding")
        row = self.onboarding.get(user_id)
        return copy.deepcopy(row) if row else None

    def list_saved_insights(self, user_id):
        self._call("list_saved_insights")
        return [dict(r) for r in self.insights if r.get("user_id") == user_id]

    def count_question_answers(self, user_id):
        self._call("count_question_answers")
        return self.answer_counts.get(user_id, 0)

    def list_weekly_wishes(self, user_id, since):
        self._call("list_weekly_wishes")
        rows = [dict(r) for r in self.wishes if r["user_id"] == user_id and r["week_start_date"] >= since]
        return sorted(rows, key=lambda r: r["week_start_date"], reverse=True)

    # Weekly suggestions

    def list_suggestions(self, user_id, category, week_start_date):
        self._call("list_suggestions")
        return [
            dict(r)
            for r in self.suggestions
            if r["user_id"] == user_id and r["category"] == category and r["week_start_date"] == week_start_date
        ]

    def insert_suggestions(self, rows):
        self._call("insert_suggestions")
        inserted = []
        for fields in rows:
            row = {**copy.deepcopy(fields), "id": str(uuid.uuid4()), "created_at": FIXED_NOW}
            self.suggestions.append(row)
            inserted.append(dict(row))
        return inserted

    def update_suggestion(self, suggestion_id, user_id, fields):
        self._call("update_suggestion")
        for row in self.suggestions:
            if row["id"] == suggestion_id and row["user_id"] == user_id:
                row.update(fields)
                return dict(row)
        return None

    def upsert_generation_metadata(self, fields):
        self._call("upsert_generation_metadata")
        key = (fields["user_id"], fields["category"], fields["week_start_date"])
        self.generation_metadata = [
            m for m in self.generation_metadata if (m["user_id"], m["category"], m["week_start_date"]) != key
        ]
        self.generation_metadata.append(dict(fields))

    # Partner profiles, relationships, needs

    def get_partner_profile(self, user_id):
        self._call("get_partner_profile")
        row = self.profiles.get(user_id)
        return copy.deepcopy(row) if row else None

    def get_relationship(self, couple_id):
        self._call("get_relationship")
        return self.relationships.get(couple_id)

    def insert_partner_profile(self, fields):
        self._call("insert_partner_profile")
        row = {**copy.deepcopy(fields), "id": str(uuid.uuid4()), "created_at": FIXED_NOW, "updated_at": FIXED_NOW}
        self.profiles[fields["user_id"]] = row
        return copy.deepcopy(row)

    def update_partner_profile(self, user_id, fields):
        self._call("update_partner_profile")
        row = self.profiles.get(user_id)
        if row is None:
            return None
        row.update(copy.deepcopy(fields))
        return copy.deepcopy(row)

    def list_relationship_needs(self, couple_id):
        self._call("list_relationship_needs")
        return [dict(n) for n in self.needs if n["couple_id"] == couple_id]

    def partner_guess_about_me(self, user_id):
        self._call("partner_guess_about_me")
        return list(self.partner_guesses.get(user_id, []))

    # Engagement log

    def insert_learning_event(self, user_id, event_type, context, created_at):
        self._call("insert_learning_event")
        event_id = str(uuid.uuid4())
        self.events.append(
            {
                "id": event_id,
                "user_id": user_id,
                "event_type": event_type,
                "context": copy.deepcopy(context),
                "created_at": created_at or FIXED_NOW,
            }
        )
        return event_id

    def list_learning_events(self, user_id, since=None, event_type=None, context_contains=None, limit=None):
        self._call("list_learning_events")
        rows = [
            dict(e)
            for e in self.events
            if e["user_id"] == user_id
            and (since is None or e["created_at"] >= since)
            and (event_type is None or e["event_type"] == event_type)
            and all(e["context"].get(k) == v for k, v in (context_contains or {}).items())
        ]
        rows.sort(key=lambda e: e["created_at"], reverse=True)
        return rows[:limit] if limit else rows

    # Quiet mode

    def get_quiet_mode(self, user_id):
        self._call("get_quiet_mode")
        row = self.quiet.get(user_id)
        return dict(row) if row else None

    def upsert_quiet_mode(self, fields):
        self._call("upsert_quiet_mode")
        self.quiet[fields["user_id"]] = dict(fields)
        return dict(fields)

    def deactivate_quiet_mode(self, user_id):
        self._call("deactivate_quiet_mode")
        if user_id in self.quiet:
            self.quiet[user_id]["active"] = False

    # Helping Hand

    def get_helping_hand_status(self, user_id, week_start_date):
        self._call("get_helping_hand_status")
        for row in self.hh_status:
            if row["user_id"] == user_id and row["week_start_date"] == week_start_date:
                return dict(row)
        return None

    def upsert_helping_hand_status(self, fields):
        self._call("upsert_helping_hand_status")
        for row in self.hh_status:
            if row["user_id"] == fields["user_id"] and row["week_start_date"] == fields["week_start_date"]:
                row.update(fields)
                return dict(row)
        row = {**fields, "id": str(uuid.uuid4()), "created_at": FIXED_NOW}
        self.hh_status.append(row)
        return dict(row)

    def list_helping_hand_categories(self):
        self._call("list_helping_hand_categories")
        rows = [dict(c) for c in self.hh_categories if c.get("is_active", True)]
        return sorted(rows, key=lambda c: c.get("sort_order", 0))

    def get_helping_hand_category(self, category_id):
        self._call("get_helping_hand_category")
        for c in self.hh_categories:
            if c["id"] == category_id:
                return dict(c)
        return None

    def helping_hand_category_counts(self, user_id, week_start_date):
        self._call("helping_hand_category_counts")
        out = []
        for c in self.hh_categories:
            n = sum(
                1
                for s in self.hh_suggestions
                if s["user_id"] == user_id and s["week_start_date"] == week_start_date and s["category_id"] == c["id"]
            )
            out.append({"category_id": c["id"], "category_name": c["name"], "count": n})
        return out

    def helping_hand_suggestions_with_category(self, user_id, week_start_date, category_id):
        self._call("helping_hand_suggestions_with_category")
        categories = {c["id"]: c for c in self.hh_categories}
        out = []
        for s in self.hh_suggestions:
            if s["user_id"] != user_id or s["week_start_date"] != week_start_date:
                continue
            if category_id and s["category_id"] != category_id:
                continue
            c = categories[s["category_id"]]
            out.append(
                {
                    **s,
                    "category_name": c["name"],
                    "category_display_name": c["display_name"],
                    "category_icon": c.get("icon", ""),
                    "category_color_class": c.get("color_class", ""),
                }
            )
        return out

    def get_helping_hand_suggestion(self, suggestion_id):
        self._call("get_helping_hand_suggestion")
        for s in self.hh_suggestions:
            if s["id"] == suggestion_id:
                return dict(s)
        return None

    def insert_helping_hand_suggestion(self, fields):
        self._call("insert_helping_hand_suggestion")
        row = {**copy.deepcopy(fields), "id": str(uuid.uuid4()), "created_at": FIXED_NOW}
        self.hh_suggestions.append(row)
        return dict(row)

    def update_helping_hand_suggestion(self, suggestion_id, user_id, fields):
        self._call("update_helping_hand_suggestion")
        for s in self.hh_suggestions:
            if s["id"] == suggestion_id and s["user_id"] == user_id:
                s.update(fields)
                return dict(s)
        return None

    def delete_user_created_suggestion(self, suggestion_id, user_id):
        self._call("delete_user_created_suggestion")
        self.hh_suggestions = [
            s
            for s in self.hh_suggestions
            if not (s["id"] == suggestion_id and s["user_id"] == user_id and s["source_type"] == "user_created")
        ]

    def insert_helping_hand_reminder(self, fields):
        self._call("insert_helping_hand_reminder")
        row = {**copy.deepcopy(fields), "id": str(uuid.uuid4()), "created_at": FIXED_NOW}
        # psycopg2 hands TIME columns back as datetime.time
        row["preferred_time"] = time.fromisoformat(row["preferred_time"])
        self.hh_reminders.append(row)
        return dict(row)

    def list_active_reminders(self, user_id):
        self._call("list_active_reminders")
        return [dict(r) for r in self.hh_reminders if r["user_id"] == user_id and r.get("is_active", True)]

    def update_helping_hand_reminder(self, reminder_id, fields, user_id):
        self._call("update_helping_hand_reminder")
        for r in self.hh_reminders:
            if r["id"] == reminder_id and r["user_id"] == user_id:
                r.update(fields)

    def insert_partner_hint(self, fields):
        self._call("insert_partner_hint")
        row = {**copy.deepcopy(fields), "id": str(uuid.uuid4()), "created_at": FIXED_NOW, "used_in_suggestion_count": 0}
        self.hh_hints.append(row)
        return dict(row)

    def active_partner_hints(self, receiving_partner_id):
        self._call("active_partner_hints")
        return [
            {k: h.get(k) for k in ACTIVE_HINT_COLUMNS}
            for h in self.hh_hints
            if h["receiving_partner_id"] == receiving_partner_id
            and h.get("is_active", True)
            and (h.get("expires_at") is None or h["expires_at"] > FIXED_NOW)
        ]

    def list_hints_sent_by(self, user_id):
        self._call("list_hints_sent_by")
        return [dict(h) for h in self.hh_hints if h["hinting_user_id"] == user_id and h.get("is_active", True)]

    def deactivate_partner_hint(self, hint_id, user_id):
        self._call("deactivate_partner_hint")
        for h in self.hh_hints:
            if h["id"] == hint_id and h["hinting_user_id"] == user_id:
                h["is_active"] = False


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def week_start():
    return date(2026, 2, 9)
