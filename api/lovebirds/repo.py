"""SQL-backed repository used by every service.

Each method opens its own session, runs plain ``text()`` statements and returns
``dict`` rows (or ``None``). Driver errors are wrapped in ``StoreError`` so callers
never see SQLAlchemy types.
"""

import json
import logging
from datetime import date, datetime
from functools import wraps
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .database import SessionLocal
from .errors import StoreError
from .services.events import log_engagement_event

logger = logging.getLogger(__name__)

_JSON_COLUMNS = {
    "context",
    "custom_preferences",
    "learned_patterns",
    "data_sources",
    "metadata",
    "detailed_steps",
    "based_on_factors",
}


def _store_call(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.exception("[repo] %s failed", fn.__name__)
            raise StoreError(fn.__name__, str(exc.__class__.__name__)) from exc

    return wrapper


def _params(values: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in values.items():
        if key in _JSON_COLUMNS and value is not None and not isinstance(value, str):
            out[key] = json.dumps(value, default=str)
        else:
            out[key] = value
    return out


def _set_clause(fields: dict[str, Any]) -> str:
    parts = []
    for key in fields:
        if key in _JSON_COLUMNS:
            parts.append(f"{key} = CAST(:{key} AS jsonb)")
        else:
            parts.append(f"{key} = :{key}")
    return ", ".join(parts)


def _values_clause(fields: dict[str, Any]) -> tuple[str, str]:
    columns = ", ".join(fields)
    values = ", ".join(f"CAST(:{k} AS jsonb)" if k in _JSON_COLUMNS else f":{k}" for k in fields)
    return columns, values


class SqlRepository:
    def __init__(self, session_factory=SessionLocal) -> None:
        self.session_factory = session_factory

    def _first(self, sql: str, params: dict[str, Any]) -> dict[str, Any] | None:
        with self.session_factory() as db:
            row = db.execute(text(sql), params).mappings().first()
        return dict(row) if row else None

    def _all(self, sql: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        with self.session_factory() as db:
            rows = db.execute(text(sql), params).mappings().all()
        return [dict(r) for r in rows]

    def _write(self, sql: str, params: dict[str, Any], returning: bool = True) -> dict[str, Any] | None:
        with self.session_factory() as db:
            result = db.execute(text(sql), _params(params))
            row = result.mappings().first() if returning else None
            db.commit()
        return dict(row) if row else None

    def _insert(self, table: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        columns, values = _values_clause(fields)
        return self._write(f"INSERT INTO {table} ({columns}) VALUES ({values}) RETURNING *", fields)

    # Onboarding, insights, answers, wishes

    @_store_call
    def get_onboarding(self, user_id: str) -> dict[str, Any] | None:
        return self._first("SELECT * FROM onboarding_responses WHERE user_id = :user_id LIMIT 1", {"user_id": user_id})

    @_store_call
    def list_saved_insights(self, user_id: str) -> list[dict[str, Any]]:
        return self._all(
            """
            SELECT id, user_id, question_text, partner_answer, created_at
            FROM saved_partner_insights
            WHERE user_id = :user_id
            ORDER BY created_at DESC
            """,
            {"user_id": user_id},
        )

    @_store_call
    def count_question_answers(self, user_id: str) -> int:
        row = self._first("SELECT COUNT(*) AS n FROM question_answers WHERE user_id = :user_id", {"user_id": user_id})
        return int((row or {}).get("n") or 0)

    @_store_call
    def list_weekly_wishes(self, user_id: str, since: date) -> list[dict[str, Any]]:
        return self._all(
            """
            SELECT user_id, week_start_date, wish_text
            FROM weekly_wishes
            WHERE user_id = :user_id AND week_start_date >= :since
            ORDER BY week_start_date DESC
            """,
            {"user_id": user_id, "since": since},
        )

    # Weekly suggestions

    @_store_call
    def list_suggestions(self, user_id: str, category: str, week_start_date: date) -> list[dict[str, Any]]:
        return self._all(
            """
            SELECT *
            FROM suggestions
            WHERE user_id = :user_id AND category = :category AND week_start_date = :week_start_date
            ORDER BY created_at ASC
            """,
            {"user_id": user_id, "category": category, "week_start_date": week_start_date},
        )

    @_store_call
    def insert_suggestions(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        inserted = []
        with self.session_factory() as db:
            for fields in rows:
                columns, values = _values_clause(fields)
                row = db.execute(
                    text(f"INSERT INTO suggestions ({columns}) VALUES ({values}) RETURNING *"),
                    _params(fields),
                ).mappings().first()
                inserted.append(dict(row))
            db.commit()
        return inserted

    @_store_call
    def update_suggestion(self, suggestion_id: str, user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        return self._write(
            f"UPDATE suggestions SET {_set_clause(fields)} WHERE id = :id AND user_id = :user_id RETURNING *",
            {**fields, "id": suggestion_id, "user_id": user_id},
        )

    @_store_call
    def upsert_generation_metadata(self, fields: dict[str, Any]) -> None:
        columns, values = _values_clause(fields)
        updates = ", ".join(f"{k} = EXCLUDED.{k}" for k in fields if k not in ("user_id", "category", "week_start_date"))
        self._write(
            f"""
            INSERT INTO suggestion_generation_metadata ({columns}) VALUES ({values})
            ON CONFLICT (user_id, category, week_start_date) DO UPDATE SET {updates}
            """,
            fields,
            returning=False,
        )

    # Partner profiles, relationships, needs

    @_store_call
    def get_partner_profile(self, user_id: str) -> dict[str, Any] | None:
        return self._first("SELECT * FROM partner_profiles WHERE user_id = :user_id", {"user_id": user_id})

    @_store_call
    def get_relationship(self, couple_id: str) -> dict[str, Any] | None:
        return self._first("SELECT id, partner_a_id, partner_b_id FROM relationships WHERE id = :id", {"id": couple_id})

    @_store_call
    def insert_partner_profile(self, fields: dict[str, Any]) -> dict[str, Any]:
        return self._insert("partner_profiles", fields)

    @_store_call
    def update_partner_profile(self, user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        return self._write(
            f"UPDATE partner_profiles SET {_set_clause(fields)}, updated_at = now() WHERE user_id = :user_id RETURNING *",
            {**fields, "user_id": user_id},
        )

    @_store_call
    def list_relationship_needs(self, couple_id: str) -> list[dict[str, Any]]:
        return self._all(
            "SELECT * FROM relationship_needs WHERE couple_id = :couple_id ORDER BY created_at DESC",
            {"couple_id": couple_id},
        )

    @_store_call
    def partner_guess_about_me(self, user_id: str) -> list[dict[str, Any]]:
        return self._all("SELECT * FROM get_partner_guess_about_me(:p_user_id)", {"p_user_id": user_id})

    # Engagement log

    @_store_call
    def insert_learning_event(self, user_id: str, event_type: str, context: dict[str, Any], created_at: datetime | None) -> str:
        with self.session_factory() as db:
            event_id = log_engagement_event(db, user_id, event_type, context, created_at)
            db.commit()
        return event_id

    @_store_call
    def list_learning_events(
        self,
        user_id: str,
        since: datetime | None = None,
        event_type: str | None = None,
        context_contains: dict[str, Any] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        sql = """
            SELECT id, user_id, event_type, context, created_at
            FROM learning_events
            WHERE user_id = :user_id
              AND (CAST(:since AS timestamptz) IS NULL OR created_at >= :since)
              AND (CAST(:event_type AS text) IS NULL OR event_type = :event_type)
              AND (CAST(:contains AS jsonb) IS NULL OR context @> CAST(:contains AS jsonb))
            ORDER BY created_at DESC
        """
        if limit:
            sql += f" LIMIT {int(limit)}"
        return self._all(
            sql,
            {
                "user_id": user_id,
                "since": since,
                "event_type": event_type,
                "contains": json.dumps(context_contains) if context_contains else None,
            },
        )

    # Quiet mode

    @_store_call
    def get_quiet_mode(self, user_id: str) -> dict[str, Any] | None:
        return self._first("SELECT * FROM quiet_mode WHERE user_id = :user_id", {"user_id": user_id})

    @_store_call
    def upsert_quiet_mode(self, fields: dict[str, Any]) -> dict[str, Any] | None:
        columns, values = _values_clause(fields)
        updates = ", ".join(f"{k} = EXCLUDED.{k}" for k in fields if k != "user_id")
        return self._write(
            f"""
            INSERT INTO quiet_mode ({columns}, updated_at) VALUES ({values}, now())
            ON CONFLICT (user_id) DO UPDATE SET {updates}, updated_at = now()
            RETURNING *
            """,
            fields,
        )

    @_store_call
    def deactivate_quiet_mode(self, user_id: str) -> None:
        self._write(
            "UPDATE quiet_mode SET active = false, updated_at = now() WHERE user_id = :user_id",
            {"user_id": user_id},
            returning=False,
        )

    # Helping Hand

    @_store_call
    def get_helping_hand_status(self, user_id: str, week_start_date: date) -> dict[str, Any] | None:
        return self._first(
            "SELECT * FROM helping_hand_user_status WHERE user_id = :user_id AND week_start_date = :week_start_date",
            {"user_id": user_id, "week_start_date": week_start_date},
        )

    @_store_call
    def upsert_helping_hand_status(self, fields: dict[str, Any]) -> dict[str, Any]:
        columns, values = _values_clause(fields)
        updates = ", ".join(f"{k} = EXCLUDED.{k}" for k in fields if k not in ("user_id", "week_start_date"))
        return self._write(
            f"""
            INSERT INTO helping_hand_user_status ({columns}) VALUES ({values})
            ON CONFLICT (user_id, week_start_date) DO UPDATE SET {updates}, updated_at = now()
            RETURNING *
            """,
            fields,
        )

    @_store_call
    def list_helping_hand_categories(self) -> list[dict[str, Any]]:
        return self._all(
            "SELECT * FROM helping_hand_categories WHERE is_active = true ORDER BY sort_order ASC",
            {},
        )

    @_store_call
    def get_helping_hand_category(self, category_id: str) -> dict[str, Any] | None:
        return self._first("SELECT * FROM helping_hand_categories WHERE id = :id", {"id": category_id})

    @_store_call
    def helping_hand_category_counts(self, user_id: str, week_start_date: date) -> list[dict[str, Any]]:
        return self._all(
            "SELECT * FROM get_helping_hand_category_counts(:p_user_id, :p_week_start_date)",
            {"p_user_id": user_id, "p_week_start_date": week_start_date},
        )

    @_store_call
    def helping_hand_suggestions_with_category(
        self, user_id: str, week_start_date: date, category_id: str | None
    ) -> list[dict[str, Any]]:
        return self._all(
            "SELECT * FROM get_helping_hand_suggestions_with_category(:p_user_id, :p_week_start_date, :p_category_id)",
            {"p_user_id": user_id, "p_week_start_date": week_start_date, "p_category_id": category_id},
        )

    @_store_call
    def get_helping_hand_suggestion(self, suggestion_id: str) -> dict[str, Any] | None:
        return self._first("SELECT * FROM helping_hand_suggestions WHERE id = :id", {"id": suggestion_id})

    @_store_call
    def insert_helping_hand_suggestion(self, fields: dict[str, Any]) -> dict[str, Any]:
        return self._insert("helping_hand_suggestions", fields)

    @_store_call
    def update_helping_hand_suggestion(self, suggestion_id: str, user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
        return self._write(
            f"""
            UPDATE helping_hand_suggestions SET {_set_clause(fields)}, updated_at = now()
            WHERE id = :id AND user_id = :user_id
            RETURNING *
            """,
            {**fields, "id": suggestion_id, "user_id": user_id},
        )

    @_store_call
    def delete_user_created_suggestion(self, suggestion_id: str, user_id: str) -> None:
        self._write(
            """
            DELETE FROM helping_hand_suggestions
            WHERE id = :id AND user_id = :user_id AND source_type = 'user_created'
            """,
            {"id": suggestion_id, "user_id": user_id},
            returning=False,
        )

    @_store_call
    def insert_helping_hand_reminder(self, fields: dict[str, Any]) -> dict[str, Any]:
        return self._insert("helping_hand_reminders", fields)

    @_store_call
    def list_active_reminders(self, user_id: str) -> list[dict[str, Any]]:
        return self._all(
            """
            SELECT * FROM helping_hand_reminders
            WHERE user_id = :user_id AND is_active = true
            ORDER BY next_scheduled_at ASC NULLS LAST
            """,
            {"user_id": user_id},
        )

    @_store_call
    def update_helping_hand_reminder(self, reminder_id: str, fields: dict[str, Any], user_id: str) -> None:
        self._write(
            f"""
            UPDATE helping_hand_reminders SET {_set_clause(fields)}, updated_at = now()
            WHERE id = :id AND user_id = :user_id
            """,
            {**fields, "id": reminder_id, "user_id": user_id},
            returning=False,
        )

    @_store_call
    def insert_partner_hint(self, fields: dict[str, Any]) -> dict[str, Any]:
        return self._insert("helping_hand_partner_hints", fields)

    @_store_call
    def active_partner_hints(self, receiving_partner_id: str) -> list[dict[str, Any]]:
        return self._all(
            "SELECT * FROM get_active_partner_hints(:p_receiving_partner_id)",
            {"p_receiving_partner_id": receiving_partner_id},
        )

    @_store_call
    def list_hints_sent_by(self, user_id: str) -> list[dict[str, Any]]:
        return self._all(
            """
            SELECT * FROM helping_hand_partner_hints
            WHERE hinting_user_id = :user_id AND is_active = true
            ORDER BY created_at DESC
            """,
            {"user_id": user_id},
        )

    @_store_call
    def deactivate_partner_hint(self, hint_id: str, user_id: str) -> None:
        self._write(
            "UPDATE helping_hand_partner_hints SET is_active = false WHERE id = :id AND hinting_user_id = :user_id",
            {"id": hint_id, "user_id": user_id},
            returning=False,
        )
