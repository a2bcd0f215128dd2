from datetime import date, time, timedelta

import pytest

from lovebirds.errors import NotFoundError, PreconditionError, RowValidationError
from lovebirds.services.helping_hand import HelpingHandService, format_time_estimate

WEEK = date(2026, 2, 9)

STATUS = {
    "work_schedule_type": "full_time",
    "available_time_level": "limited",
    "emotional_capacity": "moderate",
    "stress_level": "stressed",
    "energy_level": "tired",
    "busy_days": ["2026-02-10"],
}


def _seed_categories(repo):
    repo.hh_categories = [
        {"id": "cat-quick", "name": "quick_wins", "display_name": "Quick Wins", "sort_order": 1},
        {"id": "cat-care", "name": "acts_of_care", "display_name": "Acts of Care", "sort_order": 2},
        {"id": "cat-old", "name": "retired", "display_name": "Retired", "sort_order": 0, "is_active": False},
    ]


def _custom(**overrides):
    fields = {
        "relationship_id": "rel-1",
        "week_start_date": WEEK,
        "category_id": "cat-quick",
        "title": "Make their coffee",
        "description": "Have it ready before they wake up.",
        "time_estimate_minutes": 10,
        "effort_level": "minimal",
        "detailed_steps": [{"step": 1, "action": "Set the timer the night before"}],
    }
    fields.update(overrides)
    return fields


def _reminder(**overrides):
    fields = {
        "suggestion_id": "s-1",
        "frequency": "twice_weekly",
        "specific_days": [1, 4],
        "preferred_time": "8:30",
        "start_date": WEEK,
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def service(repo, clock):
    _seed_categories(repo)
    return HelpingHandService(repo, clock=clock)


def test_status_is_one_row_per_week(service, repo):
    assert service.get_user_status("u1", WEEK) is None

    first = service.upsert_user_status("u1", WEEK, STATUS)
    assert first.busy_days == [date(2026, 2, 10)]

    second = service.upsert_user_status("u1", WEEK, {**STATUS, "energy_level": "energized"})
    assert second.energy_level == "energized"
    assert len(repo.hh_status) == 1

    service.upsert_user_status("u1", WEEK + timedelta(days=7), STATUS)
    assert len(repo.hh_status) == 2
    assert service.get_user_status("u1", WEEK).energy_level == "energized"


def test_status_rejects_unknown_levels(service, repo):
    with pytest.raises(RowValidationError):
        service.upsert_user_status("u1", WEEK, {**STATUS, "stress_level": "meltdown"})
    assert repo.hh_status == []


def test_categories(service):
    assert [c.name for c in service.get_categories()] == ["quick_wins", "acts_of_care"]
    assert service.get_category_by_id("cat-care").display_name == "Acts of Care"
    with pytest.raises(NotFoundError):
        service.get_category_by_id("cat-missing")


def test_category_counts_total(service):
    service.create_custom_suggestion("u1", _custom())
    service.create_custom_suggestion("u1", _custom())
    service.create_custom_suggestion("u1", _custom(category_id="cat-care"))
    service.create_custom_suggestion("u1", _custom(week_start_date=WEEK - timedelta(days=7)))

    counts = service.get_category_counts("u1", WEEK)
    assert counts["total_suggestions"] == 3
    assert {c.category_id: c.count for c in counts["counts"]}["cat-quick"] == 2


def test_custom_suggestion_requires_relationship(service, repo):
    with pytest.raises(PreconditionError):
        service.create_custom_suggestion("u1", _custom(relationship_id=""))
    with pytest.raises(RowValidationError):
        service.create_custom_suggestion("u1", _custom(effort_level="heroic"))
    assert repo.hh_suggestions == []

    created = service.create_custom_suggestion("u1", _custom())
    assert created.id
    assert created.source_type == "user_created"
    assert created.detailed_steps[0].action == "Set the timer the night before"
    assert service.get_suggestion_by_id(created.id).title == "Make their coffee"
    with pytest.raises(NotFoundError):
        service.get_suggestion_by_id("nope")


def test_listing_hides_completed_by_default(service, clock):
    kept = service.create_custom_suggestion("u1", _custom())
    done = service.create_custom_suggestion("u1", _custom(category_id="cat-care"))
    service.select_suggestion(done.id, "u1", True)
    service.complete_suggestion(done.id, "u1", feedback="helpful", notes="They loved it")

    listed = service.get_suggestions("u1", WEEK)
    assert listed["total"] == 1
    assert listed["suggestions"][0].id == kept.id
    assert listed["suggestions"][0].category_display_name == "Quick Wins"

    everything = service.get_suggestions("u1", WEEK, include_completed=True)
    assert everything["total"] == 2

    completed = service.get_suggestion_by_id(done.id)
    assert completed.is_selected is True
    assert completed.completed_at == clock()
    assert completed.user_feedback == "helpful"

    assert service.get_suggestions("u1", WEEK, category_id="cat-care", include_completed=True)["total"] == 1


def test_only_user_created_suggestions_are_deleted(service, repo):
    custom = service.create_custom_suggestion("u1", _custom())
    repo.hh_suggestions.append({**_custom(), "id": "ai-1", "user_id": "u1", "source_type": "ai"})

    service.delete_suggestion(custom.id, "u1")
    service.delete_suggestion("ai-1", "u1")
    assert [s["id"] for s in repo.hh_suggestions] == ["ai-1"]


def test_reminder_setup_normalizes_time(service, repo):
    result = service.setup_reminder("u1", _reminder(sync_to_calendar=True))
    reminder = result["reminder"]
    assert reminder.preferred_time == "08:30"
    assert reminder.synced_to_calendar is True
    assert result["calendar_event_id"] is None
    assert "sync_to_calendar" not in repo.hh_reminders[0]


def test_stored_reminders_decode_time_columns(service, repo):
    service.setup_reminder("u1", _reminder(preferred_time="19:05"))
    assert repo.hh_reminders[0]["preferred_time"] == time(19, 5)

    (reminder,) = service.get_reminders("u1")
    assert reminder.preferred_time == "19:05"
    assert reminder.specific_days == [1, 4]


@pytest.mark.parametrize(
    "overrides",
    [{"specific_days": [7]}, {"specific_days": [-1]}, {"preferred_time": "25:00"}, {"preferred_time": "soon"}],
)
def test_reminder_validation(service, repo, overrides):
    with pytest.raises(RowValidationError):
        service.setup_reminder("u1", _reminder(**overrides))
    assert repo.hh_reminders == []


def test_reminder_calendar_and_cancel(service):
    reminder = service.setup_reminder("u1", _reminder())["reminder"]

    with pytest.raises(PreconditionError):
        service.update_reminder_calendar_event(reminder.id, "u1", "")
    service.update_reminder_calendar_event(reminder.id, "someone-else", "gcal-999")
    assert service.get_reminders("u1")[0].calendar_event_id is None
    service.update_reminder_calendar_event(reminder.id, "u1", "gcal-123")
    assert service.get_reminders("u1")[0].calendar_event_id == "gcal-123"

    service.cancel_reminder(reminder.id, "someone-else")
    assert len(service.get_reminders("u1")) == 1
    service.cancel_reminder(reminder.id, "u1")
    assert service.get_reminders("u1") == []


def test_partner_hints(service, clock):
    result = service.add_partner_hint(
        "u1",
        {"relationship_id": "rel-1", "receiving_partner_id": "u2", "hint_type": "like", "hint_text": "Fresh flowers"},
    )
    assert result["regenerated_suggestions"] is False
    hint = result["hint"]
    assert hint.used_in_suggestion_count == 0

    service.add_partner_hint(
        "u1",
        {
            "relationship_id": "rel-1",
            "receiving_partner_id": "u2",
            "hint_type": "need",
            "hint_text": "Quiet evenings",
            "expires_at": clock() - timedelta(days=1),
        },
    )
    assert [h.hint_text for h in service.get_active_hints_for_partner("u2")] == ["Fresh flowers"]
    (active,) = service.get_active_hints_for_partner("u2")
    assert active.id == hint.id
    assert active.hinting_user_id == "u1"
    assert active.show_directly is False
    assert len(service.get_hints_sent_by_user("u1")) == 2

    service.delete_partner_hint(hint.id, "u1")
    assert service.get_active_hints_for_partner("u2") == []
    assert len(service.get_hints_sent_by_user("u1")) == 1

    with pytest.raises(RowValidationError):
        service.add_partner_hint(
            "u1", {"relationship_id": "rel-1", "receiving_partner_id": "u2", "hint_type": "rumor", "hint_text": "x"}
        )


def test_week_helpers(service):
    assert service.current_week_start() == WEEK
    context = service.get_week_context(WEEK)
    assert context["week_end_date"] == date(2026, 2, 15)
    assert context["is_current_week"] is True
    assert service.get_week_context(WEEK - timedelta(days=7))["is_current_week"] is False


def test_format_time_estimate():
    assert format_time_estimate(45) == "45 min"
    assert format_time_estimate(60) == "1 hr"
    assert format_time_estimate(90) == "1 hr 30 min"
    assert format_time_estimate(120) == "2 hrs"
    assert HelpingHandService.format_time_estimate(135) == "2 hrs 15 min"
