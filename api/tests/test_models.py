from datetime import date, datetime, time, timezone

import pytest

from lovebirds.errors import RowValidationError
from lovebirds.models import (
    ActivePartnerHint,
    HelpingHandReminder,
    HelpingHandPartnerHint,
    OnboardingResponse,
    PartnerProfile,
    Suggestion,
)


def test_null_collections_decode_as_empty():
    profile = PartnerProfile.from_row(
        {
            "user_id": "u1",
            "love_language_primary": "words",
            "communication_style": "direct",
            "custom_preferences": None,
            "preferred_checkin_times": None,
        }
    )
    assert profile.custom_preferences == []
    assert profile.preferred_checkin_times == []
    assert profile.engagement_score == 50


def test_malformed_rows_name_the_entity_and_fields():
    with pytest.raises(RowValidationError) as exc:
        PartnerProfile.from_row({"user_id": "u1", "love_language_primary": "telepathy", "communication_style": "direct"})
    assert exc.value.entity == "partner_profiles"
    assert "love_language_primary" in exc.value.detail


def test_missing_required_columns_are_rejected():
    with pytest.raises(RowValidationError):
        Suggestion.from_row({"user_id": "u1", "category": "gift", "week_start_date": date(2026, 2, 9)})
    with pytest.raises(RowValidationError):
        HelpingHandPartnerHint.from_row({"relationship_id": "r1", "hint_type": "like", "hint_text": "x"})


def test_unknown_columns_are_ignored():
    row = OnboardingResponse.from_row({"user_id": "u1", "name": "Sam", "legacy_column": 1})
    assert row.name == "Sam"
    assert "legacy_column" not in row.to_row()


def test_from_rows_handles_none():
    assert Suggestion.from_rows(None) == []


def test_driver_date_and_time_values_decode():
    onboarding = OnboardingResponse.from_row({"user_id": "p1", "name": "Sam", "birthday": date(1990, 5, 1)})
    assert onboarding.birthday == date(1990, 5, 1)

    reminder = HelpingHandReminder.from_row(
        {
            "user_id": "u1",
            "suggestion_id": "s1",
            "frequency": "daily",
            "preferred_time": time(9, 0),
            "start_date": date(2026, 2, 9),
        }
    )
    assert reminder.preferred_time == "09:00"
    with pytest.raises(RowValidationError):
        HelpingHandReminder.from_row({**reminder.to_row(), "preferred_time": 900})


def test_active_hint_rows_decode_without_receiver():
    row = {
        "id": "h1",
        "relationship_id": "r1",
        "hinting_user_id": "u1",
        "hint_type": "like",
        "hint_text": "Fresh flowers",
        "show_directly": True,
        "created_at": datetime(2026, 2, 11, tzinfo=timezone.utc),
    }
    (hint,) = ActivePartnerHint.from_rows([row])
    assert hint.hint_text == "Fresh flowers"
    assert hint.show_directly is True
    with pytest.raises(RowValidationError):
        HelpingHandPartnerHint.from_row(row)
