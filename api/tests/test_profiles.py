from datetime import datetime, timedelta, timezone

import pytest

from lovebirds.errors import NotFoundError, PreconditionError, RowValidationError
from lovebirds.models import EngagementEvent, PartnerProfile, QuietMode
from lovebirds.services.profiles import (
    EngagementPatterns,
    PartnerProfileService,
    analyze_engagement,
    base_frequency,
    calculate_frequency_config,
)

NOW = datetime(2026, 2, 11, 15, 0, tzinfo=timezone.utc)


def _event(event_type="feature_engaged", days_ago=1, **context):
    return EngagementEvent(user_id="u1", event_type=event_type, context=context, created_at=NOW - timedelta(days=days_ago))


def _profile(**overrides):
    fields = {"user_id": "u1", "love_language_primary": "words", "communication_style": "direct"}
    fields.update(overrides)
    return PartnerProfile.from_row(fields)


def test_base_frequencies():
    assert base_frequency("high_touch")["nudges_per_week"] == 5
    assert base_frequency("high_touch")["suggestions_per_week"] == 7
    assert base_frequency("low_touch")["daily_question_enabled"] is False
    assert base_frequency("unknown") == base_frequency("moderate")


def test_analyze_engagement_with_no_events():
    patterns = analyze_engagement("u1", [], NOW)
    assert patterns.total_interactions == 0
    assert patterns.engagement_trend == "stable"
    assert patterns.suggestion_acceptance_rate == 50
    assert patterns.most_used_feature == "daily_question"
    assert patterns.independence_score == 15
    assert patterns.ready_for_reduction is False


def test_trend_compares_window_halves():
    older = [_event(days_ago=25) for _ in range(2)]
    newer = [_event(days_ago=2) for _ in range(6)]
    assert analyze_engagement("u1", older + newer, NOW).engagement_trend == "increasing"

    older = [_event(days_ago=25) for _ in range(6)]
    newer = [_event(days_ago=2) for _ in range(2)]
    assert analyze_engagement("u1", older + newer, NOW).engagement_trend == "decreasing"

    even = [_event(days_ago=25), _event(days_ago=2)]
    assert analyze_engagement("u1", even, NOW).engagement_trend == "stable"


def test_acceptance_spontaneity_and_independence():
    events = [_event("suggestion_accepted")] + [_event("suggestion_skipped") for _ in range(3)]
    events += [_event("message_sent", feature="messages") for _ in range(4)]
    events.append(_event("gift_sent", was_prompted=True))
    patterns = analyze_engagement("u1", events, NOW)

    assert patterns.suggestion_acceptance_rate == 25
    assert patterns.spontaneous_actions == 4
    assert patterns.most_used_feature == "unknown"
    assert patterns.least_used_feature == "messages"
    # 4/9 spontaneous plus (100 - 25) * 0.3
    assert patterns.independence_score == round(4 / 9 * 100 + 22.5)


def test_ready_for_reduction_needs_all_three_signals():
    events = [_event("message_sent", days_ago=i % 20) for i in range(12)] + [_event("suggestion_skipped")]
    patterns = analyze_engagement("u1", events, NOW)
    assert patterns.suggestion_acceptance_rate == 0
    assert patterns.independence_score == 100
    assert patterns.ready_for_reduction is True


def test_frequency_config_branches():
    stable = EngagementPatterns(user_id="u1")
    assert calculate_frequency_config("u1", None, stable, None).suggestions_per_week == 5

    quiet = QuietMode(user_id="u1", active=True, reason="stress_detected", activated_at=NOW, allow_emergency_messages=True)
    config = calculate_frequency_config("u1", _profile(), stable, quiet)
    assert config.quiet_mode_active is True
    assert config.nudges_per_week == 0
    assert config.suggestions_per_week == 1
    assert config.daily_question_enabled is False

    declining = EngagementPatterns(user_id="u1", engagement_trend="decreasing")
    config = calculate_frequency_config("u1", _profile(frequency_preference="high_touch"), declining, None)
    assert (config.nudges_per_week, config.suggestions_per_week, config.daily_question_enabled) == (3, 4, True)
    config = calculate_frequency_config("u1", _profile(frequency_preference="low_touch"), declining, None)
    assert (config.nudges_per_week, config.suggestions_per_week, config.daily_question_enabled) == (1, 2, False)

    rising = EngagementPatterns(user_id="u1", engagement_trend="increasing")
    config = calculate_frequency_config("u1", _profile(frequency_preference="high_touch"), rising, None)
    assert (config.nudges_per_week, config.suggestions_per_week) == (6, 9)

    ready = EngagementPatterns(user_id="u1", ready_for_reduction=True)
    config = calculate_frequency_config("u1", _profile(daily_checkins_enabled=False), ready, None)
    assert (config.nudges_per_week, config.suggestions_per_week, config.daily_question_enabled) == (1, 1, False)

    config = calculate_frequency_config("u1", _profile(), stable, None)
    assert (config.nudges_per_week, config.suggestions_per_week) == (3, 4)


def test_create_and_update_profile(repo, clock):
    service = PartnerProfileService(repo, clock=clock)
    created = service.create_profile("u1", {"love_language_primary": "touch", "communication_style": "gentle"})
    assert created.frequency_preference == "moderate"
    assert created.engagement_score == 50

    updated = service.update_profile("u1", {"frequency_preference": "high_touch"})
    assert updated.frequency_preference == "high_touch"
    assert repo.profiles["u1"]["love_language_primary"] == "touch"

    with pytest.raises(RowValidationError):
        service.update_profile("u1", {"love_language_primary": "telepathy"})
    assert repo.profiles["u1"]["love_language_primary"] == "touch"

    with pytest.raises(NotFoundError):
        service.update_profile("nobody", {"frequency_preference": "low_touch"})


def test_custom_preference_appends_and_logs(repo, clock):
    service = PartnerProfileService(repo, clock=clock)
    with pytest.raises(NotFoundError):
        service.add_custom_preference("u1", "stress", "Give me an hour after work")

    service.create_profile("u1", {"love_language_primary": "words", "communication_style": "direct"})
    preference = service.add_custom_preference("u1", "stress", "Give me an hour after work")

    assert preference.id.startswith("pref_")
    assert service.get_profile("u1").custom_preferences[0].rule == "Give me an hour after work"
    assert repo.events[-1]["event_type"] == "custom_preference_added"


def test_partner_profile_resolves_other_member(repo, clock):
    service = PartnerProfileService(repo, clock=clock)
    service.create_profile("u2", {"love_language_primary": "acts", "communication_style": "direct"})
    repo.relationships["c1"] = {"id": "c1", "partner_a_id": "u1", "partner_b_id": "u2"}

    assert service.get_partner_profile("c1", "u1").user_id == "u2"
    assert service.get_partner_profile("c1", "u2") is None
    with pytest.raises(NotFoundError):
        service.get_partner_profile("c9", "u1")
    with pytest.raises(PreconditionError):
        service.get_partner_profile("", "u1")


def test_quiet_mode_lifecycle(repo, clock):
    service = PartnerProfileService(repo, clock=clock)

    requested = service.enter_quiet_mode("u1", "user_requested")
    assert requested.allow_emergency_messages is False
    assert requested.ends_at is None

    stressed = service.enter_quiet_mode("u1", "stress_detected", duration_hours=48)
    assert stressed.allow_emergency_messages is True
    assert stressed.ends_at == clock() + timedelta(hours=48)

    service.exit_quiet_mode("u1")
    assert service.get_quiet_mode("u1").active is False


def test_engagement_patterns_use_lookback_window(repo, clock):
    service = PartnerProfileService(repo, clock=clock)
    service.record_engagement_event("u1", "message_sent", {})
    repo.insert_learning_event("u1", "message_sent", {}, clock() - timedelta(days=45))

    patterns = service.get_engagement_patterns("u1")
    assert patterns.total_interactions == 1
    with pytest.raises(PreconditionError):
        service.record_engagement_event("u1", "")


def test_partner_guess(repo, clock):
    service = PartnerProfileService(repo, clock=clock)
    assert service.get_partner_guess_about_me("u1") is None
    repo.partner_guesses["u1"] = [{"guesser_name": "sam@example.com", "love_language_primary": "touch", "stress_needs": None}]
    guess = service.get_partner_guess_about_me("u1")
    assert guess.love_language_primary == "touch"
    assert guess.stress_needs == {}
