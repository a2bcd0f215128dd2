"""Check-in cadence and graduation.

``decide_checkin`` is the whole send/suppress procedure as a pure function over a
``CheckinSnapshot``. ``FrequencyService`` gathers the snapshot from the repository
and applies the decision.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta
from typing import Any

from ..config import APP_TIMEZONE, GRADUATION_INDEPENDENCE_THRESHOLD, GRADUATION_SKILL_THRESHOLD, GRADUATION_WEEKS
from ..errors import PreconditionError
from ..models import EngagementEvent, QuietMode
from .needs import NeedsAnalytics, NeedsService
from .profiles import EngagementPatterns, FrequencyConfig, PartnerProfileService, calculate_frequency_config
from .state_machine import CadenceSnapshot, next_frequency_preference, resting_cadence_state, transition_cadence
from .weeks import Clock, to_local, utc_now, whole_days_between, whole_weeks_between

logger = logging.getLogger(__name__)

PROMPT_TYPES = ("daily_question", "nudge", "suggestion")

CHECKIN_ANCHOR_HOURS = {"morning": 9, "afternoon": 14, "evening": 18}
DEFAULT_NEXT_HOUR = 18
NO_PREVIOUS_PROMPT_DAYS = 999


@dataclass
class FrequencyDecision:
    should_send: bool
    reasoning: str
    next_check_time: datetime | None = None
    alternative_action: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CheckinSnapshot:
    prompt_type: str
    now: datetime
    has_profile: bool = False
    quiet_mode: QuietMode | None = None
    config: FrequencyConfig | None = None
    preferred_checkin_times: list[str] = field(default_factory=list)
    recent_prompt_count: int = 0
    independence_score: int = 0
    engagement_trend: str = "stable"
    days_since_last_prompt: int = NO_PREVIOUS_PROMPT_DAYS


@dataclass
class GraduationStatus:
    weeks_since_start: int
    independence_score: int
    graduation_progress: int
    skill_progress: int
    is_graduated: bool
    next_milestone: str
    achievements: list[str] = field(default_factory=list)
    cadence_state: str = "bootstrapping"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class GraduationMilestone:
    week: int
    title: str
    description: str
    achieved: bool
    reward: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class GraduationCelebration:
    is_graduated: bool
    celebration_message: str
    next_steps: list[str] = field(default_factory=list)
    lifetime_free_access: bool = False
    continue_support: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def checkin_window(hour: int) -> str | None:
    """Name the check-in window containing ``hour``; overnight hours belong to none."""
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 22:
        return "evening"
    return None


def next_preferred_time(now_local: datetime, preferred_times: list[str]) -> datetime:
    if not preferred_times:
        target = now_local.replace(hour=DEFAULT_NEXT_HOUR, minute=0, second=0, microsecond=0)
        if target < now_local:
            target += timedelta(days=1)
        return target

    for window in preferred_times:
        anchor = CHECKIN_ANCHOR_HOURS[window]
        if now_local.hour < anchor:
            return now_local.replace(hour=anchor, minute=0, second=0, microsecond=0)

    tomorrow = now_local + timedelta(days=1)
    return tomorrow.replace(hour=CHECKIN_ANCHOR_HOURS[preferred_times[0]], minute=0, second=0, microsecond=0)


def weekly_limit(config: FrequencyConfig, prompt_type: str) -> int:
    if prompt_type == "daily_question":
        return 7 if config.daily_question_enabled else 0
    if prompt_type == "nudge":
        return config.nudges_per_week
    if prompt_type == "suggestion":
        return config.suggestions_per_week
    return 3


def decide_checkin(snapshot: CheckinSnapshot) -> FrequencyDecision:
    """Decide whether a prompt of ``snapshot.prompt_type`` goes out now.

    Rules are checked in a fixed order and the first one that applies wins:
    bootstrap, quiet mode, disabled type, time window, weekly cap, high
    independence spacing, declining-engagement spacing, then send. Overnight
    hours and an empty window list both fail the time-window rule.
    ``snapshot.now`` must already be in the user's local time.
    """
    prompt_type = snapshot.prompt_type
    now = snapshot.now

    if not snapshot.has_profile:
        return FrequencyDecision(True, "New user - establishing baseline engagement")

    quiet = snapshot.quiet_mode
    if quiet is not None and quiet.active:
        if quiet.allow_emergency_messages and prompt_type == "suggestion":
            return FrequencyDecision(
                True,
                "Quiet mode active but emergency messages allowed",
                alternative_action="Keep it brief and supportive",
            )
        return FrequencyDecision(
            False,
            f"Quiet mode: {quiet.reason}",
            next_check_time=quiet.ends_at,
            alternative_action="Respect their space. Check in later.",
        )

    config = snapshot.config or FrequencyConfig(user_id="")
    if prompt_type == "daily_question" and not config.daily_question_enabled:
        return FrequencyDecision(
            False,
            "Daily questions disabled for this user",
            alternative_action="Wait for weekly reflection instead",
        )

    windows = snapshot.preferred_checkin_times
    if checkin_window(now.hour) not in windows:
        return FrequencyDecision(
            False,
            "Not their preferred check-in time",
            next_check_time=next_preferred_time(now, windows),
            alternative_action="Wait for their preferred time window",
        )

    limit = weekly_limit(config, prompt_type)
    sent = snapshot.recent_prompt_count
    if sent >= limit:
        return FrequencyDecision(
            False,
            f"Weekly limit reached ({sent}/{limit})",
            alternative_action="They have enough prompts this week",
        )

    if snapshot.independence_score > 75 and snapshot.days_since_last_prompt < 3:
        return FrequencyDecision(
            False,
            "High independence score - giving them space to act naturally",
            alternative_action="They're doing great on their own!",
        )

    if snapshot.engagement_trend == "decreasing" and snapshot.days_since_last_prompt < 2:
        return FrequencyDecision(
            False,
            "Engagement declining - reducing pressure",
            alternative_action="Give them breathing room",
        )

    if prompt_type == "daily_question":
        next_time = next_preferred_time(now, windows)
    else:
        next_time = now + timedelta(days=math.ceil(7 / max(1, config.nudges_per_week)))
    return FrequencyDecision(True, f"Within frequency limits ({sent + 1}/{limit} this week)", next_check_time=next_time)


def skill_progress(patterns: EngagementPatterns, needs: NeedsAnalytics) -> int:
    score = patterns.independence_score / 100 * 40
    score += min(patterns.spontaneous_actions, 20) / 20 * 20
    score += (100 - patterns.suggestion_acceptance_rate) / 100 * 20
    if needs.needing_app_less:
        score += 20
    elif needs.total_needs_submitted > 0:
        score += needs.spontaneous_resolution / needs.total_needs_submitted * 20
    return round(score)


def next_milestone(weeks: int, patterns: EngagementPatterns) -> str:
    if weeks < 4:
        return "Week 4: First independence check-in"
    if weeks < 8:
        return "Week 8: Consider reducing daily prompts"
    if weeks < 12:
        return "Week 12: Quarterly reflection milestone"
    if weeks < 16:
        return "Week 16: Halfway to graduation!"
    if weeks < 20:
        return "Week 20: Preparing for minimal guidance"
    if weeks < 24:
        return "Week 24: Final stretch to graduation"
    if weeks < GRADUATION_WEEKS:
        return "Week 26: Graduation & lifetime free access!"
    if patterns.independence_score < 70:
        return "Keep building independence to unlock free access"
    return "Graduated! Enjoy lifetime free access"


def collect_achievements(weeks: int, patterns: EngagementPatterns, needs: NeedsAnalytics) -> list[str]:
    checks = [
        (weeks >= 4, "First Month Complete"),
        (weeks >= 12, "Quarter Year Together"),
        (weeks >= GRADUATION_WEEKS, "Graduated (6 Months)"),
        (patterns.independence_score >= 50, "Growing Independence"),
        (patterns.independence_score >= 75, "High Independence"),
        (patterns.independence_score >= 90, "Master Communicators"),
        (patterns.spontaneous_actions >= 10, "Spontaneous Love"),
        (patterns.spontaneous_actions >= 25, "Natural Connection"),
        (patterns.suggestion_acceptance_rate < 40, "Low App Dependency"),
        (patterns.suggestion_acceptance_rate < 20, "Self-Sufficient"),
        (needs.needing_app_less, "Solving Needs Naturally"),
        (needs.resolution_rate >= 80, "Strong Resolution"),
    ]
    return [label for ok, label in checks if ok]


def graduation_status(weeks: int, patterns: EngagementPatterns, needs: NeedsAnalytics) -> GraduationStatus:
    time_progress = min(100.0, weeks / GRADUATION_WEEKS * 100)
    skill = skill_progress(patterns, needs)
    return GraduationStatus(
        weeks_since_start=weeks,
        independence_score=patterns.independence_score,
        graduation_progress=round(time_progress * 0.4 + skill * 0.6),
        skill_progress=skill,
        is_graduated=weeks >= GRADUATION_WEEKS and skill >= GRADUATION_SKILL_THRESHOLD,
        next_milestone=next_milestone(weeks, patterns),
        achievements=collect_achievements(weeks, patterns, needs),
    )


def graduation_milestones(has_profile: bool, weeks: int, patterns: EngagementPatterns) -> list[GraduationMilestone]:
    """The fixed milestone ladder from week 1 to graduation, marked achieved or not."""
    independence = patterns.independence_score
    return [
        GraduationMilestone(
            1,
            "Getting Started",
            "Complete your partner profile and start learning about each other",
            has_profile,
            "Profile Badge",
        ),
        GraduationMilestone(
            4,
            "First Month Milestone",
            "One month of consistent engagement and communication",
            weeks >= 4,
            "First Month Badge",
        ),
        GraduationMilestone(
            8,
            "Building Independence",
            "Start taking spontaneous actions without prompts",
            weeks >= 8 and patterns.spontaneous_actions >= 5,
            "Independence Badge",
        ),
        GraduationMilestone(
            12,
            "Quarter Year Together",
            "Three months of growth and understanding",
            weeks >= 12,
            "Quarterly Badge + 50% reduced prompts",
        ),
        GraduationMilestone(
            16,
            "Halfway There!",
            "You're mastering the art of loving well",
            weeks >= 16 and independence >= 60,
            "Midway Badge",
        ),
        GraduationMilestone(
            20,
            "Advanced Communicators",
            "Resolving needs naturally with minimal guidance",
            weeks >= 20 and patterns.suggestion_acceptance_rate < 40,
            "Master Badge",
        ),
        GraduationMilestone(
            24,
            "Almost Graduated",
            "Final weeks before lifetime free access",
            weeks >= 24,
            "75% reduced prompts",
        ),
        GraduationMilestone(
            GRADUATION_WEEKS,
            "Graduation: Lifetime Free Access",
            "You've learned to love each other well. The app is yours forever.",
            weeks >= GRADUATION_WEEKS and independence >= GRADUATION_INDEPENDENCE_THRESHOLD,
            "Lifetime Free Access + Graduation Certificate",
        ),
    ]


def check_graduation_eligibility(milestones: list[GraduationMilestone], status: GraduationStatus) -> GraduationCelebration:
    """Graduation is the final milestone; everything else is progress messaging."""
    graduated = bool(milestones) and milestones[-1].achieved
    if graduated:
        return GraduationCelebration(
            is_graduated=True,
            celebration_message=(
                "Congratulations! You've graduated! You've learned to love each other so well that you "
                "don't need daily guidance anymore. That's the goal, and you crushed it."
            ),
            next_steps=[
                "Enjoy lifetime free access to all features",
                "Use the app for special occasions (anniversaries, date planning)",
                "Check in whenever you need inspiration",
                "Share your story to help other couples",
            ],
            lifetime_free_access=True,
            continue_support=(
                "We're still here when you need us - for anniversary planning, date ideas, "
                "or occasional check-ins. Just less frequently."
            ),
        )

    days_left = max(0, (GRADUATION_WEEKS - status.weeks_since_start) * 7)
    return GraduationCelebration(
        is_graduated=False,
        celebration_message=f"You're {status.graduation_progress}% of the way to graduation. Keep growing together!",
        next_steps=[
            f"{days_left} days until graduation",
            f"Current independence score: {status.independence_score}/100",
            "Keep responding to each other naturally",
            "Use suggestions less, trust your instincts more",
        ],
        lifetime_free_access=False,
        continue_support="We're reducing prompts as you grow. This is progress!",
    )


class FrequencyService:
    def __init__(
        self,
        repo,
        profiles: PartnerProfileService | None = None,
        needs: NeedsService | None = None,
        clock: Clock = utc_now,
        tz: str = APP_TIMEZONE,
    ) -> None:
        self.repo = repo
        self.clock = clock
        self.tz = tz
        self.profiles = profiles or PartnerProfileService(repo, clock=clock)
        self.needs = needs or NeedsService(repo, clock=clock)

    def _prompt_events(self, user_id: str, prompt_type: str, since: datetime | None = None, limit: int | None = None) -> list[EngagementEvent]:
        rows = self.repo.list_learning_events(
            user_id,
            since=since,
            event_type="feature_engaged",
            context_contains={"action": "prompt_sent", "promptType": prompt_type},
            limit=limit,
        )
        return EngagementEvent.from_rows(rows)

    def recent_prompt_count(self, user_id: str, prompt_type: str) -> int:
        return len(self._prompt_events(user_id, prompt_type, since=self.clock() - timedelta(days=7)))

    def days_since_last_prompt(self, user_id: str, prompt_type: str) -> int:
        events = self._prompt_events(user_id, prompt_type, limit=1)
        if not events:
            return NO_PREVIOUS_PROMPT_DAYS
        return whole_days_between(max(e.created_at for e in events), self.clock())

    def build_snapshot(self, user_id: str, prompt_type: str) -> CheckinSnapshot:
        now_local = to_local(self.clock(), self.tz)
        profile = self.profiles.get_profile(user_id)
        if profile is None:
            return CheckinSnapshot(prompt_type=prompt_type, now=now_local)

        quiet = self.profiles.get_quiet_mode(user_id)
        patterns = self.profiles.get_engagement_patterns(user_id)
        config = calculate_frequency_config(user_id, profile, patterns, quiet)
        return CheckinSnapshot(
            prompt_type=prompt_type,
            now=now_local,
            has_profile=True,
            quiet_mode=quiet,
            config=config,
            preferred_checkin_times=list(profile.preferred_checkin_times),
            recent_prompt_count=self.recent_prompt_count(user_id, prompt_type),
            independence_score=patterns.independence_score,
            engagement_trend=patterns.engagement_trend,
            days_since_last_prompt=self.days_since_last_prompt(user_id, prompt_type),
        )

    def should_send_checkin(self, user_id: str, prompt_type: str) -> FrequencyDecision:
        if not user_id:
            raise PreconditionError("user_id is required")
        if prompt_type not in PROMPT_TYPES:
            raise PreconditionError(f"prompt_type must be one of {', '.join(PROMPT_TYPES)}")
        decision = decide_checkin(self.build_snapshot(user_id, prompt_type))
        logger.debug("[frequency] user_id=%s prompt=%s send=%s reason=%s", user_id, prompt_type, decision.should_send, decision.reasoning)
        return decision

    def get_graduation_status(self, user_id: str, couple_id: str) -> GraduationStatus:
        profile = self.profiles.get_profile(user_id)
        if profile is None or profile.created_at is None:
            return GraduationStatus(
                weeks_since_start=0,
                independence_score=0,
                graduation_progress=0,
                skill_progress=0,
                is_graduated=False,
                next_milestone="Complete your partner profile to begin",
            )

        weeks = whole_weeks_between(profile.created_at, self.clock())
        patterns = self.profiles.get_engagement_patterns(user_id)
        needs = self.needs.get_needs_analytics(couple_id)
        status = graduation_status(weeks, patterns, needs)

        quiet = self.profiles.get_quiet_mode(user_id)
        status.cadence_state = transition_cadence(
            resting_cadence_state(profile.frequency_preference),
            CadenceSnapshot(
                has_profile=True,
                quiet_active=bool(quiet and quiet.active),
                weeks_since_start=weeks,
                independence_score=patterns.independence_score,
                skill_progress=status.skill_progress,
                ready_for_reduction=patterns.ready_for_reduction,
            ),
        )
        return status

    def get_graduation_milestones(self, user_id: str) -> list[GraduationMilestone]:
        profile = self.profiles.get_profile(user_id)
        weeks = 0
        if profile is not None and profile.created_at is not None:
            weeks = whole_weeks_between(profile.created_at, self.clock())
        patterns = self.profiles.get_engagement_patterns(user_id)
        return graduation_milestones(profile is not None, weeks, patterns)

    def check_graduation_eligibility(self, user_id: str, couple_id: str) -> GraduationCelebration:
        status = self.get_graduation_status(user_id, couple_id)
        celebration = check_graduation_eligibility(self.get_graduation_milestones(user_id), status)
        if celebration.is_graduated:
            logger.info("[frequency] graduation reached user_id=%s couple_id=%s week=%s", user_id, couple_id, status.weeks_since_start)
        return celebration

    def adjust_for_graduation(self, user_id: str) -> str | None:
        """Step the profile's frequency preference down when the couple is ready.

        Returns the new preference, or ``None`` when nothing changed.
        """
        profile = self.profiles.get_profile(user_id)
        if profile is None or profile.created_at is None:
            return None

        weeks = whole_weeks_between(profile.created_at, self.clock())
        patterns = self.profiles.get_engagement_patterns(user_id)
        current = profile.frequency_preference
        proposed = next_frequency_preference(current, weeks, patterns.independence_score)
        if proposed == current:
            return None

        self.profiles.update_profile(user_id, {"frequency_preference": proposed})
        logger.info("[frequency] relaxed cadence user_id=%s %s -> %s week=%s", user_id, current, proposed, weeks)
        return proposed

    def _record_prompt(self, user_id: str, prompt_type: str, action: str) -> str:
        if prompt_type not in PROMPT_TYPES:
            raise PreconditionError(f"prompt_type must be one of {', '.join(PROMPT_TYPES)}")
        return self.profiles.record_engagement_event(
            user_id,
            "feature_engaged",
            {"feature": "frequency_service", "action": action, "promptType": prompt_type},
        )

    def record_prompt_sent(self, user_id: str, prompt_type: str) -> str:
        return self._record_prompt(user_id, prompt_type, "prompt_sent")

    def record_prompt_engaged(self, user_id: str, prompt_type: str) -> str:
        return self._record_prompt(user_id, prompt_type, "prompt_engaged")
