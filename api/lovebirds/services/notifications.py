"""Context-aware notification timing.

``calculate_optimal_timing`` maps a notification type plus the partner's current
mood/energy and shared-calendar overlap to a timing bucket, delay and priority.
``AdaptiveNotificationService`` schedules the callback and re-checks the context
when the timer fires.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import asdict, dataclass
from typing import Any, Callable

from ..config import APP_TIMEZONE
from ..errors import PreconditionError
from .weeks import Clock, to_local, utc_now

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("check_in", "celebration", "reminder", "suggestion")


@dataclass(frozen=True)
class MoodSignals:
    partner_mood: int | None = None
    partner_energy: int | None = None
    user_energy: int | None = None
    overlap_hours: float | None = None


@dataclass(frozen=True)
class NotificationContext:
    hour: int
    partner_mood: int | None = None
    partner_energy: int | None = None
    user_energy: int | None = None
    overlap_hours: float | None = None

    @property
    def time_of_day(self) -> str:
        return time_of_day(self.hour)

    @property
    def shared_availability(self) -> bool:
        return (self.overlap_hours or 0) > 2


@dataclass
class NotificationSchedule:
    type: str
    timing: str
    delay: int
    priority: str
    context: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def time_of_day(hour: int) -> str:
    if hour < 6:
        return "night"
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    return "evening"


def calculate_optimal_timing(notification_type: str, ctx: NotificationContext) -> NotificationSchedule:
    if notification_type not in NOTIFICATION_TYPES:
        raise PreconditionError(f"notification type must be one of {', '.join(NOTIFICATION_TYPES)}")

    mood = ctx.partner_mood
    energy = ctx.partner_energy
    period = ctx.time_of_day
    shared = ctx.shared_availability

    timing, delay, priority = "gentle", 30, "medium"

    if notification_type == "check_in":
        if mood is not None and mood <= 3:
            low_energy = energy is not None and energy <= 3
            timing = "gentle" if low_energy else "immediate"
            delay = 60 if low_energy else 15
            priority = "high"
        elif energy is not None and energy >= 8:
            timing, delay = "optimal", 20
    elif notification_type == "celebration":
        if mood is not None and mood >= 8:
            timing, delay, priority = "immediate", 10, "high"
        else:
            timing, delay = "gentle", 45
    elif notification_type == "reminder":
        if period == "morning" and shared:
            timing, delay = "optimal", 60
        elif period == "evening":
            timing, delay = "gentle", 30
        else:
            timing, delay = "quiet", 120
    elif notification_type == "suggestion":
        if shared and period == "evening" and (energy or 0) >= 5:
            timing, delay, priority = "optimal", 90, "low"
        else:
            timing, delay, priority = "quiet", 240, "low"

    # never wake anyone up
    if period == "night" and timing == "immediate":
        timing = "gentle"
        delay = max(delay, 120)

    return NotificationSchedule(
        type=notification_type,
        timing=timing,
        delay=delay,
        priority=priority,
        context={
            "partner_mood": mood,
            "partner_energy": energy,
            "shared_availability": shared,
            "time_of_day": period,
        },
    )


def is_appropriate_time(hour: int, partner_energy: int | None = None, user_energy: int | None = None) -> bool:
    if hour >= 23 or hour <= 7:
        return False
    if (partner_energy is not None and partner_energy <= 2) or (user_energy is not None and user_energy <= 2):
        return False
    return True


def adaptive_preferences(ctx: NotificationContext) -> dict[str, str]:
    return {
        "check_in_frequency": "reduced" if ctx.partner_energy is not None and ctx.partner_energy <= 3 else "normal",
        "suggestion_tone": "gentle" if ctx.partner_mood is not None and ctx.partner_mood <= 3 else "normal",
        "reminder_timing": "aligned" if (ctx.overlap_hours or 0) > 1 else "flexible",
    }


class AdaptiveNotificationService:
    def __init__(
        self,
        context_provider: Callable[[], MoodSignals],
        clock: Clock = utc_now,
        timer_factory: Callable[..., Any] = threading.Timer,
        tz: str = APP_TIMEZONE,
    ) -> None:
        self.context_provider = context_provider
        self.clock = clock
        self.timer_factory = timer_factory
        self.tz = tz

    def current_context(self) -> NotificationContext:
        s = self.context_provider()
        return NotificationContext(
            hour=to_local(self.clock(), self.tz).hour,
            partner_mood=s.partner_mood,
            partner_energy=s.partner_energy,
            user_energy=s.user_energy,
            overlap_hours=s.overlap_hours,
        )

    def calculate_optimal_timing(self, notification_type: str) -> NotificationSchedule:
        return calculate_optimal_timing(notification_type, self.current_context())

    def is_appropriate_time(self) -> bool:
        ctx = self.current_context()
        return is_appropriate_time(ctx.hour, ctx.partner_energy, ctx.user_energy)

    def adaptive_preferences(self) -> dict[str, str]:
        return adaptive_preferences(self.current_context())

    def schedule(self, notification_type: str, content: str, on_trigger: Callable[[], None]) -> Callable[[], None]:
        """Schedule ``on_trigger`` after the computed delay and return a cancel function.

        The context is evaluated again when the timer fires: high priority always
        fires, anything else needs a non-quiet timing and an appropriate hour.
        """
        schedule = self.calculate_optimal_timing(notification_type)
        logger.info(
            "[notifications] scheduling %s with %s timing (%smin delay)",
            notification_type,
            schedule.timing,
            schedule.delay,
        )

        def fire() -> None:
            ctx = self.current_context()
            current = calculate_optimal_timing(notification_type, ctx)
            if current.priority == "high" or (
                current.timing != "quiet" and is_appropriate_time(ctx.hour, ctx.partner_energy, ctx.user_energy)
            ):
                on_trigger()
            else:
                logger.info("[notifications] dropped %s at fire time (timing=%s hour=%s)", notification_type, current.timing, ctx.hour)

        timer = self.timer_factory(schedule.delay * 60, fire)
        timer.daemon = True
        timer.start()
        return timer.cancel

