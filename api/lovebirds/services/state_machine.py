from dataclasses import dataclass

from ..config import GRADUATION_SKILL_THRESHOLD, GRADUATION_WEEKS

CADENCE_STATES = ("bootstrapping", "active", "reducing", "graduated", "quiet")

FREQUENCY_ORDER = ("low_touch", "moderate", "high_touch")


@dataclass(frozen=True)
class CadenceSnapshot:
    has_profile: bool
    quiet_active: bool
    weeks_since_start: int
    independence_score: int
    skill_progress: int
    ready_for_reduction: bool


def resting_cadence_state(frequency_preference: str) -> str:
    """Cadence state implied by the persisted frequency preference.

    The preference only ever steps down, so a profile already relaxed to
    ``low_touch`` has entered ``reducing``.
    """
    if frequency_preference == "low_touch":
        return "reducing"
    return "active"


def transition_cadence(current: str, snapshot: CadenceSnapshot) -> str:
    if not snapshot.has_profile:
        return "bootstrapping"

    if snapshot.quiet_active:
        return "quiet"

    if current == "graduated":
        return "graduated"

    if snapshot.weeks_since_start >= GRADUATION_WEEKS and snapshot.skill_progress >= GRADUATION_SKILL_THRESHOLD:
        return "graduated"

    if current == "reducing":
        return "reducing"

    if snapshot.ready_for_reduction:
        return "reducing"

    return "active"


def next_frequency_preference(previous: str, weeks_since_start: int, independence_score: int) -> str:
    """Relax the check-in cadence as the couple gains independence.

    Only ever steps down (high_touch -> moderate -> low_touch); the result is never
    busier than ``previous``.
    """
    proposed = previous

    if 8 <= weeks_since_start < 12 and previous == "high_touch" and independence_score > 50:
        proposed = "moderate"

    if 16 <= weeks_since_start < 20 and previous == "moderate" and independence_score > 65:
        proposed = "low_touch"

    if weeks_since_start >= 24 and independence_score > 75:
        proposed = "low_touch"

    if previous in FREQUENCY_ORDER and FREQUENCY_ORDER.index(proposed) > FREQUENCY_ORDER.index(previous):
        return previous
    return proposed
