from __future__ import annotations

from typing import Any, Iterable

# category -> (question triggers, answer triggers)
KEYWORD_RULES: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "dates": (("date", "activity", "do together"), ()),
    "gifts": (("gift", "present", "receive"), ()),
    "interests": (("hobby", "interest", "passion", "enjoy"), ()),
    "dislikes": (("dislike", "hate", "avoid"), ("don't like", "not a fan")),
    "favorites": (("favorite", "prefer"), ("love", "favorite")),
    "activities": ((), ("hiking", "cooking", "reading", "watching", "playing")),
    "places": ((), ("beach", "mountain", "park", "restaurant", "museum")),
    "foods": (("food", "meal", "eat"), ("pizza", "coffee", "dessert")),
}

THEME_RULES: dict[str, tuple[str, ...]] = {
    "relationship": ("relationship", "together", "us"),
    "future": ("future", "dream", "hope", "someday"),
    "past": ("memory", "remember", "first", "past"),
    "preferences": ("prefer", "favorite", "like", "choose"),
    "emotions": ("feel", "emotion", "happy", "sad", "stress"),
}


def _field(insight: Any, name: str) -> str | None:
    if isinstance(insight, dict):
        value = insight.get(name)
    else:
        value = getattr(insight, name, None)
    return str(value) if value is not None else None


def extract_keywords(insights: Iterable[Any]) -> dict[str, list[str]]:
    """Bucket saved partner answers into keyword categories.

    Triggers are plain substring tests on the lower-cased question and answer.
    An answer can land in several categories. Within a category answers are
    de-duplicated keeping first-seen order, and empty categories are dropped.
    """
    buckets: dict[str, dict[str, None]] = {category: {} for category in KEYWORD_RULES}

    for insight in insights or []:
        answer = _field(insight, "partner_answer")
        answer_lower = (answer or "").lower()
        question_lower = (_field(insight, "question_text") or "").lower()

        for category, (question_triggers, answer_triggers) in KEYWORD_RULES.items():
            hit = any(t in question_lower for t in question_triggers) or any(t in answer_lower for t in answer_triggers)
            if hit and answer:
                buckets[category].setdefault(answer, None)

    return {category: list(values) for category, values in buckets.items() if values}


def group_by_theme(insights: Iterable[Any]) -> dict[str, list[Any]]:
    themes: dict[str, list[Any]] = {theme: [] for theme in THEME_RULES}

    for insight in insights or []:
        question_lower = (_field(insight, "question_text") or "").lower()
        for theme, triggers in THEME_RULES.items():
            if any(t in question_lower for t in triggers):
                themes[theme].append(insight)

    return {theme: items for theme, items in themes.items() if items}
