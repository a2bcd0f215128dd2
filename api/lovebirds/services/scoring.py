"""Relevance scoring for suggestion templates.

Every factor is computed once into a ``score_breakdown`` dict (factor name to
points). The total score and the human-readable reason are both read from that
breakdown, so a reason is only ever given for a factor that actually scored.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Iterable

from ..config import DEFAULT_SCORING_WEIGHTS, MIN_SUGGESTION_SCORE, SUGGESTION_CANDIDATE_POOL, SUGGESTIONS_PER_WEEK
from .interpolation import current_season
from .personalization import PersonalizationContext, should_avoid_suggestion
from .templates import DateTemplate, GiftTemplate, LoveLanguageTemplate, SuggestionTemplate

WISH_PATTERNS = (
    "plan.*date",
    "surprise",
    "cook",
    "note",
    "message",
    "hug",
    "cuddle",
    "quality time",
    "ask about",
    "listen",
    "help",
    "clean",
    "dinner",
    "lunch",
    "breakfast",
    "gift",
    "present",
    "compliment",
    "appreciate",
    "thank",
    "kiss",
    "massage",
    "backrub",
    "back rub",
    "adventure",
    "explore",
    "try new",
    "romantic",
    "thoughtful",
)

WISH_STOP_WORDS = frozenset(
    {"the", "and", "or", "but", "for", "with", "more", "often", "would", "could", "should", "like", "want", "wish"}
)


@dataclass
class ScoredTemplate:
    template: SuggestionTemplate
    score: int
    reason: str | None = None


def extract_wish_keywords(wishes: Iterable[str]) -> list[str]:
    keywords: dict[str, None] = {}
    for wish in wishes:
        lower = (wish or "").lower()
        for pattern in WISH_PATTERNS:
            if re.search(pattern, lower):
                keywords.setdefault(pattern.replace(".*", " "), None)
        for word in lower.split():
            clean = re.sub(r"[^a-z]", "", word)
            if len(clean) >= 3 and clean not in WISH_STOP_WORDS:
                keywords.setdefault(clean, None)
    return list(keywords)


def count_keyword_matches(template: SuggestionTemplate, context: PersonalizationContext) -> int:
    title = template.title.lower()
    description = template.description.lower()
    matches = 0
    for values in context.insights.keywords.values():
        for keyword in values:
            k = keyword.lower()
            if k in description or k in title:
                matches += 1
    return matches


def count_wish_matches(template: SuggestionTemplate, context: PersonalizationContext) -> int:
    wishes = context.weekly_wishes.all()
    if not wishes:
        return 0
    title = template.title.lower()
    description = template.description.lower()
    return sum(1 for k in extract_wish_keywords(wishes) if k in description or k in title)


def _required_data_resolvable(template: SuggestionTemplate, context: PersonalizationContext) -> bool:
    has_keywords = any(len(values) > 0 for values in context.insights.keywords.values())
    for name in template.requires_data:
        if name == "partner_name":
            if not context.partner.name:
                return False
        elif not has_keywords:
            return False
    return True


def total_from_breakdown(breakdown: dict[str, int], min_score: int = MIN_SUGGESTION_SCORE) -> int:
    """Sum the factors, floor at 0, and keep an avoid-list hit under the selection threshold."""
    total = max(0, int(sum(breakdown.values())))
    if "avoid_violation" in breakdown:
        total = min(total, max(0, min_score - 1))
    return total


# Per-kind factors. Each returns a partial breakdown.

FactorFn = Callable[[Any, PersonalizationContext, dict[str, Any]], dict[str, int]]


def love_language_points(template: Any, context: PersonalizationContext, cfg: dict[str, Any]) -> dict[str, int]:
    languages = template.love_languages
    primary = context.partner.love_languages.primary
    secondary = context.partner.love_languages.secondary
    if primary and primary in languages:
        return {"primary_love_language": cfg["PRIMARY_LOVE_LANGUAGE"]}
    if secondary and secondary in languages:
        return {"secondary_love_language": cfg["SECONDARY_LOVE_LANGUAGE"]}
    return {}


def budget_points(template: Any, context: PersonalizationContext, cfg: dict[str, Any]) -> dict[str, int]:
    budget = context.partner.preferences.gift_budget
    if budget and template.budget == budget:
        return {"budget": cfg["BUDGET"]}
    return {}


def date_style_points(template: DateTemplate, context: PersonalizationContext, cfg: dict[str, Any]) -> dict[str, int]:
    style = context.partner.wants_needs.date_style
    if style and style in template.date_styles:
        return {"date_style": cfg["DATE_STYLE"]}
    return {}


def date_type_points(template: DateTemplate, context: PersonalizationContext, cfg: dict[str, Any]) -> dict[str, int]:
    if template.date_type and template.date_type in context.partner.preferences.date_types:
        return {"date_type": cfg["DATE_TYPE"]}
    return {}


def gift_type_points(template: GiftTemplate, context: PersonalizationContext, cfg: dict[str, Any]) -> dict[str, int]:
    if template.gift_type and template.gift_type in context.partner.wants_needs.gift_types:
        return {"gift_type": cfg["GIFT_TYPE"]}
    return {}


class TemplateScorer:
    """Scores one template kind. Subclasses list the kind-specific factors."""

    factors: tuple[FactorFn, ...] = ()

    def __init__(self, template: SuggestionTemplate, cfg: dict[str, Any] | None = None, today: date | None = None):
        self.template = template
        self.cfg = {**DEFAULT_SCORING_WEIGHTS, **(cfg or {})}
        self.today = today

    def breakdown(self, context: PersonalizationContext) -> dict[str, int]:
        t = self.template
        cfg = self.cfg
        out: dict[str, int] = {"base": cfg["BASE"]}

        for factor in self.factors:
            out.update(factor(t, context, cfg))

        if t.requires_data and _required_data_resolvable(t, context):
            out["required_data"] = cfg["REQUIRED_DATA_PER_FIELD"] * len(t.requires_data)

        keyword_matches = count_keyword_matches(t, context)
        if keyword_matches:
            out["keyword_match"] = cfg["KEYWORD_MATCH"] * keyword_matches

        wish_matches = count_wish_matches(t, context)
        if wish_matches:
            out["wish_match"] = cfg["WISH_MATCH"] * wish_matches

        if t.personalization_tier <= context.tier:
            out["tier_eligible"] = cfg["TIER_ELIGIBLE"]
        else:
            out["tier_ineligible"] = cfg["TIER_INELIGIBLE"]

        avoid = context.partner.wants_needs.avoid
        if should_avoid_suggestion(list(t.avoid_if), avoid):
            out["avoid_violation"] = cfg["AVOID_VIOLATION"]
        elif avoid:
            out["avoid_safe"] = cfg["AVOID_SAFE"]

        if t.best_season and current_season(self.today) in t.best_season:
            out["season"] = cfg["SEASON"]

        return out

    def score(self, context: PersonalizationContext) -> int:
        return total_from_breakdown(self.breakdown(context))


class LoveLanguageScorer(TemplateScorer):
    factors = (love_language_points,)


class GiftScorer(TemplateScorer):
    factors = (love_language_points, budget_points, gift_type_points)


class DateScorer(TemplateScorer):
    factors = (love_language_points, budget_points, date_style_points, date_type_points)


SCORERS: dict[str, type[TemplateScorer]] = {
    LoveLanguageTemplate.kind: LoveLanguageScorer,
    GiftTemplate.kind: GiftScorer,
    DateTemplate.kind: DateScorer,
}


def scorer_for(template: SuggestionTemplate, cfg: dict[str, Any] | None = None, today: date | None = None) -> TemplateScorer:
    return SCORERS[template.kind](template, cfg=cfg, today=today)


def score_breakdown(
    template: SuggestionTemplate,
    context: PersonalizationContext,
    cfg: dict[str, Any] | None = None,
    today: date | None = None,
) -> dict[str, int]:
    return scorer_for(template, cfg, today).breakdown(context)


def calculate_relevance_score(
    template: SuggestionTemplate,
    context: PersonalizationContext,
    cfg: dict[str, Any] | None = None,
    today: date | None = None,
) -> int:
    return scorer_for(template, cfg, today).score(context)


def reason_from_breakdown(breakdown: dict[str, int], context: PersonalizationContext) -> str | None:
    name = context.partner.name
    reasons: list[str] = []
    if breakdown.get("primary_love_language"):
        reasons.append(f"Matches {name}'s primary love language: {context.partner.love_languages.primary}")
    if breakdown.get("date_type"):
        reasons.append(f"{name} selected this as a favorite date type")
    if breakdown.get("gift_type"):
        reasons.append(f"{name} prefers this type of gift")
    if breakdown.get("budget"):
        reasons.append(f"Fits {name}'s budget comfort level")
    if breakdown.get("wish_match"):
        reasons.append("Matches what you wished for more of")
    if breakdown.get("keyword_match"):
        reasons.append(f"Based on {name}'s saved answers")
    if not reasons:
        return None
    return "; ".join(reasons[:2])


def generate_reason(
    template: SuggestionTemplate,
    context: PersonalizationContext,
    cfg: dict[str, Any] | None = None,
    today: date | None = None,
) -> str | None:
    return reason_from_breakdown(score_breakdown(template, context, cfg, today), context)


def rank_templates(
    templates: Iterable[SuggestionTemplate],
    context: PersonalizationContext,
    cfg: dict[str, Any] | None = None,
    today: date | None = None,
) -> list[ScoredTemplate]:
    scored = []
    for template in templates:
        breakdown = score_breakdown(template, context, cfg, today)
        scored.append(
            ScoredTemplate(
                template=template,
                score=total_from_breakdown(breakdown),
                reason=reason_from_breakdown(breakdown, context),
            )
        )
    # sorted() is stable, so equal scores keep library order
    return sorted(scored, key=lambda s: s.score, reverse=True)


def filter_by_min_score(scored: list[ScoredTemplate], min_score: int = MIN_SUGGESTION_SCORE) -> list[ScoredTemplate]:
    return [s for s in scored if s.score >= min_score]


def select_weekly_candidates(
    scored: list[ScoredTemplate],
    rng: random.Random,
    pool: int = SUGGESTION_CANDIDATE_POOL,
    count: int = SUGGESTIONS_PER_WEEK,
) -> list[ScoredTemplate]:
    candidates = list(scored[:pool])
    rng.shuffle(candidates)
    return candidates[:count]
