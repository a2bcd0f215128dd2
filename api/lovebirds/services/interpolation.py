from __future__ import annotations

from dataclasses import replace
from datetime import date

from .personalization import PersonalizationContext
from .templates import SuggestionTemplate


def current_season(today: date | None = None) -> str:
    month = (today or date.today()).month
    if 3 <= month <= 5:
        return "spring"
    if 6 <= month <= 8:
        return "summer"
    if 9 <= month <= 11:
        return "fall"
    return "winter"


def _first(*candidates: list[str] | None) -> str | None:
    for values in candidates:
        if values:
            return values[0]
    return None


def placeholder_values(context: PersonalizationContext, today: date | None = None) -> dict[str, str]:
    """Resolve every placeholder the context can fill.

    Onboarding answers win over keywords pulled from saved insights. A placeholder
    with no source is simply absent from the result.
    """
    keywords = context.insights.keywords
    wants = context.partner.wants_needs
    values = {
        "partner_name": context.partner.name or "your partner",
        "season": current_season(today),
    }
    optional = {
        "favorite_activity": _first(wants.favorite_activities, keywords.get("activities")),
        "mentioned_interest": _first(keywords.get("interests")),
        "favorite_cuisine": _first(wants.favorite_cuisines, keywords.get("foods")),
    }
    values.update({k: v for k, v in optional.items() if v})
    return values


def fill_placeholders(text: str, values: dict[str, str]) -> str:
    for name, value in values.items():
        text = text.replace("{" + name + "}", value)
    return text


def interpolate_template(
    template: SuggestionTemplate,
    context: PersonalizationContext,
    today: date | None = None,
) -> SuggestionTemplate:
    # Unknown or unresolvable placeholders are left as written.
    values = placeholder_values(context, today)
    return replace(
        template,
        title=fill_placeholders(template.title or "", values),
        description=fill_placeholders(template.description or "", values),
    )
