"""Static suggestion template libraries.

Three immutable libraries, one per suggestion category. Each template is a frozen
dataclass tagged with ``kind`` so scorers dispatch on the variant instead of probing
for attributes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Literal, Union

from ..errors import PreconditionError

TemplateKind = Literal["love_language", "gift", "date"]


@dataclass(frozen=True)
class TemplateBase:
    id: str
    title: str
    description: str
    time_estimate: str
    difficulty: str
    requires_data: tuple[str, ...] = ()
    optional_data: tuple[str, ...] = ()
    personalization_tier: int = 1
    avoid_if: tuple[str, ...] = ()
    best_season: tuple[str, ...] = ()

    kind: ClassVar[TemplateKind]

    def suggestion_type(self) -> str:
        raise NotImplementedError

    def metadata(self) -> dict[str, Any]:
        return {"template_id": self.id, "kind": self.kind}


@dataclass(frozen=True)
class LoveLanguageTemplate(TemplateBase):
    love_languages: tuple[str, ...] = ()

    kind: ClassVar[TemplateKind] = "love_language"

    def suggestion_type(self) -> str:
        return self.love_languages[0] if self.love_languages else "love_language"

    def metadata(self) -> dict[str, Any]:
        return {**super().metadata(), "love_languages": list(self.love_languages)}


@dataclass(frozen=True)
class GiftTemplate(TemplateBase):
    gift_type: str = ""
    budget: str | None = None
    love_languages: tuple[str, ...] = ()

    kind: ClassVar[TemplateKind] = "gift"

    def suggestion_type(self) -> str:
        return self.gift_type

    def metadata(self) -> dict[str, Any]:
        return {**super().metadata(), "gift_type": self.gift_type, "budget": self.budget}


@dataclass(frozen=True)
class DateTemplate(TemplateBase):
    date_type: str = ""
    date_styles: tuple[str, ...] = ()
    budget: str | None = None
    love_languages: tuple[str, ...] = ()

    kind: ClassVar[TemplateKind] = "date"

    def suggestion_type(self) -> str:
        return self.date_type

    def metadata(self) -> dict[str, Any]:
        return {**super().metadata(), "date_type": self.date_type, "date_styles": list(self.date_styles)}


SuggestionTemplate = Union[LoveLanguageTemplate, GiftTemplate, DateTemplate]


def _ll(id_, title, description, love_language, time_estimate, difficulty="Easy", tier=1, requires=("partner_name",), avoid_if=()):
    return LoveLanguageTemplate(
        id=id_,
        title=title,
        description=description,
        time_estimate=time_estimate,
        difficulty=difficulty,
        requires_data=tuple(requires),
        personalization_tier=tier,
        avoid_if=tuple(avoid_if),
        love_languages=(love_language,),
    )


LOVE_LANGUAGE_TEMPLATES: tuple[LoveLanguageTemplate, ...] = (
    # words
    _ll("ll-1", "Write a 'This is what I see in you' note",
        "Take 10 minutes to write down the qualities you see in {partner_name} that they might not see in themselves.",
        "words", "10 minutes"),
    _ll("ll-2", "Text them one thing you respect about them",
        "Send {partner_name} a simple text about something specific you respect: their work ethic, kindness, or how they handle challenges.",
        "words", "2 minutes"),
    _ll("ll-3", "Record a 30-second voice memo",
        "Send {partner_name} a voice message reminding them they're not alone, especially during a tough time.",
        "words", "5 minutes", tier=2),
    _ll("ll-4", "Tell them what first made you fall for them",
        "Share with {partner_name} the moment or quality that made you realize they were special.",
        "words", "10 minutes", tier=3),
    _ll("ll-5", "Publicly appreciate them on social media",
        "Post a thoughtful appreciation of {partner_name} on social media, highlighting something specific they did or a quality you love.",
        "words", "10 minutes", avoid_if=("public_attention",)),
    _ll("ll-6", "Write a letter to their future self",
        "Write a letter to {partner_name}'s future self describing the amazing person they're becoming.",
        "words", "20 minutes", difficulty="Medium", tier=2),
    # quality_time
    _ll("ll-7", "Plan a 'no phones, no plans' evening",
        "Set aside an evening with zero distractions, just you two, fully present.",
        "quality_time", "2-3 hours", requires=()),
    _ll("ll-8", "Take a walk and ask one deep question",
        "Go for a walk together and ask one meaningful question. Let the conversation unfold naturally.",
        "quality_time", "30-60 minutes", requires=()),
    _ll("ll-9", "Spend an afternoon on {favorite_activity} together",
        "Make time this week to enjoy {favorite_activity} with {partner_name}, fully present and phones away.",
        "quality_time", "1-3 hours", tier=2, requires=("partner_name", "favorite_activity")),
    _ll("ll-10", "Have a 'teach me something' session",
        "Ask {partner_name} to teach you something they're passionate about, like {mentioned_interest}. Be fully engaged and ask questions.",
        "quality_time", "1-2 hours", tier=3, requires=("partner_name", "mentioned_interest")),
    _ll("ll-11", "Plan a surprise adventure day",
        "Plan a full day of surprise activities for {partner_name}; they won't know where you're going until you arrive at each spot.",
        "quality_time", "4-8 hours", difficulty="High", tier=3, avoid_if=("surprises",)),
    # acts
    _ll("ll-12", "Take over something they're overwhelmed by",
        "Notice what's stressing {partner_name} out and quietly handle it without being asked.",
        "acts", "30-60 minutes", difficulty="Medium"),
    _ll("ll-13", "Make their morning easier",
        "Set up coffee, lay out breakfast, or start their car on a cold day.",
        "acts", "10-20 minutes", requires=()),
    _ll("ll-14", "Do a chore they dislike",
        "Take over the task {partner_name} hates most: dishes, laundry, vacuuming, whatever it is.",
        "acts", "20-45 minutes"),
    _ll("ll-15", "Meal prep for their busy week",
        "Spend an afternoon preparing {partner_name}'s favorite {favorite_cuisine} meals for the week ahead.",
        "acts", "2-3 hours", difficulty="Medium", tier=2, requires=("partner_name", "favorite_cuisine")),
    _ll("ll-16", "Create a relaxing bedtime routine for them",
        "Prepare everything for {partner_name}'s perfect bedtime: warm drink, fresh sheets, dimmed lights, their book ready.",
        "acts", "20 minutes", tier=2),
    # gifts
    _ll("ll-17", "Write a note and pair it with something small",
        "The gift matters less than the thought. Pair a heartfelt note to {partner_name} with something simple.",
        "gifts", "20 minutes"),
    _ll("ll-18", "Create a 'just because' surprise",
        "Give {partner_name} a gift on a random Tuesday for no reason at all.",
        "gifts", "20-40 minutes", avoid_if=("surprises",)),
    _ll("ll-19", "Give them something tied to a memory",
        "Buy something that connects to a special moment you've shared with {partner_name}.",
        "gifts", "30 minutes", difficulty="Medium", tier=3),
    _ll("ll-20", "Create a care package",
        "Put together a box of small things that show you know {partner_name} well.",
        "gifts", "45-90 minutes", difficulty="Medium", tier=2),
    _ll("ll-21", "Make the presentation part of the gift",
        "Wrap it thoughtfully, add a handwritten tag, make the unwrapping special.",
        "gifts", "15-20 minutes", requires=()),
    # touch
    _ll("ll-22", "Initiate a long hug and stay present",
        "Give {partner_name} a long, genuine hug without rushing. Stay in the moment.",
        "touch", "2-5 minutes"),
    _ll("ll-23", "Give comforting touch when they're stressed",
        "A hand on their shoulder, a gentle back rub, or holding their hand during hard moments.",
        "touch", "5-10 minutes", requires=(), avoid_if=("physical_touch_when_stressed",)),
    _ll("ll-24", "Cuddle without distraction",
        "No phones, no TV. Just be close and present together with {partner_name}.",
        "touch", "15-30 minutes"),
    _ll("ll-25", "Hold hands intentionally",
        "Reach for {partner_name}'s hand while walking, watching TV, or just sitting together.",
        "touch", "Ongoing", avoid_if=("public_affection",)),
)


GIFT_TEMPLATES: tuple[GiftTemplate, ...] = (
    GiftTemplate(
        id="gift-1",
        title="A handwritten letter in a nice envelope",
        description="Write {partner_name} a letter about a moment you keep coming back to.",
        time_estimate="30 minutes",
        difficulty="Easy",
        requires_data=("partner_name",),
        gift_type="sentimental",
        budget="low",
        love_languages=("words",),
    ),
    GiftTemplate(
        id="gift-2",
        title="Tickets to something they'd love",
        description="Book an experience around {favorite_activity} for {partner_name} and plan the day around it.",
        time_estimate="30 minutes",
        difficulty="Medium",
        requires_data=("partner_name", "favorite_activity"),
        personalization_tier=2,
        gift_type="experience",
        budget="medium",
        love_languages=("quality_time", "gifts"),
    ),
    GiftTemplate(
        id="gift-3",
        title="A custom photo book of your year",
        description="Collect your favorite photos with {partner_name} and have them printed into a book.",
        time_estimate="2-3 hours",
        difficulty="Medium",
        requires_data=("partner_name",),
        personalization_tier=2,
        gift_type="sentimental",
        budget="medium",
        love_languages=("gifts", "words"),
    ),
    GiftTemplate(
        id="gift-4",
        title="Their favorite treat, delivered",
        description="Have a little {favorite_cuisine} delivered to {partner_name} on a busy day.",
        time_estimate="10 minutes",
        difficulty="Easy",
        requires_data=("partner_name", "favorite_cuisine"),
        personalization_tier=2,
        gift_type="consumable",
        budget="low",
        love_languages=("gifts", "acts"),
    ),
    GiftTemplate(
        id="gift-5",
        title="Gear for the thing they keep talking about",
        description="Pick up something that supports {partner_name}'s interest in {mentioned_interest}.",
        time_estimate="45 minutes",
        difficulty="Medium",
        requires_data=("partner_name", "mentioned_interest"),
        personalization_tier=3,
        gift_type="practical",
        budget="medium",
        love_languages=("gifts",),
    ),
    GiftTemplate(
        id="gift-6",
        title="A cozy {season} comfort kit",
        description="Put together blankets, candles and a warm drink so {partner_name} can unwind this {season}.",
        time_estimate="1 hour",
        difficulty="Easy",
        requires_data=("partner_name",),
        gift_type="comfort",
        budget="low",
        best_season=("fall", "winter"),
        love_languages=("gifts", "touch"),
    ),
    GiftTemplate(
        id="gift-7",
        title="A spa day voucher",
        description="Give {partner_name} an afternoon of massage and quiet time, all booked and paid for.",
        time_estimate="20 minutes",
        difficulty="Easy",
        requires_data=("partner_name",),
        gift_type="experience",
        budget="high",
        avoid_if=("physical_touch_when_stressed",),
        love_languages=("touch", "gifts"),
    ),
    GiftTemplate(
        id="gift-8",
        title="Fix the thing they need fixed",
        description="Replace or upgrade something {partner_name} uses every day and has been putting up with.",
        time_estimate="1-2 hours",
        difficulty="Medium",
        requires_data=("partner_name",),
        gift_type="practical",
        budget="medium",
        love_languages=("acts", "gifts"),
    ),
    GiftTemplate(
        id="gift-9",
        title="A surprise weekend away",
        description="Plan and book a short trip for {partner_name} and reveal it the night before.",
        time_estimate="3-4 hours",
        difficulty="High",
        requires_data=("partner_name",),
        personalization_tier=3,
        gift_type="experience",
        budget="high",
        avoid_if=("surprises",),
        love_languages=("quality_time", "gifts"),
    ),
    GiftTemplate(
        id="gift-10",
        title="Fresh flowers for the kitchen table",
        description="Pick up flowers that suit the {season} and leave them for {partner_name} to find.",
        time_estimate="20 minutes",
        difficulty="Easy",
        requires_data=("partner_name",),
        gift_type="flowers",
        budget="low",
        best_season=("spring", "summer"),
        love_languages=("gifts",),
    ),
)


DATE_TEMPLATES: tuple[DateTemplate, ...] = (
    DateTemplate(
        id="date-1",
        title="Cook {favorite_cuisine} together at home",
        description="Choose a recipe {partner_name} loves, put on a playlist and make dinner as a team.",
        time_estimate="1-2 hours",
        difficulty="Easy",
        requires_data=("partner_name", "favorite_cuisine"),
        personalization_tier=2,
        date_type="dinner",
        date_styles=("cozy", "low_key"),
        budget="low",
        love_languages=("quality_time", "acts"),
    ),
    DateTemplate(
        id="date-2",
        title="Picnic in the park",
        description="Pack a basket with {partner_name}'s favorite snacks and find a shady spot.",
        time_estimate="2-3 hours",
        difficulty="Easy",
        requires_data=("partner_name",),
        date_type="outdoor",
        date_styles=("low_key", "romantic"),
        budget="low",
        best_season=("spring", "summer"),
        love_languages=("quality_time",),
    ),
    DateTemplate(
        id="date-3",
        title="Try a class neither of you has taken",
        description="Sign up for pottery, dancing or painting with {partner_name}. The awkwardness makes it memorable.",
        time_estimate="2-3 hours",
        difficulty="Medium",
        requires_data=("partner_name",),
        date_type="activity",
        date_styles=("adventurous",),
        budget="medium",
        love_languages=("quality_time",),
    ),
    DateTemplate(
        id="date-4",
        title="A night out at their favorite kind of restaurant",
        description="Book a table somewhere that serves {favorite_cuisine} and let {partner_name} order first.",
        time_estimate="2-3 hours",
        difficulty="Easy",
        requires_data=("partner_name", "favorite_cuisine"),
        personalization_tier=2,
        date_type="dinner",
        date_styles=("romantic", "fancy"),
        budget="high",
        love_languages=("quality_time",),
    ),
    DateTemplate(
        id="date-5",
        title="A day built around {favorite_activity}",
        description="Plan a date around {favorite_activity}, something {partner_name} already enjoys.",
        time_estimate="3-5 hours",
        difficulty="Medium",
        requires_data=("partner_name", "favorite_activity"),
        personalization_tier=3,
        date_type="activity",
        date_styles=("adventurous", "low_key"),
        budget="medium",
        love_languages=("quality_time",),
    ),
    DateTemplate(
        id="date-6",
        title="Stargazing with hot drinks",
        description="Drive somewhere dark, bring blankets and spend the evening looking up with {partner_name}.",
        time_estimate="2 hours",
        difficulty="Easy",
        requires_data=("partner_name",),
        date_type="outdoor",
        date_styles=("romantic", "cozy"),
        budget="low",
        best_season=("summer", "fall"),
        love_languages=("quality_time", "touch"),
    ),
    DateTemplate(
        id="date-7",
        title="Museum afternoon and coffee after",
        description="Wander a museum with {partner_name} and talk about what stood out over coffee.",
        time_estimate="3 hours",
        difficulty="Easy",
        requires_data=("partner_name",),
        date_type="cultural",
        date_styles=("low_key",),
        budget="medium",
        best_season=("winter",),
        love_languages=("quality_time", "words"),
    ),
    DateTemplate(
        id="date-8",
        title="Movie night fort",
        description="Build a blanket fort, queue up {partner_name}'s comfort movie and put the phones away.",
        time_estimate="3 hours",
        difficulty="Easy",
        requires_data=("partner_name",),
        date_type="at_home",
        date_styles=("cozy",),
        budget="low",
        best_season=("fall", "winter"),
        love_languages=("quality_time", "touch"),
    ),
    DateTemplate(
        id="date-9",
        title="Surprise mystery date",
        description="Plan every stop and only tell {partner_name} what to wear.",
        time_estimate="4-6 hours",
        difficulty="High",
        requires_data=("partner_name",),
        personalization_tier=3,
        date_type="activity",
        date_styles=("adventurous", "romantic"),
        budget="high",
        avoid_if=("surprises",),
        love_languages=("quality_time", "gifts"),
    ),
    DateTemplate(
        id="date-10",
        title="Sunrise hike and breakfast",
        description="Catch the sunrise on a short trail with {partner_name}, then grab breakfast on the way home.",
        time_estimate="3-4 hours",
        difficulty="Medium",
        requires_data=("partner_name",),
        date_type="outdoor",
        date_styles=("adventurous",),
        budget="low",
        best_season=("spring", "summer", "fall"),
        love_languages=("quality_time",),
    ),
)


TEMPLATE_LIBRARIES: dict[str, tuple[SuggestionTemplate, ...]] = {
    "love_language": LOVE_LANGUAGE_TEMPLATES,
    "gift": GIFT_TEMPLATES,
    "date": DATE_TEMPLATES,
}


def templates_for(category: str) -> tuple[SuggestionTemplate, ...]:
    try:
        return TEMPLATE_LIBRARIES[category]
    except KeyError:
        raise PreconditionError(f"Unknown suggestion category: {category}") from None
