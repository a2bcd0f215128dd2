import json
import os
from typing import Any

APP_TIMEZONE = os.getenv("APP_TIMEZONE", "America/New_York")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

MIN_SUGGESTION_SCORE = int(os.getenv("MIN_SUGGESTION_SCORE", "30"))
SUGGESTION_CANDIDATE_POOL = int(os.getenv("SUGGESTION_CANDIDATE_POOL", "10"))
SUGGESTIONS_PER_WEEK = int(os.getenv("SUGGESTIONS_PER_WEEK", "3"))
RECENT_WISH_WEEKS = int(os.getenv("RECENT_WISH_WEEKS", "4"))

GRADUATION_WEEKS = int(os.getenv("GRADUATION_WEEKS", "26"))
GRADUATION_SKILL_THRESHOLD = int(os.getenv("GRADUATION_SKILL_THRESHOLD", "70"))
GRADUATION_INDEPENDENCE_THRESHOLD = int(os.getenv("GRADUATION_INDEPENDENCE_THRESHOLD", "70"))
ENGAGEMENT_LOOKBACK_DAYS = int(os.getenv("ENGAGEMENT_LOOKBACK_DAYS", "30"))

DEFAULT_SCORING_WEIGHTS: dict[str, Any] = {
    "BASE": int(os.getenv("SCORE_BASE", "10")),
    "PRIMARY_LOVE_LANGUAGE": int(os.getenv("SCORE_PRIMARY_LOVE_LANGUAGE", "30")),
    "SECONDARY_LOVE_LANGUAGE": int(os.getenv("SCORE_SECONDARY_LOVE_LANGUAGE", "15")),
    "BUDGET": int(os.getenv("SCORE_BUDGET", "20")),
    "DATE_STYLE": int(os.getenv("SCORE_DATE_STYLE", "25")),
    "DATE_TYPE": int(os.getenv("SCORE_DATE_TYPE", "20")),
    "GIFT_TYPE": int(os.getenv("SCORE_GIFT_TYPE", "15")),
    "REQUIRED_DATA_PER_FIELD": int(os.getenv("SCORE_REQUIRED_DATA_PER_FIELD", "15")),
    "KEYWORD_MATCH": int(os.getenv("SCORE_KEYWORD_MATCH", "10")),
    "WISH_MATCH": int(os.getenv("SCORE_WISH_MATCH", "40")),
    "TIER_ELIGIBLE": int(os.getenv("SCORE_TIER_ELIGIBLE", "5")),
    "TIER_INELIGIBLE": int(os.getenv("SCORE_TIER_INELIGIBLE", "-10")),
    "AVOID_VIOLATION": int(os.getenv("SCORE_AVOID_VIOLATION", "-100")),
    "AVOID_SAFE": int(os.getenv("SCORE_AVOID_SAFE", "25")),
    "SEASON": int(os.getenv("SCORE_SEASON", "10")),
}

if os.getenv("SCORING_WEIGHTS_JSON"):
    try:
        DEFAULT_SCORING_WEIGHTS.update(json.loads(os.getenv("SCORING_WEIGHTS_JSON", "{}")))
    except json.JSONDecodeError:
        pass
