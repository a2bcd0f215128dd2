from __future__ import annotations

import logging
import random
from typing import Any

from ..config import APP_TIMEZONE, MIN_SUGGESTION_SCORE, SUGGESTION_CANDIDATE_POOL, SUGGESTIONS_PER_WEEK
from ..errors import PreconditionError, StoreError
from ..models import Suggestion, SuggestionGenerationMetadata
from .interpolation import interpolate_template
from .personalization import PersonalizationService, data_sources_summary
from .scoring import filter_by_min_score, rank_templates, select_weekly_candidates
from .templates import templates_for
from .weeks import Clock, get_week_start_date, to_local, utc_now

logger = logging.getLogger(__name__)


class SuggestionService:
    def __init__(
        self,
        repo,
        personalization: PersonalizationService | None = None,
        rng: random.Random | None = None,
        clock: Clock = utc_now,
        tz: str = APP_TIMEZONE,
    ) -> None:
        self.repo = repo
        self.clock = clock
        self.tz = tz
        self.rng = rng or random.Random()
        self.personalization = personalization or PersonalizationService(repo, clock=clock, tz=tz)

    def current_week_start(self):
        return get_week_start_date(self.clock(), self.tz)

    def get_weekly_suggestions(self, user_id: str, category: str) -> list[Suggestion]:
        if not user_id:
            raise PreconditionError("user_id is required")
        templates_for(category)
        rows = self.repo.list_suggestions(user_id, category, self.current_week_start())
        return Suggestion.from_rows(rows)

    def generate_suggestions(self, user_id: str, partner_id: str, category: str) -> list[Suggestion]:
        """Return this week's suggestions for ``category``, creating them on first call.

        A second call in the same week returns the stored rows untouched, so the
        random pick among top candidates happens once per (user, category, week).
        """
        if not user_id:
            raise PreconditionError("user_id is required")
        if not partner_id:
            raise PreconditionError("partner_id is required")
        library = templates_for(category)

        week_start = self.current_week_start()
        existing = Suggestion.from_rows(self.repo.list_suggestions(user_id, category, week_start))
        if existing:
            logger.info("[suggestions] reusing %s %s suggestions for user_id=%s week=%s", len(existing), category, user_id, week_start)
            return existing

        context = self.personalization.get_personalization_context(user_id, partner_id)
        today = to_local(self.clock(), self.tz).date()
        ranked = filter_by_min_score(rank_templates(library, context, today=today), MIN_SUGGESTION_SCORE)
        picked = select_weekly_candidates(ranked, self.rng, pool=SUGGESTION_CANDIDATE_POOL, count=SUGGESTIONS_PER_WEEK)
        summary = data_sources_summary(context)

        rows: list[dict[str, Any]] = []
        for scored in picked:
            template = interpolate_template(scored.template, context, today=today)
            suggestion = Suggestion(
                user_id=user_id,
                category=category,
                suggestion_text=f"{template.title}: {template.description}",
                suggestion_type=template.suggestion_type(),
                time_estimate=template.time_estimate,
                difficulty=template.difficulty,
                week_start_date=week_start,
                data_sources=summary,
                personalization_tier=context.tier,
                metadata={
                    **template.metadata(),
                    "title": template.title,
                    "description": template.description,
                    "score": scored.score,
                    "reason": scored.reason,
                },
            )
            rows.append(suggestion.to_row(exclude={"id", "created_at"}))

        if not rows:
            logger.warning("[suggestions] no %s template cleared min score for user_id=%s", category, user_id)
            return []

        try:
            inserted = self.repo.insert_suggestions(rows)
        except StoreError:
            logger.exception("[suggestions] insert failed user_id=%s category=%s", user_id, category)
            raise
        self._save_generation_metadata(user_id, category, week_start, context)

        logger.info(
            "[suggestions] generated %s %s suggestions user_id=%s tier=%s",
            len(inserted),
            category,
            user_id,
            context.tier,
        )
        return Suggestion.from_rows(inserted)

    def _save_generation_metadata(self, user_id, category, week_start, context) -> None:
        meta = SuggestionGenerationMetadata(
            user_id=user_id,
            category=category,
            week_start_date=week_start,
            onboarding_data_version=context.data_sources.onboarding_updated,
            partner_onboarding_data_version=context.data_sources.partner_onboarding_updated,
            saved_insights_count=context.data_sources.insights_count,
            daily_answers_count=context.data_sources.answers_count,
            personalization_tier=context.tier,
            generated_at=self.clock(),
        )
        try:
            self.repo.upsert_generation_metadata(meta.to_row())
        except StoreError:
            # Suggestions are already stored; the metadata row is bookkeeping only.
            logger.warning("[suggestions] generation metadata not saved user_id=%s category=%s", user_id, category)

    def update_suggestion(
        self, suggestion_id: str, user_id: str, saved: bool | None = None, completed: bool | None = None
    ) -> Suggestion | None:
        if not suggestion_id or not user_id:
            raise PreconditionError("suggestion_id and user_id are required")
        fields: dict[str, Any] = {}
        if saved is not None:
            fields["saved"] = saved
        if completed is not None:
            fields["completed"] = completed
        if not fields:
            raise PreconditionError("nothing to update")
        row = self.repo.update_suggestion(suggestion_id, user_id, fields)
        return Suggestion.from_row(row) if row else None
