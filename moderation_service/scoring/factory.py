from moderation_service.config.settings import Settings
from moderation_service.scoring.base import BaseLearnedScorer
from moderation_service.scoring.disabled_scorer import DisabledScorer
from moderation_service.scoring.openai_scorer import OpenAIModerationScorer


class LearnedScorerFactory:
    """Creates the configured learned-signal scorer."""

    @classmethod
    def create(cls, settings: Settings) -> BaseLearnedScorer:
        """Return the live model scorer when enabled, otherwise the disabled stub."""
        if not settings.learned_scorer_enabled:
            return DisabledScorer()
        return OpenAIModerationScorer(
            api_key=settings.openai_api_key,
            model=settings.openai_moderation_model,
            threshold=settings.learned_scorer_threshold,
            timeout_seconds=settings.openai_timeout_seconds,
            base_url=settings.openai_base_url,
        )
