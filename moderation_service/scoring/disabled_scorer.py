from moderation_service.scoring.base import BaseLearnedScorer
from moderation_service.scoring.models import DISABLED_VERSION, NEUTRAL_SCORE, LearnedScore


class DisabledScorer(BaseLearnedScorer):
    """Returns the neutral score so the rule-based filter decides the verdict."""

    def _score(self, text: str) -> LearnedScore:
        _ = text
        return LearnedScore(score=NEUTRAL_SCORE, flags={}, model_version=DISABLED_VERSION)
