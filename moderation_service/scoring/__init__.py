from moderation_service.scoring.base import BaseLearnedScorer
from moderation_service.scoring.disabled_scorer import DisabledScorer
from moderation_service.scoring.factory import LearnedScorerFactory
from moderation_service.scoring.models import LearnedScore

__all__ = ["BaseLearnedScorer", "DisabledScorer", "LearnedScore", "LearnedScorerFactory"]
