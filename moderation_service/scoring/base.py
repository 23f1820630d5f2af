from abc import ABC, abstractmethod

from moderation_service.logging.logger import Log
from moderation_service.scoring.models import ERROR_VERSION, NEUTRAL_SCORE, LearnedScore


class BaseLearnedScorer(ABC):
    """Contract for learned-signal scorers.

    Callers use score(), which never raises: any failure inside _score()
    degrades to the neutral score tagged with model_version "error".
    """

    def score(self, text: str) -> LearnedScore:
        try:
            return self._score(text)
        except Exception as exc:
            Log.error(f"Learned scorer failed, using neutral score: {exc}")
            return LearnedScore(score=NEUTRAL_SCORE, flags={}, model_version=ERROR_VERSION)

    @abstractmethod
    def _score(self, text: str) -> LearnedScore:
        """Score text; higher is safer.

        Raises:
            ScoringError: on any failure.
        """
