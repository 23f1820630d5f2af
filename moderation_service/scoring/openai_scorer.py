import httpx
import openai

from moderation_service.logging.logger import Log
from moderation_service.scoring.base import BaseLearnedScorer
from moderation_service.scoring.exceptions import ScoringError
from moderation_service.scoring.models import NEUTRAL_SCORE, LearnedScore

MAX_INPUT_CHARS = 20_000


class OpenAIModerationScorer(BaseLearnedScorer):
    """Learned scorer backed by the OpenAI moderation endpoint.

    The client is created once and shared read-only across worker threads.
    """

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        threshold: float,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )
        self._model = model
        self._threshold = threshold

    def _score(self, text: str) -> LearnedScore:
        if not text.strip():
            return LearnedScore(score=NEUTRAL_SCORE, flags={}, model_version=self._model)

        try:
            response = self._client.moderations.create(
                model=self._model,
                input=text[:MAX_INPUT_CHARS],
            )
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise ScoringError(f"Moderation provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise ScoringError(f"Moderation provider API error: {exc}") from exc

        if not response.results:
            raise ScoringError("Moderation provider returned no results")

        category_scores = {
            name: float(value)
            for name, value in response.results[0].category_scores.model_dump().items()
            if isinstance(value, (int, float))
        }
        worst = max(category_scores.values(), default=0.0)
        flags = {
            f"toxicity_{name}": True
            for name, value in category_scores.items()
            if value >= self._threshold
        }
        Log.debug(f"Moderation categories above threshold: {sorted(flags)}")
        return LearnedScore(
            score=max(0.0, min(1.0, 1.0 - worst)),
            flags=flags,
            model_version=response.model or self._model,
        )
