from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from moderation_service.config.settings import Settings
from moderation_service.scoring import DisabledScorer, LearnedScorerFactory
from moderation_service.scoring.openai_scorer import OpenAIModerationScorer


def _make_response(scores: dict[str, float | None], model: str = "omni-moderation-2024-09-26") -> MagicMock:
    result = MagicMock()
    result.category_scores.model_dump.return_value = scores
    response = MagicMock()
    response.results = [result]
    response.model = model
    return response


def _make_scorer(mock_client: MagicMock, threshold: float = 0.7) -> OpenAIModerationScorer:
    with patch(
        "moderation_service.scoring.openai_scorer.openai.OpenAI",
        return_value=mock_client,
    ):
        return OpenAIModerationScorer(
            api_key="k",
            model="omni-moderation-latest",
            threshold=threshold,
            timeout_seconds=30,
        )


class TestDisabledScorer:
    def test_returns_neutral_score(self) -> None:
        result = DisabledScorer().score("anything at all")

        assert result.score == 0.8
        assert result.flags == {}
        assert result.model_version == "disabled"


class TestOpenAIModerationScorer:
    def test_scores_inverse_of_worst_category(self) -> None:
        client = MagicMock()
        client.moderations.create.return_value = _make_response(
            {"harassment": 0.1, "hate": 0.25, "illicit": None}
        )

        result = _make_scorer(client).score("some text")

        assert result.score == pytest.approx(0.75)
        assert result.flags == {}
        assert result.model_version == "omni-moderation-2024-09-26"

    def test_flags_categories_over_threshold(self) -> None:
        client = MagicMock()
        client.moderations.create.return_value = _make_response(
            {"harassment": 0.92, "violence": 0.7, "hate": 0.2}
        )

        result = _make_scorer(client, threshold=0.7).score("some text")

        assert result.flags == {"toxicity_harassment": True, "toxicity_violence": True}
        assert result.score == pytest.approx(0.08)

    def test_empty_text_is_not_sent(self) -> None:
        client = MagicMock()

        result = _make_scorer(client).score("   ")

        client.moderations.create.assert_not_called()
        assert result.score == 0.8
        assert result.model_version == "omni-moderation-latest"

    def test_connection_error_degrades_to_neutral(self) -> None:
        client = MagicMock()
        client.moderations.create.side_effect = openai.APIConnectionError(request=MagicMock())

        result = _make_scorer(client).score("some text")

        assert result.score == 0.8
        assert result.flags == {}
        assert result.model_version == "error"

    def test_timeout_degrades_to_neutral(self) -> None:
        client = MagicMock()
        client.moderations.create.side_effect = httpx.TimeoutException("timeout")

        result = _make_scorer(client).score("some text")

        assert result.model_version == "error"

    def test_unexpected_error_degrades_to_neutral(self) -> None:
        client = MagicMock()
        client.moderations.create.side_effect = RuntimeError("model handle corrupted")

        result = _make_scorer(client).score("some text")

        assert result.score == 0.8
        assert result.model_version == "error"

    def test_no_results_degrades_to_neutral(self) -> None:
        client = MagicMock()
        response = _make_response({})
        response.results = []
        client.moderations.create.return_value = response

        assert _make_scorer(client).score("some text").model_version == "error"


class TestLearnedScorerFactory:
    def test_disabled_by_default(self) -> None:
        assert isinstance(LearnedScorerFactory.create(Settings()), DisabledScorer)

    def test_enabled_builds_openai_scorer(self) -> None:
        settings = Settings(learned_scorer_enabled=True, openai_api_key="k")

        with patch("moderation_service.scoring.openai_scorer.openai.OpenAI") as mock_cls:
            scorer = LearnedScorerFactory.create(settings)

        assert isinstance(scorer, OpenAIModerationScorer)
        mock_cls.assert_called_once_with(api_key="k", timeout=30, base_url=None)
