from collections.abc import Mapping
from typing import Any

from moderation_service.config.settings import Settings
from moderation_service.extraction.text_extractor import (
    TextExtractor,
    build_text_extractor,
    file_type_from_path,
)
from moderation_service.logging.logger import Log
from moderation_service.moderation.models import AnalysisResult, RuleResult
from moderation_service.moderation.rules import RuleBasedFilter
from moderation_service.scoring import BaseLearnedScorer, LearnedScore, LearnedScorerFactory

RULE_WEIGHT = 0.7
LEARNED_WEIGHT = 0.3
PREVIEW_CHARS = 500


def fuse_scores(rules: RuleResult, learned: LearnedScore) -> float:
    """Weighted blend of both scores, clamped to [0, 1].

    A rule-based rejection caps the blend at the rule score.
    """
    fused = RULE_WEIGHT * rules.score + LEARNED_WEIGHT * learned.score
    if rules.should_reject:
        fused = min(fused, rules.score)
    return max(0.0, min(1.0, fused))


def merge_flags(rules: RuleResult, learned: LearnedScore) -> dict[str, bool]:
    """Union of both flag sets; rule-based values win on key collision."""
    return {**learned.flags, **rules.flags}


class Analyzer:
    """Extracts text from a document and turns it into one moderation verdict."""

    def __init__(
        self,
        text_extractor: TextExtractor,
        rule_filter: RuleBasedFilter,
        learned_scorer: BaseLearnedScorer,
    ) -> None:
        self._text_extractor = text_extractor
        self._rule_filter = rule_filter
        self._learned_scorer = learned_scorer

    def analyze(self, file_path: str, metadata: Mapping[str, Any]) -> AnalysisResult:
        explicit_type = metadata.get("file_type") or metadata.get("fileType")
        file_type = str(explicit_type or file_type_from_path(file_path))
        text = self._text_extractor.extract(file_path, file_type)

        rules = self._rule_filter.apply(text, metadata)
        learned = self._learned_scorer.score(text)
        Log.debug(
            f"Rule score {rules.score:.3f}, learned score {learned.score:.3f} "
            f"({learned.model_version})"
        )

        return AnalysisResult(
            score=fuse_scores(rules, learned),
            flags=merge_flags(rules, learned),
            extracted_text_preview=text[:PREVIEW_CHARS],
            model_version=learned.model_version,
            should_reject=rules.should_reject,
        )


def build_analyzer(settings: Settings) -> Analyzer:
    """Build an Analyzer with the configured extractor and scorers."""
    return Analyzer(
        text_extractor=build_text_extractor(settings),
        rule_filter=RuleBasedFilter(profanity_terms=settings.profanity_terms or None),
        learned_scorer=LearnedScorerFactory.create(settings),
    )
