"""Deterministic, explainable content rules.

Scoring starts at 1.0 and each triggered rule subtracts a fixed penalty.
Penalties are additive and the final score is clamped to [0, 1].
"""

import re
from collections.abc import Iterable, Mapping
from typing import Any

from moderation_service.moderation.models import RuleResult

BASE_SCORE = 1.0
EMPTY_TEXT_SCORE = 0.8
REJECT_BELOW = 0.3

SPAM_MATCH_LIMIT = 3
SPAM_PENALTY = 0.3

CAPS_RATIO_LIMIT = 0.5
CAPS_MIN_LENGTH = 50
CAPS_PENALTY = 0.1

PROFANITY_LIMIT = 2
PROFANITY_PENALTY = 0.2

REPETITION_RATIO_LIMIT = 0.3
REPETITION_MIN_WORDS = 20
REPETITION_PENALTY = 0.15

TEST_DOCUMENT_PENALTY = 0.2

SMALL_FILE_BYTES = 10 * 1024
SMALL_FILE_PENALTY = 0.1

SPAM_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(?:buy now|click here|limited offer|act now)\b"),
    re.compile(r"\b(?:viagra|cialis|pharmacy)\b"),
    re.compile(r"\b(?:casino|poker|gambling)\b"),
    re.compile(r"\${3,}"),
    re.compile(r"!{3,}"),
)

DEFAULT_PROFANITY_TERMS: tuple[str, ...] = (
    "fuck", "fucking", "shit", "damn", "bitch", "ass", "asshole",
    "bastard", "crap", "piss", "dick", "cock", "pussy", "cunt",
    "whore", "slut", "fag", "retard",
)


class RuleBasedFilter:
    """Scores text and metadata against a fixed rule set."""

    def __init__(self, profanity_terms: Iterable[str] | None = None) -> None:
        terms = [t.strip().lower() for t in (profanity_terms or DEFAULT_PROFANITY_TERMS)]
        terms = [t for t in terms if t]
        self._profanity = (
            re.compile(r"\b(?:" + "|".join(re.escape(t) for t in terms) + r")\b")
            if terms
            else None
        )

    def apply(self, text: str, metadata: Mapping[str, Any]) -> RuleResult:
        flags: dict[str, bool] = {}
        title = str(metadata.get("title") or "")
        metadata_penalty = self._metadata_penalty(title, metadata.get("file_size"), flags)

        if not text or not text.strip():
            # Metadata-only case: text rules are skipped.
            flags["no_text_content"] = True
            score = min(EMPTY_TEXT_SCORE, BASE_SCORE - metadata_penalty)
        else:
            score = BASE_SCORE - metadata_penalty - self._text_penalty(title, text, flags)

        score = max(0.0, min(1.0, score))
        return RuleResult(score=score, flags=flags, should_reject=score < REJECT_BELOW)

    def _text_penalty(self, title: str, text: str, flags: dict[str, bool]) -> float:
        penalty = 0.0
        combined = f"{title} {text}".lower()

        spam_matches = sum(len(p.findall(combined)) for p in SPAM_PATTERNS)
        if spam_matches > SPAM_MATCH_LIMIT:
            flags["spam_detected"] = True
            penalty += SPAM_PENALTY

        if len(text) > CAPS_MIN_LENGTH:
            caps_ratio = sum(1 for ch in text if ch.isupper()) / len(text)
            if caps_ratio > CAPS_RATIO_LIMIT:
                flags["excessive_caps"] = True
                penalty += CAPS_PENALTY

        if self._profanity is not None:
            if len(self._profanity.findall(combined)) > PROFANITY_LIMIT:
                flags["profanity_detected"] = True
                penalty += PROFANITY_PENALTY

        words = text.lower().split()
        if len(words) > REPETITION_MIN_WORDS:
            if len(set(words)) / len(words) < REPETITION_RATIO_LIMIT:
                flags["repetitive_content"] = True
                penalty += REPETITION_PENALTY

        return penalty

    @staticmethod
    def _metadata_penalty(title: str, file_size: Any, flags: dict[str, bool]) -> float:
        penalty = 0.0
        title_lower = title.lower()
        if "test" in title_lower and "ignore" in title_lower:
            flags["test_document"] = True
            penalty += TEST_DOCUMENT_PENALTY

        if isinstance(file_size, (int, float)) and not isinstance(file_size, bool):
            if file_size < SMALL_FILE_BYTES:
                flags["suspiciously_small"] = True
                penalty += SMALL_FILE_PENALTY

        return penalty
