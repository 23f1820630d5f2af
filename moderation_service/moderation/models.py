from dataclasses import dataclass, field


@dataclass(frozen=True)
class RuleResult:
    """Output of the rule-based filter."""

    score: float
    flags: dict[str, bool] = field(default_factory=dict)
    should_reject: bool = False


@dataclass(frozen=True)
class AnalysisResult:
    """Fused moderation verdict for one document."""

    score: float
    flags: dict[str, bool] = field(default_factory=dict)
    extracted_text_preview: str = ""
    model_version: str = "disabled"
    should_reject: bool = False
