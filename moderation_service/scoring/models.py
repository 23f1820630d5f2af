from dataclasses import dataclass, field

NEUTRAL_SCORE = 0.8
DISABLED_VERSION = "disabled"
ERROR_VERSION = "error"


@dataclass(frozen=True)
class LearnedScore:
    """Output of a learned-signal scorer."""

    score: float = NEUTRAL_SCORE
    flags: dict[str, bool] = field(default_factory=dict)
    model_version: str = DISABLED_VERSION
