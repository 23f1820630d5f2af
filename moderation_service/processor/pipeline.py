from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from moderation_service.moderation.models import AnalysisResult
from moderation_service.queue.models import Job


@dataclass(slots=True)
class PipelineContext:
    job: Job
    analysis: AnalysisResult | None = None
    ack: dict[str, Any] = field(default_factory=dict)


class PipelineStep(ABC):
    """One sequential step of a job. progress is reported once the step finishes."""

    progress: int = 0

    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
