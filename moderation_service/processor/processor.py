from collections.abc import Callable, Sequence
from typing import Any

from moderation_service.config.settings import Settings
from moderation_service.logging.logger import Log
from moderation_service.moderation.analyzer import build_analyzer
from moderation_service.processor.pipeline import PipelineContext, PipelineStep
from moderation_service.processor.steps import AnalyzeStep, DeliverVerdictStep
from moderation_service.queue.models import Job
from moderation_service.webhook.sender import WebhookSender

APPROVAL_THRESHOLD = 0.5
STARTED_PROGRESS = 10

ProgressReporter = Callable[[str, int], None]


class ModerationProcessor:
    """Runs one job through its steps in order: analyze -> deliver verdict."""

    def __init__(
        self,
        steps: Sequence[PipelineStep],
        report_progress: ProgressReporter,
    ) -> None:
        self._steps = list(steps)
        self._report_progress = report_progress

    def process(self, job: Job) -> dict[str, Any]:
        Log.info(f"Processing document {job.document_id}...")
        self._progress(job.id, STARTED_PROGRESS)

        context = PipelineContext(job=job)
        for step in self._steps:
            context = step.run(context)
            self._progress(job.id, step.progress)

        if context.analysis is None:
            raise ValueError("Pipeline finished without an analysis result")
        score = context.analysis.score
        status = "approved" if score > APPROVAL_THRESHOLD else "rejected"
        Log.info(f"Document {job.document_id} moderation completed (score: {score:.3f})")
        return {
            "success": True,
            "document_id": job.document_id,
            "score": score,
            "status": status,
        }

    def _progress(self, job_id: str, progress: int) -> None:
        """Report progress; a backend error is logged and never fails the job."""
        try:
            self._report_progress(job_id, progress)
        except Exception as exc:
            Log.warning(f"Could not report progress {progress} for job {job_id}: {exc}")


def build_processor(
    settings: Settings,
    sender: WebhookSender,
    report_progress: ProgressReporter,
) -> ModerationProcessor:
    """Build a ModerationProcessor with the configured analyzer."""
    return ModerationProcessor(
        steps=[
            AnalyzeStep(build_analyzer(settings)),
            DeliverVerdictStep(sender),
        ],
        report_progress=report_progress,
    )
