from moderation_service.logging.logger import Log
from moderation_service.processor.processor import ModerationProcessor
from moderation_service.queue.job_queue import JobQueue
from moderation_service.queue.models import FAILED, Job
from moderation_service.webhook.models import FailedPayload
from moderation_service.webhook.sender import WebhookSender


class JobRunner:
    """Run one attempt of a job, catch exceptions, and hand failures to the queue."""

    def __init__(
        self,
        processor: ModerationProcessor,
        queue: JobQueue,
        sender: WebhookSender,
    ) -> None:
        self._processor = processor
        self._queue = queue
        self._sender = sender

    def run(self, job: Job) -> None:
        """Execute a single attempt with error handling."""
        Log.info(f"Running job {job.id} (attempt {job.attempts + 1})")
        try:
            result = self._processor.process(job)
        except Exception as exc:
            self._handle_failure(job, exc)
            return
        self._queue.complete(job.id, result)

    def _handle_failure(self, job: Job, exc: Exception) -> None:
        """Let the queue retry or fail the job; a failed job gets one failure webhook."""
        Log.error(f"Error processing document {job.document_id}: {exc}")
        updated = self._queue.fail(job.id, str(exc))
        if updated.status == FAILED:
            self._sender.deliver_once(
                FailedPayload(document_id=job.document_id, error_message=str(exc))
            )
