from unittest.mock import MagicMock, patch

import pytest

from moderation_service.moderation.models import AnalysisResult
from moderation_service.processor.pipeline import PipelineContext, PipelineStep
from moderation_service.processor.processor import ModerationProcessor
from moderation_service.processor.steps import DeliverVerdictStep
from moderation_service.queue.job_queue import JobQueue
from moderation_service.queue.memory_store import InMemoryJobStore
from moderation_service.queue.models import ACTIVE, COMPLETED, FAILED, WAITING
from moderation_service.webhook.models import FailedPayload
from moderation_service.webhook.sender import WebhookSender
from moderation_service.worker.job_runner import JobRunner

RESULT = {"success": True, "document_id": "doc-1", "score": 0.9, "status": "approved"}


def _make_runner(queue: JobQueue) -> tuple[JobRunner, MagicMock, MagicMock]:
    """Create a JobRunner on a real queue with mocked processor and sender."""
    processor = MagicMock(spec=ModerationProcessor)
    processor.process.return_value = RESULT
    sender = MagicMock(spec=WebhookSender)
    return JobRunner(processor, queue, sender), processor, sender


@pytest.fixture()
def queued(memory_queue: JobQueue) -> JobQueue:
    memory_queue.enqueue("doc-1", "uploads/doc-1.pdf", {"title": "t", "file_size": 50_000})
    return memory_queue


def _claim(queue: JobQueue):  # type: ignore[no-untyped-def]
    job = queue.claim_next()
    assert job is not None
    return job


class TestSuccessfulProcessing:
    def test_calls_processor(self, queued: JobQueue) -> None:
        runner, processor, _sender = _make_runner(queued)
        job = _claim(queued)

        runner.run(job)

        processor.process.assert_called_once_with(job)

    def test_marks_job_completed(self, queued: JobQueue) -> None:
        runner, _processor, sender = _make_runner(queued)

        runner.run(_claim(queued))

        stored = queued.get("doc-1")
        assert stored.status == COMPLETED
        assert stored.result == RESULT
        sender.deliver_once.assert_not_called()


class TestFailureBelowMax:
    def test_returns_job_to_waiting(self, queued: JobQueue) -> None:
        runner, processor, sender = _make_runner(queued)
        processor.process.side_effect = Exception("boom")

        runner.run(_claim(queued))

        stored = queued.get("doc-1")
        assert stored.status == WAITING
        assert stored.attempts == 1
        sender.deliver_once.assert_not_called()


class TestFailureAtMax:
    def test_marks_failed_and_sends_failure_webhook_once(self, queued: JobQueue, clock) -> None:  # type: ignore[no-untyped-def]
        runner, processor, sender = _make_runner(queued)
        processor.process.side_effect = Exception("boom")

        for _ in range(3):
            runner.run(_claim(queued))
            clock.advance(60)

        assert queued.get("doc-1").status == FAILED
        sender.deliver_once.assert_called_once_with(
            FailedPayload(document_id="doc-1", error_message="boom")
        )

    def test_failed_failure_webhook_is_not_retried(self, queued: JobQueue, clock) -> None:  # type: ignore[no-untyped-def]
        runner, processor, sender = _make_runner(queued)
        processor.process.side_effect = Exception("boom")
        sender.deliver_once.return_value = False

        for _ in range(3):
            runner.run(_claim(queued))
            clock.advance(60)

        assert sender.deliver_once.call_count == 1
        sender.deliver.assert_not_called()


class TestRecovery:
    def test_two_failures_then_success(self, queued: JobQueue, clock) -> None:  # type: ignore[no-untyped-def]
        runner, processor, sender = _make_runner(queued)
        processor.process.side_effect = [Exception("boom"), Exception("boom"), RESULT]

        for _ in range(3):
            runner.run(_claim(queued))
            clock.advance(60)

        stored = queued.get("doc-1")
        assert stored.status == COMPLETED
        assert stored.attempts == 2
        sender.deliver_once.assert_not_called()


class FixedAnalysisStep(PipelineStep):
    progress = 70

    def run(self, context: PipelineContext) -> PipelineContext:
        context.analysis = AnalysisResult(
            score=0.94, flags={}, extracted_text_preview="notes", model_version="disabled"
        )
        return context


class TestDeliveredVerdictIsFinal:
    def test_progress_error_after_delivery_still_completes(self, queued: JobQueue, clock) -> None:  # type: ignore[no-untyped-def]
        sender = MagicMock(spec=WebhookSender)
        sender.deliver.return_value = {"received": True}

        def report(job_id: str, pct: int) -> None:
            if pct == 100:
                raise ConnectionError("queue backend unavailable")
            queued.report_progress(job_id, pct)

        processor = ModerationProcessor([FixedAnalysisStep(), DeliverVerdictStep(sender)], report)
        runner = JobRunner(processor, queued, sender)

        runner.run(_claim(queued))
        clock.advance(60)

        stored = queued.get("doc-1")
        assert stored.status == COMPLETED
        assert stored.attempts == 0
        sender.deliver.assert_called_once()
        sender.deliver_once.assert_not_called()
        assert queued.claim_next() is None


class TestStoreErrorWhileRecordingFailure:
    def test_job_is_recovered_and_finishes(self, queued: JobQueue, clock) -> None:  # type: ignore[no-untyped-def]
        runner, processor, sender = _make_runner(queued)
        processor.process.side_effect = [Exception("boom"), RESULT]

        with patch.object(
            InMemoryJobStore, "schedule_retry", side_effect=ConnectionError("connection reset")
        ):
            with pytest.raises(ConnectionError):
                runner.run(_claim(queued))

        assert queued.get("doc-1").status == ACTIVE
        clock.advance(301)

        runner.run(_claim(queued))

        stored = queued.get("doc-1")
        assert stored.status == COMPLETED
        sender.deliver_once.assert_not_called()
