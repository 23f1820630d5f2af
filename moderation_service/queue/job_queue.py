from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from moderation_service.config.settings import Settings
from moderation_service.logging.logger import Log
from moderation_service.queue.exceptions import (
    JobNotFoundError,
    QueueError,
    QueueNotInitializedError,
)
from moderation_service.queue.factory import JobStoreFactory
from moderation_service.queue.models import Job, QueueStats
from moderation_service.queue.store_base import BaseJobStore


class JobHandler(Protocol):
    def run(self, job: Job) -> None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JobQueue:
    """Durable retrying work queue over a job store.

    The queue owns attempt counting and backoff scheduling. It must be
    initialized with init() before any other call; using it earlier (or
    after close()) raises QueueNotInitializedError.
    """

    def __init__(
        self,
        store: BaseJobStore,
        max_attempts: int = 3,
        backoff_base_seconds: float = 2.0,
        clock: Callable[[], datetime] = _utcnow,
        stalled_after_seconds: float | None = 300.0,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self._max_attempts = max_attempts
        self._backoff_base_seconds = backoff_base_seconds
        self._stalled_after = (
            timedelta(seconds=stalled_after_seconds) if stalled_after_seconds else None
        )
        self._clock = clock
        self._initialized = False
        self._handler: JobHandler | None = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def init(self) -> None:
        """Open the backing store and verify it is live."""
        if self._initialized:
            return
        self._store.open()
        self._store.ping()
        self._initialized = True
        Log.info("Moderation queue initialized successfully")

    def close(self) -> None:
        if not self._initialized:
            return
        self._initialized = False
        self._handler = None
        self._store.close()
        Log.info("Moderation queue closed")

    def register_handler(self, handler: JobHandler) -> None:
        self._require_initialized()
        self._handler = handler
        Log.info(f"Registered job handler {type(handler).__name__}")

    @property
    def handler(self) -> JobHandler:
        self._require_initialized()
        if self._handler is None:
            raise QueueError("No job handler registered. Call register_handler() first.")
        return self._handler

    def enqueue(
        self,
        document_id: str,
        file_path: str,
        metadata: Mapping[str, Any] | None = None,
        priority: int = 1,
    ) -> Job:
        """Add a job. Enqueuing an existing document_id returns the existing job."""
        self._require_initialized()
        if not document_id:
            raise ValueError("document_id is required")
        if not file_path:
            raise ValueError("file_path is required")
        now = self._clock()
        job, created = self._store.add(
            Job(
                document_id=document_id,
                file_path=file_path,
                metadata=dict(metadata or {}),
                priority=priority,
                created_at=now,
                updated_at=now,
            )
        )
        if created:
            Log.info(f"Moderation job created for document {document_id}")
        else:
            Log.warning(f"Job for document {document_id} already exists, not re-queued")
        return job

    def claim_next(self) -> Job | None:
        """Atomically move the next eligible waiting job to active.

        Stalled jobs are returned to waiting first, so they can be claimed here.
        """
        self._require_initialized()
        now = self._clock()
        self._requeue_stalled(now)
        job = self._store.claim(now)
        if job is not None:
            Log.info(f"Job {job.id} started processing (attempt {job.attempts + 1})")
        return job

    def get(self, job_id: str) -> Job:
        self._require_initialized()
        job = self._store.get(job_id)
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        return job

    def complete(self, job_id: str, result: Mapping[str, Any]) -> None:
        self._require_initialized()
        self._store.mark_completed(job_id, dict(result))
        Log.info(f"Job {job_id} completed")

    def fail(self, job_id: str, error: str) -> Job:
        """Record a failed attempt and either schedule a retry or fail permanently.

        Returns the job as stored after the transition.
        """
        job = self.get(job_id)
        attempts = job.attempts + 1
        if attempts >= self._max_attempts:
            self._store.mark_failed(job_id, attempts, error)
            Log.error(f"Job {job_id} permanently failed after {attempts} attempts: {error}")
        else:
            delay = self.backoff_delay(attempts)
            self._store.schedule_retry(job_id, attempts, self._clock() + delay, error)
            Log.warning(
                f"Job {job_id} will be retried in {delay.total_seconds():g}s "
                f"(attempt {attempts + 1}/{self._max_attempts})"
            )
        return self.get(job_id)

    def backoff_delay(self, attempts: int) -> timedelta:
        """Delay before a job that has failed `attempts` times becomes eligible."""
        return timedelta(seconds=self._backoff_base_seconds * 2 ** max(0, attempts - 1))

    def report_progress(self, job_id: str, progress: int) -> None:
        self._require_initialized()
        self._store.update_progress(job_id, max(0, min(100, int(progress))), self._clock())

    def stats(self) -> QueueStats:
        self._require_initialized()
        return self._store.counts(self._clock())

    def requeue_stalled(self) -> list[str]:
        """Return active jobs whose lock expired to waiting. Returns their ids."""
        self._require_initialized()
        return self._requeue_stalled(self._clock())

    def _requeue_stalled(self, now: datetime) -> list[str]:
        if self._stalled_after is None:
            return []
        job_ids = self._store.requeue_stalled(now - self._stalled_after)
        for job_id in job_ids:
            Log.warning(f"Job {job_id} stalled, returned to the queue")
        return job_ids

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise QueueNotInitializedError("Queue not initialized. Call init() first.")


def build_queue(settings: Settings) -> JobQueue:
    """Build a JobQueue on the configured store. The caller must call init()."""
    return JobQueue(
        JobStoreFactory.create(settings),
        max_attempts=settings.max_job_attempts,
        backoff_base_seconds=settings.job_backoff_base_seconds,
        stalled_after_seconds=settings.job_stalled_after_seconds,
    )
