import itertools
import threading
from dataclasses import replace
from datetime import datetime
from typing import Any

from moderation_service.queue.exceptions import JobNotFoundError
from moderation_service.queue.models import ACTIVE, COMPLETED, FAILED, WAITING, Job, QueueStats
from moderation_service.queue.store_base import BaseJobStore


class InMemoryJobStore(BaseJobStore):
    """Single-process store guarded by one lock. Used for local runs and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._jobs: dict[str, Job] = {}
        self._order: dict[str, int] = {}
        self._sequence = itertools.count()
        self._open = False

    def open(self) -> None:
        self._open = True

    def close(self) -> None:
        self._open = False

    def ping(self) -> None:
        if not self._open:
            raise ConnectionError("In-memory store is not open")

    def add(self, job: Job) -> tuple[Job, bool]:
        with self._lock:
            existing = self._jobs.get(job.document_id)
            if existing is not None:
                return replace(existing), False
            stored = replace(job, metadata=dict(job.metadata))
            self._jobs[job.document_id] = stored
            self._order[job.document_id] = next(self._sequence)
            return replace(stored), True

    def claim(self, now: datetime) -> Job | None:
        with self._lock:
            eligible = [
                job
                for job in self._jobs.values()
                if job.status == WAITING
                and (job.available_at is None or job.available_at <= now)
            ]
            if not eligible:
                return None
            job = min(eligible, key=lambda j: (j.priority, self._order[j.document_id]))
            job.status = ACTIVE
            job.progress = 0
            job.locked_at = now
            job.updated_at = now
            return replace(job)

    def get(self, job_id: str) -> Job | None:
        with self._lock:
            job = self._jobs.get(job_id)
            return replace(job) if job is not None else None

    def mark_completed(self, job_id: str, result: dict[str, Any]) -> None:
        with self._lock:
            job = self._require(job_id)
            job.status = COMPLETED
            job.result = dict(result)
            job.locked_at = None

    def mark_failed(self, job_id: str, attempts: int, error: str) -> None:
        with self._lock:
            job = self._require(job_id)
            job.status = FAILED
            job.attempts = attempts
            job.error_message = error
            job.locked_at = None

    def schedule_retry(
        self, job_id: str, attempts: int, available_at: datetime, error: str
    ) -> None:
        with self._lock:
            job = self._require(job_id)
            job.status = WAITING
            job.attempts = attempts
            job.available_at = available_at
            job.error_message = error
            job.locked_at = None

    def update_progress(self, job_id: str, progress: int, now: datetime) -> None:
        with self._lock:
            job = self._require(job_id)
            if job.status != ACTIVE:
                return
            job.progress = max(job.progress, progress)
            job.locked_at = now

    def requeue_stalled(self, cutoff: datetime) -> list[str]:
        with self._lock:
            stalled = [
                job
                for job in self._jobs.values()
                if job.status == ACTIVE
                and job.locked_at is not None
                and job.locked_at < cutoff
            ]
            for job in stalled:
                job.status = WAITING
                job.available_at = None
                job.locked_at = None
            return [job.document_id for job in stalled]

    def counts(self, now: datetime) -> QueueStats:
        with self._lock:
            jobs = list(self._jobs.values())
        delayed = sum(
            1
            for j in jobs
            if j.status == WAITING and j.available_at is not None and j.available_at > now
        )
        return QueueStats(
            waiting=sum(1 for j in jobs if j.status == WAITING) - delayed,
            active=sum(1 for j in jobs if j.status == ACTIVE),
            completed=sum(1 for j in jobs if j.status == COMPLETED),
            failed=sum(1 for j in jobs if j.status == FAILED),
            delayed=delayed,
        )

    def _require(self, job_id: str) -> Job:
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(f"Job {job_id} not found")
        return job
