from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from moderation_service.queue.models import Job, QueueStats


class BaseJobStore(ABC):
    """Contract for queue backing stores.

    A store is the single source of truth for job state. claim() must be
    atomic: a waiting job can be handed to at most one caller.
    """

    @abstractmethod
    def open(self) -> None:
        """Connect to the backend and prepare it for use."""

    @abstractmethod
    def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    def ping(self) -> None:
        """Verify the backend is live. Raises on failure."""

    @abstractmethod
    def add(self, job: Job) -> tuple[Job, bool]:
        """Insert a waiting job. Returns (job, created); an existing id is returned unchanged."""

    @abstractmethod
    def claim(self, now: datetime) -> Job | None:
        """Move the next eligible waiting job to active with progress reset to 0."""

    @abstractmethod
    def get(self, job_id: str) -> Job | None:
        """Return a job by id, or None."""

    @abstractmethod
    def mark_completed(self, job_id: str, result: dict[str, Any]) -> None:
        """Move an active job to completed and store its result."""

    @abstractmethod
    def mark_failed(self, job_id: str, attempts: int, error: str) -> None:
        """Move a job to failed permanently."""

    @abstractmethod
    def schedule_retry(
        self, job_id: str, attempts: int, available_at: datetime, error: str
    ) -> None:
        """Return a job to waiting, eligible again at available_at."""

    @abstractmethod
    def update_progress(self, job_id: str, progress: int, now: datetime) -> None:
        """Raise an active job's progress; lower values are ignored.

        Also refreshes the job's lock so a job that still reports progress
        is never treated as stalled.
        """

    @abstractmethod
    def requeue_stalled(self, cutoff: datetime) -> list[str]:
        """Return active jobs locked before cutoff to waiting. Returns their ids."""

    @abstractmethod
    def counts(self, now: datetime) -> QueueStats:
        """Count jobs per state as of now."""
