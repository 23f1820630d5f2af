from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

WAITING = "waiting"
ACTIVE = "active"
COMPLETED = "completed"
FAILED = "failed"


@dataclass
class Job:
    """One document's moderation task as tracked by the queue."""

    document_id: str
    file_path: str
    metadata: dict[str, Any] = field(default_factory=dict)
    status: str = WAITING
    attempts: int = 0
    progress: int = 0
    priority: int = 1
    available_at: datetime | None = None
    locked_at: datetime | None = None
    error_message: str | None = None
    result: dict[str, Any] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def id(self) -> str:
        return self.document_id


@dataclass(frozen=True)
class QueueStats:
    """Job counts per state; delayed jobs are waiting jobs not yet eligible."""

    waiting: int = 0
    active: int = 0
    completed: int = 0
    failed: int = 0
    delayed: int = 0

    @property
    def total(self) -> int:
        return self.waiting + self.active + self.completed + self.failed + self.delayed

    def as_dict(self) -> dict[str, int]:
        return {
            "waiting": self.waiting,
            "active": self.active,
            "completed": self.completed,
            "failed": self.failed,
            "delayed": self.delayed,
            "total": self.total,
        }
