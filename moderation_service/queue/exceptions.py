class QueueError(Exception):
    """Base exception for all queue-related errors."""


class QueueNotInitializedError(QueueError):
    """Raised when the queue is used before init() or after close()."""


class JobNotFoundError(QueueError):
    """Raised when a job id is not present in the queue."""
