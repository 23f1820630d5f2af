from moderation_service.config.settings import Settings
from moderation_service.database.connection import Database, build_conninfo
from moderation_service.queue.memory_store import InMemoryJobStore
from moderation_service.queue.postgres_store import PostgresJobStore
from moderation_service.queue.store_base import BaseJobStore


class JobStoreFactory:
    """Creates the queue backing store selected by settings."""

    BACKENDS = ("postgres", "memory")

    @classmethod
    def create(cls, settings: Settings) -> BaseJobStore:
        backend = settings.queue_backend.lower()
        if backend == "postgres":
            max_size = max(2, settings.worker_concurrency + 2)
            return PostgresJobStore(Database(build_conninfo(settings), max_size=max_size))
        if backend == "memory":
            return InMemoryJobStore()
        raise ValueError(
            f"Unknown queue backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
