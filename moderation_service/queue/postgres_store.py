from datetime import datetime
from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from moderation_service.database.connection import Database
from moderation_service.queue.exceptions import JobNotFoundError, QueueError
from moderation_service.queue.models import Job, QueueStats
from moderation_service.queue.store_base import BaseJobStore

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS moderation_jobs (
    document_id   TEXT PRIMARY KEY,
    seq           BIGSERIAL,
    file_path     TEXT NOT NULL,
    metadata      JSONB NOT NULL DEFAULT '{}'::jsonb,
    status        TEXT NOT NULL DEFAULT 'waiting',
    attempts      INTEGER NOT NULL DEFAULT 0,
    progress      INTEGER NOT NULL DEFAULT 0,
    priority      INTEGER NOT NULL DEFAULT 1,
    available_at  TIMESTAMPTZ,
    error_message TEXT,
    result        JSONB,
    locked_at     TIMESTAMPTZ,
    created_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at    TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS moderation_jobs_claim_idx
    ON moderation_jobs (status, priority, seq);
"""

_COLUMNS = """
    document_id, file_path, metadata, status, attempts, progress, priority,
    available_at, locked_at, error_message, result, created_at, updated_at
"""


def _row_to_job(row: dict[str, Any]) -> Job:
    return Job(
        document_id=row["document_id"],
        file_path=row["file_path"],
        metadata=row["metadata"] or {},
        status=row["status"],
        attempts=row["attempts"],
        progress=row["progress"],
        priority=row["priority"],
        available_at=row["available_at"],
        locked_at=row["locked_at"],
        error_message=row["error_message"],
        result=row["result"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class PostgresJobStore(BaseJobStore):
    """Job store on the moderation_jobs table."""

    def __init__(self, database: Database) -> None:
        self._db = database

    def open(self) -> None:
        self._db.open()
        with self._db.connection() as conn:
            conn.execute(SCHEMA_SQL)
            conn.commit()

    def close(self) -> None:
        self._db.close()

    def ping(self) -> None:
        with self._db.connection() as conn:
            conn.execute("SELECT 1")

    def add(self, job: Job) -> tuple[Job, bool]:
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    INSERT INTO moderation_jobs
                        (document_id, file_path, metadata, priority, available_at)
                    VALUES (%s, %s, %s, %s, %s)
                    ON CONFLICT (document_id) DO NOTHING
                    RETURNING {_COLUMNS}
                    """,
                    (
                        job.document_id,
                        job.file_path,
                        Jsonb(job.metadata),
                        job.priority,
                        job.available_at,
                    ),
                )
                row = cur.fetchone()
            conn.commit()

        if row is not None:
            return _row_to_job(row), True
        existing = self.get(job.document_id)
        if existing is None:
            raise JobNotFoundError(f"Job {job.document_id} not found after conflict")
        return existing, False

    def claim(self, now: datetime) -> Job | None:
        """Claim the next waiting job using SELECT FOR UPDATE SKIP LOCKED."""
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT document_id
                    FROM moderation_jobs
                    WHERE status = 'waiting'
                      AND (available_at IS NULL OR available_at <= %s)
                    ORDER BY priority, seq
                    LIMIT 1
                    FOR UPDATE SKIP LOCKED
                    """,
                    (now,),
                )
                row = cur.fetchone()
                if row is None:
                    conn.rollback()
                    return None

                cur.execute(
                    f"""
                    UPDATE moderation_jobs
                    SET status = 'active', progress = 0,
                        locked_at = %s, updated_at = NOW()
                    WHERE document_id = %s
                    RETURNING {_COLUMNS}
                    """,
                    (now, row["document_id"]),
                )
                claimed = cur.fetchone()
            conn.commit()

        return _row_to_job(claimed) if claimed is not None else None

    def get(self, job_id: str) -> Job | None:
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_COLUMNS} FROM moderation_jobs WHERE document_id = %s",
                    (job_id,),
                )
                row = cur.fetchone()
        return _row_to_job(row) if row is not None else None

    def mark_completed(self, job_id: str, result: dict[str, Any]) -> None:
        self._update(
            """
            UPDATE moderation_jobs
            SET status = 'completed', result = %s, locked_at = NULL, updated_at = NOW()
            WHERE document_id = %s
            """,
            (Jsonb(result), job_id),
            job_id,
        )

    def mark_failed(self, job_id: str, attempts: int, error: str) -> None:
        self._update(
            """
            UPDATE moderation_jobs
            SET status = 'failed', attempts = %s, error_message = %s,
                locked_at = NULL, updated_at = NOW()
            WHERE document_id = %s
            """,
            (attempts, error, job_id),
            job_id,
        )

    def schedule_retry(
        self, job_id: str, attempts: int, available_at: datetime, error: str
    ) -> None:
        self._update(
            """
            UPDATE moderation_jobs
            SET status = 'waiting', attempts = %s, available_at = %s,
                error_message = %s, locked_at = NULL, updated_at = NOW()
            WHERE document_id = %s
            """,
            (attempts, available_at, error, job_id),
            job_id,
        )

    def update_progress(self, job_id: str, progress: int, now: datetime) -> None:
        with self._db.connection() as conn:
            conn.execute(
                """
                UPDATE moderation_jobs
                SET progress = GREATEST(progress, %s), locked_at = %s, updated_at = NOW()
                WHERE document_id = %s AND status = 'active'
                """,
                (progress, now, job_id),
            )
            conn.commit()

    def requeue_stalled(self, cutoff: datetime) -> list[str]:
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE moderation_jobs
                    SET status = 'waiting', available_at = NULL,
                        locked_at = NULL, updated_at = NOW()
                    WHERE status = 'active' AND locked_at < %s
                    RETURNING document_id
                    """,
                    (cutoff,),
                )
                rows = cur.fetchall()
            conn.commit()
        return [row[0] for row in rows]

    def counts(self, now: datetime) -> QueueStats:
        with self._db.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT
                        COUNT(*) FILTER (
                            WHERE status = 'waiting'
                              AND (available_at IS NULL OR available_at <= %s)
                        ) AS waiting,
                        COUNT(*) FILTER (
                            WHERE status = 'waiting' AND available_at > %s
                        ) AS delayed,
                        COUNT(*) FILTER (WHERE status = 'active') AS active,
                        COUNT(*) FILTER (WHERE status = 'completed') AS completed,
                        COUNT(*) FILTER (WHERE status = 'failed') AS failed
                    FROM moderation_jobs
                    """,
                    (now, now),
                )
                row = cur.fetchone()

        if row is None:
            raise QueueError("Job counts query returned no row")
        return QueueStats(
            waiting=row["waiting"],
            active=row["active"],
            completed=row["completed"],
            failed=row["failed"],
            delayed=row["delayed"],
        )

    def _update(self, sql: str, params: tuple[Any, ...], job_id: str) -> None:
        with self._db.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                if cur.rowcount == 0:
                    raise JobNotFoundError(f"Job {job_id} not found")
            conn.commit()
