import threading

from moderation_service.config.settings import Settings
from moderation_service.logging.logger import Log
from moderation_service.queue.job_queue import JobHandler, JobQueue
from moderation_service.queue.models import Job


class Worker:
    """Poll loop for one worker slot: claim -> dispatch -> wait when idle."""

    def __init__(
        self,
        queue: JobQueue,
        settings: Settings,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._queue = queue
        self._settings = settings
        self._stop_event = stop_event if stop_event is not None else threading.Event()

    def run(self, max_jobs: int | None = None) -> None:
        """Main poll loop. Runs until the stop event is set.

        If max_jobs is set, stop after processing that many jobs (for testing).
        """
        Log.info("Worker started, polling for jobs")
        handler = self._queue.handler
        jobs_done = 0
        while not self._stop_event.is_set():
            if max_jobs is not None and jobs_done >= max_jobs:
                break
            job = self._try_claim_job()
            if job is None:
                Log.debug("No jobs available, sleeping")
                self._stop_event.wait(self._settings.job_poll_interval_seconds)
                continue
            try:
                handler.run(job)
            except Exception as exc:
                Log.exception(f"Job {job.id} could not be finalized: {exc}")
            jobs_done += 1
        Log.info("Worker stopped")

    def _try_claim_job(self) -> Job | None:
        """Attempt to claim the next waiting job. Gracefully handle backend errors."""
        try:
            return self._queue.claim_next()
        except Exception as exc:
            Log.warning(f"Queue backend error, will retry: {exc}")
            return None


class WorkerPool:
    """Fixed number of worker threads sharing one queue.

    Each slot processes one job fully before claiming the next, so at most
    `concurrency` jobs are active at once.
    """

    def __init__(
        self,
        queue: JobQueue,
        handler: JobHandler,
        settings: Settings,
    ) -> None:
        if settings.worker_concurrency < 1:
            raise ValueError("worker_concurrency must be at least 1")
        self._queue = queue
        self._handler = handler
        self._settings = settings
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("Worker pool already started")
        self._queue.register_handler(self._handler)
        self._stop_event.clear()
        for index in range(self._settings.worker_concurrency):
            worker = Worker(self._queue, self._settings, self._stop_event)
            thread = threading.Thread(
                target=worker.run,
                name=f"worker-{index + 1}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)
        Log.info(f"Job processor started with concurrency {len(self._threads)}")

    def stop(self, timeout: float | None = None) -> None:
        """Signal all workers to stop after their current job and wait for them."""
        self._stop_event.set()
        self.join(timeout)
        self._threads = [t for t in self._threads if t.is_alive()]

    def join(self, timeout: float | None = None) -> None:
        for thread in self._threads:
            thread.join(timeout)
