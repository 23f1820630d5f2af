import signal
import threading

from moderation_service.api.server import ApiServer, create_app
from moderation_service.config.settings import Settings
from moderation_service.logging.logger import Log
from moderation_service.processor.processor import build_processor
from moderation_service.queue.job_queue import build_queue
from moderation_service.webhook.sender import build_webhook_sender
from moderation_service.worker.job_runner import JobRunner
from moderation_service.worker.worker import WorkerPool


def main() -> None:
    """Entry point: initialize queue -> build dependencies -> start workers and probes."""
    settings = Settings()
    Log.configure(settings.log_level)
    Log.info("Starting Moderation Service...")

    queue = build_queue(settings)
    queue.init()
    sender = build_webhook_sender(settings)
    shutdown = threading.Event()
    signal.signal(signal.SIGTERM, lambda *_: shutdown.set())

    try:
        processor = build_processor(settings, sender, queue.report_progress)
        job_runner = JobRunner(processor, queue, sender)
        pool = WorkerPool(queue, job_runner, settings)
        pool.start()

        api: ApiServer | None = None
        if settings.api_enabled:
            api = ApiServer(create_app(queue, settings.service_name), settings)
            api.start()

        Log.info("Service ready to process moderation jobs")
        try:
            while not shutdown.wait(1.0):
                pass
        except KeyboardInterrupt:
            pass
        Log.info("Shutting down gracefully...")
        if api is not None:
            api.stop()
        pool.stop()
    finally:
        sender.close()
        queue.close()


if __name__ == "__main__":
    main()
