import threading
import time
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from moderation_service.config.settings import Settings
from moderation_service.logging.logger import Log
from moderation_service.queue.job_queue import JobQueue


def create_app(queue: JobQueue, service_name: str = "moderation-service") -> FastAPI:
    """Health and queue stats probes for the moderation worker."""
    started = time.monotonic()
    app = FastAPI(title="Moderation Service", version="1.0")

    @app.get("/health")
    def health() -> dict[str, object]:
        return {
            "status": "healthy",
            "service": service_name,
            "uptime": time.monotonic() - started,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/stats")
    def stats() -> JSONResponse:
        try:
            counts = queue.stats()
        except Exception as exc:
            Log.error(f"Failed to get stats: {exc}")
            return JSONResponse(status_code=500, content={"error": "Failed to retrieve stats"})
        return JSONResponse(content=counts.as_dict())

    return app


class ApiServer:
    """Runs the probe app with uvicorn on a background thread."""

    def __init__(self, app: FastAPI, settings: Settings) -> None:
        config = uvicorn.Config(
            app,
            host=settings.api_host,
            port=settings.api_port,
            log_level=settings.log_level.lower(),
        )
        self._server = uvicorn.Server(config)
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._server.run, name="api", daemon=True)
        self._thread.start()
        Log.info("Probe API started")

    def stop(self, timeout: float | None = 5.0) -> None:
        self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
