from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from moderation_service.api.server import create_app
from moderation_service.queue.job_queue import JobQueue


class TestHealth:
    def test_health(self, memory_queue: JobQueue) -> None:
        client = TestClient(create_app(memory_queue, "moderation-service"))

        r = client.get("/health")

        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "healthy"
        assert data["service"] == "moderation-service"
        assert data["uptime"] >= 0
        assert "timestamp" in data


class TestStats:
    def test_returns_queue_counts(self, memory_queue: JobQueue) -> None:
        for i in range(5):
            memory_queue.enqueue(f"doc-{i}", f"{i}.pdf", {})
        memory_queue.claim_next()
        memory_queue.claim_next()
        client = TestClient(create_app(memory_queue))

        r = client.get("/stats")

        assert r.status_code == 200
        assert r.json() == {
            "waiting": 3,
            "active": 2,
            "completed": 0,
            "failed": 0,
            "delayed": 0,
            "total": 5,
        }

    def test_uninitialized_queue_returns_500(self) -> None:
        queue = JobQueue(MagicMock())
        client = TestClient(create_app(queue))

        r = client.get("/stats")

        assert r.status_code == 500
        assert r.json() == {"error": "Failed to retrieve stats"}
