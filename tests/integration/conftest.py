import os
from collections.abc import Generator
from typing import Any

import httpx
import pytest

from moderation_service.config.settings import Settings
from moderation_service.database.connection import Database, build_conninfo
from moderation_service.queue.postgres_store import PostgresJobStore


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "moderation_test")
    return Settings()


class WebhookEndpoint:
    """Records every delivery and answers with a fixed status code."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"received": True})


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_database(test_settings: Settings) -> Generator[Database, None, None]:
    database = Database(build_conninfo(test_settings), max_size=4)
    try:
        database.open()
    except Exception as e:
        pytest.skip(
            f"PostgreSQL test DB not available: {e}. "
            "Set DB_* env to point at a scratch database"
        )
    try:
        yield database
    finally:
        database.close()


@pytest.fixture
def pg_store(integration_database: Database) -> Generator[PostgresJobStore, None, None]:
    """Store on a freshly emptied moderation_jobs table."""
    store = PostgresJobStore(integration_database)
    store.open()
    with integration_database.connection() as conn:
        conn.execute("TRUNCATE moderation_jobs RESTART IDENTITY")
        conn.commit()
    yield store
    with integration_database.connection() as conn:
        conn.execute("TRUNCATE moderation_jobs RESTART IDENTITY")
        conn.commit()


@pytest.fixture
def files_root(tmp_path: Any) -> Any:
    return tmp_path


@pytest.fixture
def webhook_endpoint() -> WebhookEndpoint:
    return WebhookEndpoint()
