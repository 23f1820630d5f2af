from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    service_name: str = "ShareBuddy-Moderation-Service"
    service_version: str = "1.0"

    queue_backend: str = "postgres"
    db_host: str = "localhost"
    db_port: int = 5432
    db_database: str = "moderation"
    db_username: str = "moderation"
    db_password: str = "secret"

    worker_concurrency: int = 2
    max_job_attempts: int = 3
    job_backoff_base_seconds: float = 2.0
    job_poll_interval_seconds: float = 1.0
    job_stalled_after_seconds: float = 300.0

    files_root: str = ""
    pdf_engine: str = "pdfplumber"
    pdf_max_pages: int = 50
    profanity_terms: list[str] = []

    webhook_url: str = "http://localhost:5001/api/webhooks/moderation"
    webhook_secret: str = ""
    webhook_timeout_seconds: float = 10.0
    webhook_max_attempts: int = 3
    webhook_backoff_base_seconds: float = 2.0

    learned_scorer_enabled: bool = False
    learned_scorer_threshold: float = 0.7
    openai_api_key: str = ""
    openai_moderation_model: str = "omni-moderation-latest"
    openai_timeout_seconds: int = 30
    openai_base_url: str | None = None

    api_enabled: bool = True
    api_host: str = "0.0.0.0"
    api_port: int = 5002
