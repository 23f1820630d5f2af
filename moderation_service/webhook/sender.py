import time
from collections.abc import Callable
from typing import Any

import httpx

from moderation_service.config.settings import Settings
from moderation_service.logging.logger import Log
from moderation_service.webhook.exceptions import WebhookDeliveryError, WebhookError
from moderation_service.webhook.models import WebhookPayload

SECRET_HEADER = "X-Webhook-Secret"


class WebhookSender:
    """POSTs moderation outcomes to the upstream backend.

    deliver() retries non-2xx responses and transport errors with exponential
    backoff; deliver_once() makes a single attempt and never raises.
    """

    def __init__(
        self,
        *,
        url: str,
        secret: str,
        user_agent: str,
        timeout_seconds: float = 10.0,
        max_attempts: int = 3,
        backoff_base_seconds: float = 2.0,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._url = url
        self._max_attempts = max_attempts
        self._backoff_base_seconds = backoff_base_seconds
        self._sleep = sleep
        self._client = httpx.Client(
            timeout=timeout_seconds,
            transport=transport,
            headers={
                "Content-Type": "application/json",
                SECRET_HEADER: secret,
                "User-Agent": user_agent,
            },
        )

    def deliver(self, payload: WebhookPayload) -> dict[str, Any]:
        """Send payload, retrying up to max_attempts in total.

        Raises:
            WebhookDeliveryError: when every attempt failed.
        """
        body = payload.as_dict()
        last_error: Exception | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                ack = self._post(body)
                Log.info(f"Webhook sent successfully for document {payload.document_id}")
                return ack
            except WebhookError as exc:
                last_error = exc
                Log.error(
                    f"Webhook failed for document {payload.document_id} "
                    f"(attempt {attempt}/{self._max_attempts}): {exc}"
                )
            if attempt < self._max_attempts:
                delay = self._backoff_base_seconds * 2 ** (attempt - 1)
                Log.info(f"Retrying webhook in {delay:g}s")
                self._sleep(delay)

        raise WebhookDeliveryError(
            f"Webhook failed after {self._max_attempts} attempts: {last_error}"
        ) from last_error

    def deliver_once(self, payload: WebhookPayload) -> bool:
        """Single best-effort attempt. Failures are logged, not raised."""
        try:
            self._post(payload.as_dict())
        except WebhookError as exc:
            Log.error(f"Failed to send webhook for document {payload.document_id}: {exc}")
            return False
        Log.info(f"Webhook sent successfully for document {payload.document_id}")
        return True

    def close(self) -> None:
        self._client.close()

    def _post(self, body: dict[str, Any]) -> dict[str, Any]:
        Log.debug(f"Sending webhook to {self._url}")
        try:
            response = self._client.post(self._url, json=body)
        except httpx.HTTPError as exc:
            raise WebhookError(f"Transport error: {exc}") from exc

        if not response.is_success:
            raise WebhookError(f"Unexpected response status: {response.status_code}")
        try:
            ack = response.json()
        except ValueError:
            return {}
        return ack if isinstance(ack, dict) else {"response": ack}


def build_webhook_sender(settings: Settings) -> WebhookSender:
    return WebhookSender(
        url=settings.webhook_url,
        secret=settings.webhook_secret,
        user_agent=f"{settings.service_name}/{settings.service_version}",
        timeout_seconds=settings.webhook_timeout_seconds,
        max_attempts=settings.webhook_max_attempts,
        backoff_base_seconds=settings.webhook_backoff_base_seconds,
    )
