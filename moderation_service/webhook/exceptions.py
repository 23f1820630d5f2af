class WebhookError(Exception):
    """Base exception for webhook delivery errors."""


class WebhookDeliveryError(WebhookError):
    """Raised when a payload could not be delivered after all attempts."""
