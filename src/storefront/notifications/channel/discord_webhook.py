"""Discord webhook adapter for the staff channel.

Discord answers 204 on success. Transport errors, 429 and 5xx replies are
retried; any other outcome is reported as a failed result, never raised.
"""

import httpx
import structlog

from storefront import config
from storefront.notifications.channel.chat_port import ChatWebhookPort
from storefront.utils.retry import http_retry

logger = structlog.get_logger(__name__)

WEBHOOK_TIMEOUT = 10.0

_webhook_retry = http_retry(__name__)


class DiscordWebhookAdapter(ChatWebhookPort):
    def __init__(self, webhook_url: str, client: httpx.Client | None = None):
        self.webhook_url = webhook_url
        self.client = client or httpx.Client(timeout=WEBHOOK_TIMEOUT)

    @classmethod
    def from_config(cls) -> "DiscordWebhookAdapter":
        return cls(config.discord_webhook_url())

    @_webhook_retry
    def _send(self, payload: dict) -> httpx.Response:
        response = self.client.post(self.webhook_url, json=payload)
        if response.status_code == 429 or response.is_server_error:
            response.raise_for_status()
        return response

    def post(self, payload: dict) -> dict:
        if not self.webhook_url:
            logger.info("Discord webhook URL not configured, skipping notification")
            return {"status": "skipped", "error": "Webhook URL not configured"}
        try:
            response = self._send(payload)
        except httpx.HTTPError as exc:
            logger.error("Discord webhook request failed", error=str(exc))
            return {"status": "failed", "error": str(exc)}

        if response.is_success:
            return {"status": "sent"}
        logger.error("Discord webhook rejected", status_code=response.status_code, body=response.text[:200])
        return {"status": "failed", "error": f"HTTP {response.status_code}: {response.text[:200]}"}
