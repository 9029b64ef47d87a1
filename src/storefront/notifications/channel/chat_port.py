"""Team chat port — fire-and-forget webhook posts to the staff channel."""

from abc import ABC, abstractmethod


class ChatWebhookPort(ABC):
    @abstractmethod
    def post(self, payload: dict) -> dict:
        """Post a message payload.

        Returns:
            dict with keys: status ("sent", "skipped" or "failed"), error (optional)
        """
        ...
