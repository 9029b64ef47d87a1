"""Fake team chat adapter — records posted payloads for testing."""

from storefront.notifications.channel.chat_port import ChatWebhookPort


class FakeChatAdapter(ChatWebhookPort):
    def __init__(self):
        self.posted: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Chat webhook failed"

    def configure(self, should_succeed: bool = True, failure_reason: str = "Chat webhook failed"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def reset(self):
        self.posted.clear()
        self.should_succeed = True

    def post(self, payload: dict) -> dict:
        if not self.should_succeed:
            return {"status": "failed", "error": self.failure_reason}
        self.posted.append(payload)
        return {"status": "sent"}
