"""Channel adapter registry — pluggable notification dispatch channels.

Fake adapters are used by default. ``EMAIL_BACKEND=smtp`` selects SMTP and
a configured ``DISCORD_WEBHOOK_URL`` selects the Discord webhook.
"""

from storefront import config
from storefront.notifications.types import NotificationChannel

_channel_instances: dict[str, object] = {}


def get_channel(channel_type: str):
    """Return the configured adapter for ``channel_type`` (singleton per type)."""
    if channel_type not in _channel_instances:
        if channel_type == NotificationChannel.EMAIL.value:
            if config.email_backend() == "smtp":
                from storefront.notifications.channel.smtp_email import SmtpEmailAdapter

                _channel_instances[channel_type] = SmtpEmailAdapter.from_config()
            else:
                from storefront.notifications.channel.fake_email import FakeEmailAdapter

                _channel_instances[channel_type] = FakeEmailAdapter()
        elif channel_type == NotificationChannel.CHAT.value:
            if config.discord_webhook_url():
                from storefront.notifications.channel.discord_webhook import DiscordWebhookAdapter

                _channel_instances[channel_type] = DiscordWebhookAdapter.from_config()
            else:
                from storefront.notifications.channel.fake_chat import FakeChatAdapter

                _channel_instances[channel_type] = FakeChatAdapter()
        else:
            raise ValueError(f"Unknown channel type: {channel_type}")

    return _channel_instances[channel_type]


def set_channel(channel_type: str, adapter) -> None:
    _channel_instances[channel_type] = adapter


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()
