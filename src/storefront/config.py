"""Runtime settings read from the environment.

Values are looked up on every call so tests can override them with
``monkeypatch.setenv`` without reloading modules.
"""

import os


def environment() -> str:
    return os.environ.get("PROTEAN_ENV", "development").lower()


def is_production() -> bool:
    return environment() == "production"


def public_base_url() -> str:
    return os.environ.get("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")


def payment_webhook_secret() -> str:
    return os.environ.get("PAYMENT_WEBHOOK_SECRET", "")


def payment_gateway_name() -> str:
    return os.environ.get("PAYMENT_GATEWAY", "fake").lower()


def paypal_client_id() -> str:
    return os.environ.get("PAYPAL_CLIENT_ID", "")


def paypal_client_secret() -> str:
    return os.environ.get("PAYPAL_CLIENT_SECRET", "")


def paypal_api_base() -> str:
    return os.environ.get("PAYPAL_API_BASE", "https://api-m.sandbox.paypal.com").rstrip("/")


def discord_webhook_url() -> str:
    return os.environ.get("DISCORD_WEBHOOK_URL", "")


def email_backend() -> str:
    return os.environ.get("EMAIL_BACKEND", "fake").lower()


def smtp_settings() -> dict:
    return {
        "host": os.environ.get("SMTP_HOST", "localhost"),
        "port": int(os.environ.get("SMTP_PORT", "587")),
        "username": os.environ.get("SMTP_USER", ""),
        "password": os.environ.get("SMTP_PASSWORD", ""),
        "sender": os.environ.get("EMAIL_FROM", "no-reply@localhost"),
    }


def file_storage_backend() -> str:
    return os.environ.get("FILE_STORAGE", "local").lower()


def file_storage_root() -> str:
    return os.environ.get("FILE_STORAGE_ROOT", "storage")


def file_storage_url() -> str:
    return os.environ.get("FILE_STORAGE_URL", "").rstrip("/")


def file_url_signing_key() -> str:
    return os.environ.get("FILE_URL_SIGNING_KEY", "dev-signing-key")


def delivery_window_days() -> int:
    """Days a completed order's download links stay valid."""
    return int(os.environ.get("DELIVERY_WINDOW_DAYS", "30"))


def download_link_ttl_hours() -> int:
    return int(os.environ.get("DOWNLOAD_LINK_TTL_HOURS", "24"))
