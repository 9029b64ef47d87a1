"""HMAC signatures for time-boxed file URLs."""

import hashlib
import hmac
from datetime import UTC, datetime


def sign_path(key: str, path: str, expires: int) -> str:
    message = f"{path}:{expires}".encode("utf-8")
    return hmac.new(key.encode("utf-8"), message, hashlib.sha256).hexdigest()


def signed_query(key: str, path: str, expires_at: datetime) -> str:
    expires = int(expires_at.timestamp())
    return f"expires={expires}&signature={sign_path(key, path, expires)}"


def verify_signed_path(key: str, path: str, expires: int, signature: str, now: datetime | None = None) -> bool:
    now = now or datetime.now(UTC)
    if expires < int(now.timestamp()):
        return False
    return hmac.compare_digest(sign_path(key, path, expires), signature or "")
