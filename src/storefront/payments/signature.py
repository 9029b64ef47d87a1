"""Webhook signature verification (HMAC-SHA256 over the raw body)."""

import hashlib
import hmac

import structlog

logger = structlog.get_logger(__name__)

SIGNATURE_PREFIX = "sha256="


def compute_signature(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(secret: str, body: bytes, signature_header: str | None) -> bool:
    """Return True when ``signature_header`` is the HMAC of ``body`` under ``secret``.

    An unconfigured secret rejects every request. The comparison is
    constant-time.
    """
    if not secret:
        logger.warning("Webhook secret not configured, rejecting webhook")
        return False
    if not signature_header:
        logger.warning("Webhook received without signature header")
        return False

    received = signature_header.strip()
    if received.startswith(SIGNATURE_PREFIX):
        received = received[len(SIGNATURE_PREFIX) :]

    is_valid = hmac.compare_digest(compute_signature(secret, body), received.lower())
    if not is_valid:
        logger.warning("Invalid webhook signature")
    return is_valid
