"""PayPal REST gateway.

Uses OAuth2 client credentials for an access token, then the Orders v2 API
to capture and the Payments v2 API to refund. Transport errors, 429 and 5xx
responses are retried; other HTTP errors become failed results.
"""

import time

import httpx
import structlog

from storefront import config
from storefront.payments.gateway.port import CaptureResult, PaymentGateway, RefundResult
from storefront.utils.retry import http_retry

logger = structlog.get_logger(__name__)

REQUEST_TIMEOUT = 30.0

_provider_retry = http_retry(__name__)


class PayPalGateway(PaymentGateway):
    def __init__(self, client_id: str, client_secret: str, api_base: str, client: httpx.Client | None = None):
        self.client_id = client_id
        self.client_secret = client_secret
        self.api_base = api_base.rstrip("/")
        self.client = client or httpx.Client(timeout=REQUEST_TIMEOUT)
        self._token: str | None = None
        self._token_expires_at: float = 0.0

    @classmethod
    def from_config(cls) -> "PayPalGateway":
        return cls(
            client_id=config.paypal_client_id(),
            client_secret=config.paypal_client_secret(),
            api_base=config.paypal_api_base(),
        )

    @_provider_retry
    def _access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token
        response = self.client.post(
            f"{self.api_base}/v1/oauth2/token",
            auth=(self.client_id, self.client_secret),
            data={"grant_type": "client_credentials"},
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        body = response.json()
        self._token = body["access_token"]
        # Refresh a minute before PayPal expires it
        self._token_expires_at = time.monotonic() + max(int(body.get("expires_in", 0)) - 60, 0)
        return self._token

    @_provider_retry
    def _post(self, path: str, payload: dict, request_id: str) -> dict:
        # The same PayPal-Request-Id on every attempt makes a retried POST a replay
        response = self.client.post(
            f"{self.api_base}{path}",
            json=payload,
            headers={
                "Authorization": f"Bearer {self._access_token()}",
                "Content-Type": "application/json",
                "Prefer": "return=representation",
                "PayPal-Request-Id": request_id,
            },
        )
        response.raise_for_status()
        return response.json()

    def capture_order(self, provider_order_id: str) -> CaptureResult:
        try:
            body = self._post(
                f"/v2/checkout/orders/{provider_order_id}/capture", {}, request_id=f"capture-{provider_order_id}"
            )
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            logger.error("PayPal capture failed", provider_order_id=provider_order_id, error=str(exc))
            return CaptureResult(success=False, status="ERROR", failure_reason=str(exc) or exc.__class__.__name__)

        captures = [
            capture
            for unit in body.get("purchase_units", [])
            for capture in unit.get("payments", {}).get("captures", [])
        ]
        if not captures:
            return CaptureResult(success=False, status=body.get("status"), failure_reason="No capture returned")

        capture = captures[0]
        amount = capture.get("amount", {})
        return CaptureResult(
            success=capture.get("status") == "COMPLETED",
            capture_id=capture.get("id"),
            status=capture.get("status"),
            amount=float(amount["value"]) if "value" in amount else None,
            currency=amount.get("currency_code"),
            failure_reason=None if capture.get("status") == "COMPLETED" else capture.get("status"),
        )

    def refund_capture(self, capture_id: str, amount: float, currency: str, note: str) -> RefundResult:
        payload = {
            "amount": {"value": f"{amount:.2f}", "currency_code": currency},
            "note_to_payer": note[:255],
        }
        try:
            body = self._post(f"/v2/payments/captures/{capture_id}/refund", payload, request_id=f"refund-{capture_id}")
        except (httpx.HTTPError, ValueError, KeyError) as exc:
            logger.error("PayPal refund failed", capture_id=capture_id, error=str(exc))
            return RefundResult(success=False, status="ERROR", failure_reason=str(exc) or exc.__class__.__name__)

        status = body.get("status")
        return RefundResult(
            success=status in ("COMPLETED", "PENDING"),
            refund_id=body.get("id"),
            status=status,
            failure_reason=None if status in ("COMPLETED", "PENDING") else status,
        )
