"""Configurable fake payment gateway for development and testing.

No external calls are made. Captures report the amount configured for the
provider order (``approve``), so tests can simulate matching and mismatching
payments; refunds succeed or fail according to ``configure``.
"""

from uuid import uuid4

from storefront.payments.gateway.port import CaptureResult, PaymentGateway, RefundResult


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Refund declined"
        self.approved: dict[str, tuple[float, str]] = {}
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Refund declined") -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def approve(self, provider_order_id: str, amount: float, currency: str = "USD") -> None:
        """Register a provider order as approved by the customer."""
        self.approved[provider_order_id] = (amount, currency)

    def capture_order(self, provider_order_id: str) -> CaptureResult:
        self.calls.append({"method": "capture_order", "provider_order_id": provider_order_id})

        if not self.should_succeed or provider_order_id not in self.approved:
            return CaptureResult(success=False, status="DECLINED", failure_reason=self.failure_reason)

        amount, currency = self.approved[provider_order_id]
        return CaptureResult(
            success=True,
            capture_id=f"fake_cap_{uuid4().hex[:12]}",
            status="COMPLETED",
            amount=amount,
            currency=currency,
        )

    def refund_capture(self, capture_id: str, amount: float, currency: str, note: str) -> RefundResult:
        self.calls.append(
            {
                "method": "refund_capture",
                "capture_id": capture_id,
                "amount": amount,
                "currency": currency,
                "note": note,
            }
        )

        if self.should_succeed:
            return RefundResult(success=True, refund_id=f"fake_ref_{uuid4().hex[:12]}", status="COMPLETED")
        return RefundResult(success=False, status="FAILED", failure_reason=self.failure_reason)
