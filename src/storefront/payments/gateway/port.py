"""Payment gateway port (abstract interface).

The storefront takes payments through a hosted checkout: the provider
approves an order on its side, the storefront captures it, and capture
outcomes also arrive as webhooks. Refunds are issued against a capture.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class CaptureResult:
    """Result of capturing a provider-approved order."""

    success: bool
    capture_id: str | None = None
    status: str | None = None
    amount: float | None = None
    currency: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    """Result of a refund attempt."""

    success: bool
    refund_id: str | None = None
    status: str | None = None
    failure_reason: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def capture_order(self, provider_order_id: str) -> CaptureResult:
        """Capture funds for an order the customer approved with the provider."""
        ...

    @abstractmethod
    def refund_capture(self, capture_id: str, amount: float, currency: str, note: str) -> RefundResult:
        """Refund a previous capture."""
        ...
