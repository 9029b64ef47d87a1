"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing (default)
- PayPalGateway when PAYMENT_GATEWAY=paypal
"""

from storefront import config
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway, built from configuration on first use."""
    global _current_gateway
    if _current_gateway is None:
        if config.payment_gateway_name() == "paypal":
            from storefront.payments.gateway.paypal_adapter import PayPalGateway

            _current_gateway = PayPalGateway.from_config()
        else:
            _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
