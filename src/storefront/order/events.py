"""Domain events for the Order aggregate.

Events are raised by the aggregate's transition methods and consumed by the
notification handlers (email, team chat). They are facts: a notification
failure never causes the transition that raised them to be undone.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront


@storefront.event(part_of="Order")
class OrderPlaced:
    """A customer checked out a cart snapshot."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_id = Identifier(required=True)
    customer_email = String(required=True)
    total_price = Float(required=True)
    currency = String(default="USD")
    is_free = Boolean(default=False)
    item_count = Integer(required=True)
    applied_promo_codes = Text()  # JSON list of codes
    placed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderPaid:
    """The payment provider captured the full order amount."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    transaction_id = String()
    amount = Float(required=True)
    currency = String(default="USD")
    paid_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentFailed:
    """The provider denied the capture; the pending order was cancelled."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    reason = String()
    failed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class PaymentFlaggedForReview:
    """A payment event did not match the order and needs a human."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    reason = String(required=True)
    flagged_at = DateTime(required=True)


@storefront.event(part_of="Order")
class ItemsAwaitingCustomization:
    """One or more items need a designer before the order can complete."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_email = String(required=True)
    customer_name = String()
    item_names = Text()  # JSON list of product names
    flagged_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCompleted:
    """Every item was delivered; download grants exist for the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_email = String(required=True)
    customer_name = String()
    is_free = Boolean(default=False)
    download_expiry = DateTime(required=True)
    completed_by = String()
    completed_at = DateTime(required=True)


@storefront.event(part_of="Order")
class CompletionEmailRequested:
    """An admin asked for the completion email to be sent again."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    requested_by = String()
    requested_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_email = String(required=True)
    customer_name = String()
    reason = String()
    refunded = Boolean(default=False)
    cancelled_by = String()
    cancelled_at = DateTime(required=True)


@storefront.event(part_of="Order")
class OrderRefunded:
    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    refund_id = String()
    amount = Float()
    refunded_by = String()
    refunded_at = DateTime(required=True)
