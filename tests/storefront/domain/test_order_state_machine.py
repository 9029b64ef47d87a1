"""Tests for the Order state machine — valid transitions and invalid transition guards."""

import pytest
from protean.exceptions import ValidationError
from storefront.fulfillment.resolver import DeliveryOutcome, Resolution
from storefront.order.events import OrderCancelled, OrderCompleted, OrderPaid
from storefront.order.order import (
    CustomizationStatus,
    ItemDeliveryStatus,
    Order,
    OrderStatus,
    PaymentStatus,
)


class _File:
    def __init__(self, file_id):
        self.id = file_id


def _make_order(total=50.0, quantity=1):
    unit = total / quantity if quantity else 0.0
    return Order.create(
        order_number="PD-2026-001",
        customer_id="cust-001",
        customer_name="Sara",
        customer_email="sara@example.com",
        items_data=[
            {
                "product_id": "prod-001",
                "product_name": "Neon Overlay",
                "product_slug": "neon-overlay",
                "quantity": quantity,
                "original_price": unit,
                "unit_price": unit,
                "total_price": total,
                "enable_customizations": True,
                "customizations": None,
            }
        ],
        subtotal=total,
        total_promo_discount=0.0,
        total_price=total,
    )


def _deliver(order, outcome=DeliveryOutcome.AUTO_DELIVER):
    item = order.ordered_items()[0]
    files = (_File("file-1"),) if outcome == DeliveryOutcome.AUTO_DELIVER else ()
    return order.apply_delivery([Resolution(item_id=str(item.id), outcome=outcome, files=files, note="n")])


def _order_at_state(target_status):
    order = _make_order()
    order._events.clear()
    if target_status == OrderStatus.PENDING:
        return order

    order.mark_paid(amount=50.0, currency="USD", transaction_id="CAP-1")
    order._events.clear()
    if target_status == OrderStatus.PROCESSING:
        return order

    if target_status == OrderStatus.CANCELLED:
        order.cancel("changed my mind", "admin@example.com")
        order._events.clear()
        return order

    _deliver(order)
    order._events.clear()
    if target_status == OrderStatus.COMPLETED:
        return order

    order.refund("REF-1", "admin@example.com")
    order._events.clear()
    return order


class TestCreation:
    def test_new_order_is_pending(self):
        order = _make_order()
        assert order.order_status == OrderStatus.PENDING.value
        assert order.payment_status == PaymentStatus.PENDING.value
        assert order.customization_status == CustomizationStatus.NONE.value
        assert len(order.timeline()) == 1

    def test_items_start_pending(self):
        order = _make_order()
        assert [i.delivery_status for i in order.items] == [ItemDeliveryStatus.PENDING.value]

    def test_requires_items(self):
        with pytest.raises(ValidationError):
            Order.create(
                order_number="PD-2026-002",
                customer_id="c",
                customer_name="n",
                customer_email="e@example.com",
                items_data=[],
                subtotal=0.0,
                total_promo_discount=0.0,
                total_price=0.0,
            )

    def test_total_must_equal_subtotal_minus_discount(self):
        with pytest.raises(ValidationError) as exc:
            Order.create(
                order_number="PD-2026-003",
                customer_id="c",
                customer_name="n",
                customer_email="e@example.com",
                items_data=[
                    {
                        "product_id": "p",
                        "product_name": "P",
                        "product_slug": "p",
                        "quantity": 1,
                        "original_price": 10.0,
                        "unit_price": 10.0,
                        "total_price": 10.0,
                    }
                ],
                subtotal=10.0,
                total_promo_discount=2.0,
                total_price=10.0,
            )
        assert "total_price" in exc.value.messages


class TestPayment:
    def test_mark_paid_moves_to_processing(self):
        order = _make_order()
        assert order.mark_paid(amount=50.0, currency="USD", transaction_id="CAP-1") is True
        assert order.order_status == OrderStatus.PROCESSING.value
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.transaction_id == "CAP-1"
        assert any(isinstance(e, OrderPaid) for e in order._events)

    def test_mark_paid_twice_is_a_no_op(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        history = len(order.timeline())
        assert order.mark_paid(amount=50.0, currency="USD", transaction_id="CAP-2") is False
        assert order.transaction_id == "CAP-1"
        assert len(order.timeline()) == history

    def test_amount_matches_within_half_a_cent(self):
        order = _make_order(total=19.99)
        assert order.amount_matches(19.994, "USD")
        assert order.amount_matches("19.99", "usd")
        assert not order.amount_matches(19.0, "USD")
        assert not order.amount_matches(19.99, "EUR")

    def test_payment_denied_cancels_pending_order(self):
        order = _make_order()
        assert order.mark_payment_failed("INSUFFICIENT_FUNDS") is True
        assert order.payment_status == PaymentStatus.FAILED.value
        assert order.order_status == OrderStatus.CANCELLED.value

    def test_free_order_skips_payment(self):
        order = _make_order(total=0.0)
        assert order.is_free
        assert order.mark_free() is True
        assert order.payment_status == PaymentStatus.FREE.value
        assert order.order_status == OrderStatus.PROCESSING.value

    def test_paid_order_cannot_be_marked_free(self):
        with pytest.raises(ValidationError):
            _make_order().mark_free()

    def test_flag_for_review_keeps_status(self):
        order = _make_order()
        order.flag_for_review("amount mismatch")
        assert order.requires_review is True
        assert order.order_status == OrderStatus.PENDING.value
        assert order.timeline()[-1].note == "amount mismatch"


class TestDelivery:
    def test_auto_delivery_completes_order(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        assert _deliver(order) is True
        assert order.order_status == OrderStatus.COMPLETED.value
        assert order.download_expiry is not None
        assert order.items[0].delivery_status == ItemDeliveryStatus.AUTO_DELIVERED.value
        assert any(isinstance(e, OrderCompleted) for e in order._events)

    def test_custom_work_keeps_order_processing(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        assert _deliver(order, DeliveryOutcome.NEEDS_CUSTOM_WORK) is False
        assert order.order_status == OrderStatus.PROCESSING.value
        assert order.customization_status == CustomizationStatus.PENDING.value
        assert order.awaiting_items()

    def test_pending_order_cannot_be_delivered(self):
        with pytest.raises(ValidationError):
            _deliver(_make_order())

    def test_cannot_complete_with_undelivered_items(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        _deliver(order, DeliveryOutcome.NEEDS_CUSTOM_WORK)
        with pytest.raises(ValidationError):
            order.complete(changed_by="admin@example.com")

    def test_designer_delivery_then_completion(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        _deliver(order, DeliveryOutcome.NEEDS_CUSTOM_WORK)
        order.start_customization("designer@example.com")
        assert order.customization_status == CustomizationStatus.PROCESSING.value

        item = order.awaiting_items()[0]
        order.mark_items_delivered([str(item.id)], {str(item.id): ["bespoke-1"]})
        assert order.complete(changed_by="admin@example.com") is True
        assert order.customization_status == CustomizationStatus.COMPLETED.value

    def test_complete_twice_is_a_no_op(self):
        order = _order_at_state(OrderStatus.COMPLETED)
        assert order.complete() is False


class TestCancellationAndRefund:
    def test_cancel_pending_order(self):
        order = _order_at_state(OrderStatus.PENDING)
        assert order.cancel("duplicate order", "admin@example.com") is True
        assert order.order_status == OrderStatus.CANCELLED.value
        assert order.cancellation_reason == "duplicate order"
        assert any(isinstance(e, OrderCancelled) for e in order._events)

    def test_cancel_with_refund(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        order.cancel("customer request", "admin@example.com", refund_id="REF-9")
        assert order.payment_status == PaymentStatus.REFUNDED.value
        assert order.refund_id == "REF-9"

    def test_failed_refund_does_not_block_cancellation(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        order.cancel("customer request", "admin@example.com", refund_error="provider down")
        assert order.order_status == OrderStatus.CANCELLED.value
        assert order.payment_status == PaymentStatus.PAID.value
        assert order.requires_review is True

    def test_refund_completed_order(self):
        order = _order_at_state(OrderStatus.REFUNDED)
        assert order.order_status == OrderStatus.REFUNDED.value
        assert order.payment_status == PaymentStatus.REFUNDED.value

    @pytest.mark.parametrize("status", [OrderStatus.COMPLETED, OrderStatus.REFUNDED])
    def test_finished_orders_cannot_be_cancelled(self, status):
        order = _order_at_state(status)
        with pytest.raises(ValidationError):
            order.cancel("too late", "admin@example.com")

    def test_cancelled_order_cannot_be_cancelled_again(self):
        order = _order_at_state(OrderStatus.CANCELLED)
        assert order.cancel("again", "admin@example.com") is False

    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.PROCESSING, OrderStatus.CANCELLED])
    def test_only_completed_orders_can_be_refunded(self, status):
        order = _order_at_state(status)
        with pytest.raises(ValidationError):
            order.refund("REF-1", "admin@example.com")


class TestHistory:
    def test_history_is_append_only_and_ordered(self):
        order = _order_at_state(OrderStatus.COMPLETED)
        sequences = [h.sequence for h in order.timeline()]
        assert sequences == list(range(1, len(sequences) + 1))
        assert order.timeline()[-1].status == OrderStatus.COMPLETED.value

    def test_admin_note_keeps_status(self):
        order = _order_at_state(OrderStatus.PROCESSING)
        order.add_note("called the customer", "admin@example.com")
        entry = order.timeline()[-1]
        assert entry.status == OrderStatus.PROCESSING.value
        assert entry.changed_by == "admin@example.com"

    def test_completion_email_only_for_completed_orders(self):
        with pytest.raises(ValidationError):
            _order_at_state(OrderStatus.PROCESSING).request_completion_email("admin@example.com")
