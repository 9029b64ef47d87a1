"""Payment reconciliation — apply provider events to orders.

Two entry points feed the same logic:

- ``ProcessPaymentEvent``: an asynchronous provider webhook. Providers retry
  deliveries, so an event id already recorded on the order is a no-op.
- ``CapturePayment``: the customer returns from the provider's approval page
  and the storefront captures the approved order itself.

A capture is accepted only when its amount and currency match the order
total. A mismatch leaves the order pending and flags it for manual review.
"""

from enum import Enum

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.fulfillment.pipeline import deliver_order
from storefront.order.order import Order, OrderStatus
from storefront.payments.gateway import get_gateway

logger = structlog.get_logger(__name__)


class PaymentEventType(Enum):
    ORDER_APPROVED = "CHECKOUT.ORDER.APPROVED"
    CAPTURE_COMPLETED = "PAYMENT.CAPTURE.COMPLETED"
    CAPTURE_PENDING = "PAYMENT.CAPTURE.PENDING"
    CAPTURE_DENIED = "PAYMENT.CAPTURE.DENIED"


class Outcome(Enum):
    PAID = "paid"
    ALREADY_PAID = "already_paid"
    DUPLICATE = "duplicate"
    AMOUNT_MISMATCH = "amount_mismatch"
    FLAGGED = "flagged"
    PENDING = "pending"
    FAILED = "failed"
    APPROVED = "approved"
    IGNORED = "ignored"
    ORDER_NOT_FOUND = "order_not_found"


NOTE_AMOUNT_MISMATCH = "المبلغ المدفوع ({amount} {currency}) لا يطابق إجمالي الطلب ({total} {order_currency})، يحتاج إلى مراجعة يدوية"
NOTE_PAID_AFTER_CLOSE = "تم استلام دفعة لطلب في حالة {status}، يحتاج إلى مراجعة يدوية"


@storefront.command(part_of="Order")
class ProcessPaymentEvent:
    """A verified payment provider webhook event."""

    event_id = String(required=True, max_length=255)
    event_type = String(required=True, max_length=100)
    order_number = String(max_length=30)  # custom id set at checkout
    provider_order_id = String(max_length=100)
    capture_id = String(max_length=100)
    amount = Float()
    currency = String(max_length=3)
    reason = String(max_length=500)


@storefront.command(part_of="Order")
class CapturePayment:
    """Customer-initiated capture after approving the payment with the provider."""

    order_id = Identifier(required=True)
    provider_order_id = String(required=True, max_length=100)


def find_order(order_number: str | None, provider_order_id: str | None) -> Order | None:
    repo = current_domain.repository_for(Order)
    if order_number:
        found = repo._dao.query.filter(order_number=order_number).all().items
        if found:
            return found[0]
    if provider_order_id:
        found = repo._dao.query.filter(provider_order_id=provider_order_id).all().items
        if found:
            return found[0]
    return None


def apply_capture(
    order: Order,
    amount: float | None,
    currency: str | None,
    capture_id: str | None,
    provider_order_id: str | None,
) -> Outcome:
    """Accept a completed capture on ``order`` without persisting it."""
    if order.payment_status in ("paid", "refunded", "free"):
        return Outcome.ALREADY_PAID

    if order.order_status != OrderStatus.PENDING.value:
        logger.warning(
            "Payment captured for an order that is no longer pending",
            order_number=order.order_number,
            order_status=order.order_status,
        )
        order.flag_for_review(NOTE_PAID_AFTER_CLOSE.format(status=order.order_status))
        return Outcome.FLAGGED

    if amount is None or not order.amount_matches(amount, currency):
        logger.error(
            "Captured amount does not match order total",
            order_number=order.order_number,
            captured_amount=amount,
            captured_currency=currency,
            order_total=order.total_price,
            order_currency=order.currency,
        )
        order.flag_for_review(
            NOTE_AMOUNT_MISMATCH.format(
                amount=amount,
                currency=currency or "-",
                total=order.total_price,
                order_currency=order.currency,
            )
        )
        return Outcome.AMOUNT_MISMATCH

    order.mark_paid(
        amount=amount,
        currency=currency or order.currency,
        transaction_id=capture_id,
        provider_order_id=provider_order_id,
    )
    return Outcome.PAID


def _persist(order: Order, outcome: Outcome) -> None:
    if outcome == Outcome.PAID:
        deliver_order(order)
    else:
        current_domain.repository_for(Order).add(order)


@storefront.command_handler(part_of=Order)
class PaymentReconciliationHandler:
    @handle(ProcessPaymentEvent)
    def process_payment_event(self, command):
        order = find_order(command.order_number, command.provider_order_id)
        if order is None:
            logger.warning(
                "Payment event for unknown order",
                event_id=command.event_id,
                event_type=command.event_type,
                order_number=command.order_number,
                provider_order_id=command.provider_order_id,
            )
            return Outcome.ORDER_NOT_FOUND.value

        if order.has_processed_event(command.event_id):
            logger.info("Duplicate payment event ignored", event_id=command.event_id, order_number=order.order_number)
            return Outcome.DUPLICATE.value

        if command.event_type == PaymentEventType.CAPTURE_COMPLETED.value:
            outcome = apply_capture(
                order,
                command.amount,
                command.currency,
                command.capture_id,
                command.provider_order_id,
            )
        elif command.event_type == PaymentEventType.CAPTURE_PENDING.value:
            outcome = Outcome.PENDING if order.mark_payment_pending() else Outcome.IGNORED
        elif command.event_type == PaymentEventType.CAPTURE_DENIED.value:
            reason = command.reason or "PAYMENT.CAPTURE.DENIED"
            outcome = Outcome.FAILED if order.mark_payment_failed(reason) else Outcome.IGNORED
        elif command.event_type == PaymentEventType.ORDER_APPROVED.value:
            if command.provider_order_id and not order.provider_order_id:
                order.provider_order_id = command.provider_order_id
            outcome = Outcome.APPROVED
        else:
            outcome = Outcome.IGNORED

        order.record_webhook_event(command.event_id, command.event_type, outcome.value)
        _persist(order, outcome)

        logger.info(
            "Payment event processed",
            event_id=command.event_id,
            event_type=command.event_type,
            order_number=order.order_number,
            outcome=outcome.value,
        )
        return outcome.value

    @handle(CapturePayment)
    def capture_payment(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.payment_status != "pending":
            return Outcome.ALREADY_PAID.value
        if order.is_free:
            raise ValidationError({"order": ["Free orders do not require payment"]})

        result = get_gateway().capture_order(command.provider_order_id)
        if not result.success:
            logger.warning(
                "Payment capture declined",
                order_number=order.order_number,
                provider_order_id=command.provider_order_id,
                reason=result.failure_reason,
            )
            raise ValidationError({"payment": ["Payment could not be captured"]})

        outcome = apply_capture(order, result.amount, result.currency, result.capture_id, command.provider_order_id)
        _persist(order, outcome)
        if outcome == Outcome.AMOUNT_MISMATCH:
            raise ValidationError({"payment": ["Captured amount does not match the order total"]})
        return outcome.value


def load_order(order_id: str) -> Order:
    """Fetch an order by id or order number."""
    repo = current_domain.repository_for(Order)
    try:
        return repo.get(order_id)
    except ObjectNotFoundError:
        found = repo._dao.query.filter(order_number=order_id).all().items
        if not found:
            raise
        return found[0]
