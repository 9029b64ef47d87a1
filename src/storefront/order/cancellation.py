"""Order cancellation and refund — commands and handler.

Cancelling a paid order asks the payment provider for a refund first. The
refund outcome is recorded on the order, but a failed refund never blocks
the cancellation: the payment stays ``paid`` and the order is flagged for a
manual refund. Completed orders are refunded instead of cancelled, which
also revokes their download grants.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.access.order_design_file import revoke_grants
from storefront.domain import storefront
from storefront.order.order import Order, OrderStatus
from storefront.payments.gateway import get_gateway

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    cancelled_by = String(required=True, max_length=255)


@storefront.command(part_of="Order")
class RefundOrder:
    order_id = Identifier(required=True)
    reason = String(max_length=500)
    refunded_by = String(required=True, max_length=255)


def _refund(order, reason: str):
    """Ask the provider to refund the captured payment. Returns (refund_id, error)."""
    if not order.transaction_id:
        return None, "no captured payment on record"
    try:
        result = get_gateway().refund_capture(
            order.transaction_id,
            amount=order.total_price,
            currency=order.currency,
            note=reason,
        )
    except Exception as exc:
        logger.exception("Refund request raised", order_number=order.order_number)
        return None, str(exc) or exc.__class__.__name__
    if result.success:
        return result.refund_id, None
    return None, result.failure_reason or result.status or "refund failed"


@storefront.command_handler(part_of=Order)
class OrderCancellationHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.order_status == OrderStatus.CANCELLED.value:
            return False
        order._assert_can_transition(OrderStatus.CANCELLED)

        refund_id = refund_error = None
        if order.needs_refund():
            refund_id, refund_error = _refund(order, command.reason)
            if refund_error:
                logger.error(
                    "Refund failed during cancellation",
                    order_number=order.order_number,
                    transaction_id=order.transaction_id,
                    error=refund_error,
                )

        order.cancel(
            command.reason,
            changed_by=command.cancelled_by,
            refund_id=refund_id,
            refund_error=refund_error,
        )
        revoked = revoke_grants(order.id)
        repo.add(order)

        logger.info(
            "Order cancelled",
            order_number=order.order_number,
            refunded=bool(refund_id),
            grants_revoked=revoked,
        )
        return True

    @handle(RefundOrder)
    def refund_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.order_status == OrderStatus.REFUNDED.value:
            return True
        # Validates the transition before the provider is contacted
        order._assert_can_transition(OrderStatus.REFUNDED)

        reason = command.reason or "refund"
        refund_id, refund_error = _refund(order, reason)
        if refund_error:
            logger.error(
                "Refund failed",
                order_number=order.order_number,
                transaction_id=order.transaction_id,
                error=refund_error,
            )
            order.flag_for_review(f"فشل الاسترداد، يلزم استرداد يدوي: {refund_error}", changed_by=command.refunded_by)
            repo.add(order)
            return False

        order.refund(refund_id, changed_by=command.refunded_by)
        revoke_grants(order.id)
        repo.add(order)
        logger.info("Order refunded", order_number=order.order_number, refund_id=refund_id)
        return True
