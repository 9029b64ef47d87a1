"""Free order completion — command and handler.

Zero-total orders skip payment. Placement already pushes them through the
delivery pipeline; this command lets the customer re-trigger it and is a
no-op once the order is completed.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.fulfillment.pipeline import deliver_order
from storefront.order.order import Order, OrderStatus, PaymentStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class CompleteFreeOrder:
    order_id = Identifier(required=True)
    requested_by = String(max_length=255)


@storefront.command_handler(part_of=Order)
class CompleteFreeOrderHandler:
    @handle(CompleteFreeOrder)
    def complete_free_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if not order.is_free:
            logger.warning(
                "Free completion requested for a paid order",
                order_number=order.order_number,
                total_price=order.total_price,
            )
            raise ValidationError({"total_price": ["Only zero-total orders can be completed without payment"]})

        if order.order_status == OrderStatus.COMPLETED.value:
            return order.order_status
        if order.payment_status == PaymentStatus.PENDING.value:
            order.mark_free()
        if order.order_status != OrderStatus.PROCESSING.value:
            raise ValidationError({"order_status": [f"Cannot complete an order in {order.order_status} state"]})

        deliver_order(order, changed_by=command.requested_by or "customer")
        return order.order_status
