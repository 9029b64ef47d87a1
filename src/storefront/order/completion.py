"""Manual completion of custom-work orders by an admin.

Designers upload a bespoke file for every item that was held for custom
work (see ``AttachOrderFile``). Completing the order marks those items
delivered, grants the new files and moves the order to completed. Items
delivered automatically keep their existing grants.
"""

from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from storefront import config
from storefront.access.order_design_file import OrderDesignFile, grant_files, grants_for_order
from storefront.catalogue.design_file import DesignFile
from storefront.domain import storefront
from storefront.fulfillment.pipeline import deliver_order
from storefront.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class StartCustomization:
    order_id = Identifier(required=True)
    started_by = String(required=True, max_length=255)


@storefront.command(part_of="Order")
class CompleteOrder:
    """Admin completion of an order whose items needed custom work."""

    order_id = Identifier(required=True)
    completed_by = String(required=True, max_length=255)
    note = Text()


def bespoke_files(order) -> list:
    """Active files produced for this specific order."""
    repo = current_domain.repository_for(DesignFile)
    return repo._dao.query.filter(order_id=str(order.id), is_active=True).all().items


@storefront.command_handler(part_of=Order)
class OrderCompletionHandler:
    @handle(StartCustomization)
    def start_customization(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.start_customization(command.started_by)
        repo.add(order)

    @handle(CompleteOrder)
    def complete_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if order.order_status == OrderStatus.COMPLETED.value:
            return False
        if order.order_status != OrderStatus.PROCESSING.value:
            raise ValidationError({"order_status": [f"Cannot complete an order in {order.order_status} state"]})

        if order.pending_items():
            report = deliver_order(order, changed_by=command.completed_by)
            if report.completed:
                return True

        files_by_product: dict[str, list] = {}
        for design_file in bespoke_files(order):
            files_by_product.setdefault(str(design_file.product_id), []).append(design_file)

        awaiting = order.awaiting_items()
        missing = [i.product_name for i in awaiting if not files_by_product.get(str(i.product_id))]
        if missing:
            raise ValidationError({"items": [f"Upload the custom design before completing: {', '.join(missing)}"]})

        file_ids_by_item = {str(i.id): [str(f.id) for f in files_by_product[str(i.product_id)]] for i in awaiting}
        order.mark_items_delivered(list(file_ids_by_item), file_ids_by_item)
        order.complete(changed_by=command.completed_by, note=command.note or None)

        delivered = [f for i in awaiting for f in files_by_product[str(i.product_id)]]
        expires_at = order.download_expiry or datetime.now(UTC) + timedelta(days=config.delivery_window_days())
        grant_files(order, delivered, expires_at=expires_at)
        grant_repo = current_domain.repository_for(OrderDesignFile)
        for grant in grants_for_order(order.id):
            if grant.is_active:
                grant.extend_until(expires_at)
                grant_repo.add(grant)
        repo.add(order)

        logger.info(
            "Order completed by admin",
            order_number=order.order_number,
            completed_by=command.completed_by,
            custom_items=len(file_ids_by_item),
        )
        return True
