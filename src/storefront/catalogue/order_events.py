"""Catalogue reacts to Order events — keeps product purchase counts current."""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.order.events import OrderPaid
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.event_handler(part_of=Product, stream_category="storefront::order")
class PurchaseCountHandler:
    @handle(OrderPaid)
    def on_order_paid(self, event: OrderPaid) -> None:
        order = current_domain.repository_for(Order).get(event.order_id)
        repo = current_domain.repository_for(Product)
        for item in order.items:
            try:
                product = repo.get(item.product_id)
            except ObjectNotFoundError:
                logger.info("Purchased product no longer exists", product_id=str(item.product_id))
                continue
            product.record_purchase(item.quantity or 1)
            repo.add(product)
