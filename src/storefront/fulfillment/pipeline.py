"""Delivery pipeline — turn a processing order into delivered files.

Runs the resolver over every item that has not been resolved yet, writes
the outcomes onto the order through the aggregate's transition methods,
persists the order, then grants access to every resolved file. Running it
again on the same order is harmless: resolved items are skipped and
existing grants are reused.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront import config
from storefront.access.order_design_file import grant_files
from storefront.catalogue.design_file import DesignFile
from storefront.catalogue.product import Product
from storefront.fulfillment.resolver import (
    DeliveryOutcome,
    ProductNotFound,
    Resolution,
    resolve,
    unresolvable,
)
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@dataclass
class DeliveryReport:
    order_number: str
    auto_delivered: list[str] = field(default_factory=list)
    awaiting_customization: list[str] = field(default_factory=list)
    granted_file_ids: list[str] = field(default_factory=list)
    completed: bool = False


def design_files_for_product(product_id: str) -> list:
    repo = current_domain.repository_for(DesignFile)
    return repo._dao.query.filter(product_id=str(product_id), is_active=True).all().items


def _load_product(product_id: str):
    try:
        return current_domain.repository_for(Product).get(product_id)
    except ObjectNotFoundError:
        return None


def resolve_items(order) -> list[Resolution]:
    """Stage a resolution for every still-pending item of ``order``."""
    now = datetime.now(UTC)
    resolutions = []
    for item in order.pending_items():
        request = item.to_resolvable()
        product = _load_product(request.product_id)
        try:
            resolution = resolve(
                request,
                product,
                design_files_for_product(request.product_id) if product else [],
                now,
            )
        except ProductNotFound as exc:
            logger.error(
                "Product missing during delivery",
                order_number=order.order_number,
                product_id=exc.product_id,
                item_id=request.item_id,
            )
            resolution = unresolvable(request)
        resolutions.append(resolution)
    return resolutions


def deliver_order(order, changed_by: str = "system") -> DeliveryReport:
    """Resolve, grant and persist. ``order`` must be in processing."""
    resolutions = resolve_items(order)
    completed = order.apply_delivery(resolutions, changed_by=changed_by)

    report = DeliveryReport(order_number=order.order_number, completed=completed)
    expires_at = order.download_expiry or datetime.now(UTC) + timedelta(days=config.delivery_window_days())
    files = []
    for resolution in resolutions:
        if resolution.outcome == DeliveryOutcome.AUTO_DELIVER:
            report.auto_delivered.append(resolution.item_id)
            files.extend(resolution.files)
        else:
            report.awaiting_customization.append(resolution.item_id)

    grant_files(order, files, expires_at=expires_at)
    report.granted_file_ids = [str(f.id) for f in files]

    # Grants must exist before the order is stored: completion handlers list them.
    current_domain.repository_for(Order).add(order)

    logger.info(
        "Order delivery processed",
        order_number=order.order_number,
        auto_delivered=len(report.auto_delivered),
        awaiting_customization=len(report.awaiting_customization),
        completed=completed,
    )
    return report
