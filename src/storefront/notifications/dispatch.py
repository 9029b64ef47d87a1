"""Order notifications — reacts to Order events with emails and a staff chat post.

Delivery state is authoritative: a failed or raising channel is logged and
noted in the order history, and the transition that raised the event stands.
The admin "resend email" action is the recovery path.
"""

import json
from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain
from protean.utils.mixins import handle

from storefront import config
from storefront.access.order_design_file import grants_for_order
from storefront.catalogue.design_file import DesignFile
from storefront.domain import storefront
from storefront.notifications.channel import get_channel
from storefront.notifications.templates import get_template
from storefront.notifications.types import NotificationChannel, NotificationType
from storefront.order.events import (
    CompletionEmailRequested,
    ItemsAwaitingCustomization,
    OrderCancelled,
    OrderCompleted,
    OrderPaid,
)
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


def download_links(order: Order) -> list[dict]:
    """One authorization-checked download link per active grant of ``order``."""
    repo = current_domain.repository_for(DesignFile)
    base = config.public_base_url()
    links = []
    for grant in grants_for_order(order.id):
        if not grant.is_active:
            continue
        design_file = repo.get(grant.design_file_id)
        links.append(
            {
                "design_file_id": str(design_file.id),
                "file_name": design_file.file_name,
                "url": f"{base}/design-files/{design_file.id}/download",
            }
        )
    return sorted(links, key=lambda link: link["file_name"])


def _format_expiry(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


def send_email(order: Order, notification_type: str, context: dict) -> bool:
    """Render and send one customer email; record the outcome on ``order``."""
    content = get_template(notification_type).render(context)
    try:
        result = get_channel(NotificationChannel.EMAIL.value).send(
            to=order.customer_email,
            subject=content["subject"],
            body=content["body"],
            html_body=content.get("html_body"),
        )
    except Exception as exc:
        result = {"status": "failed", "error": str(exc)}

    if result.get("status") == "sent":
        order.record_email_sent(notification_type)
        logger.info("Email sent", order_number=order.order_number, notification_type=notification_type)
        return True

    logger.error(
        "Email failed",
        order_number=order.order_number,
        notification_type=notification_type,
        error=result.get("error"),
    )
    order.record_notification_failure(NotificationChannel.EMAIL.value, result.get("error") or "unknown error")
    return False


def post_to_chat(order: Order, notification_type: str, context: dict) -> bool:
    content = get_template(notification_type).render(context)
    try:
        result = get_channel(NotificationChannel.CHAT.value).post(content["payload"])
    except Exception as exc:
        result = {"status": "failed", "error": str(exc)}

    if result.get("status") in ("sent", "skipped"):
        return True
    logger.error("Chat notification failed", order_number=order.order_number, error=result.get("error"))
    order.record_notification_failure(NotificationChannel.CHAT.value, result.get("error") or "unknown error")
    return False


def completion_email(order: Order) -> bool:
    notification_type = (
        NotificationType.FREE_ORDER_COMPLETED.value if order.is_free else NotificationType.ORDER_COMPLETED.value
    )
    return send_email(
        order,
        notification_type,
        {
            "order_number": order.order_number,
            "customer_name": order.customer_name,
            "download_links": download_links(order),
            "download_expiry": _format_expiry(order.download_expiry),
        },
    )


@storefront.event_handler(part_of=Order)
class OrderNotificationHandler:
    """Sends customer emails and staff chat posts for order events."""

    def _order(self, order_id):
        return current_domain.repository_for(Order).get(order_id)

    def _save(self, order):
        current_domain.repository_for(Order).add(order)

    @handle(OrderPaid)
    def on_order_paid(self, event: OrderPaid) -> None:
        order = self._order(event.order_id)
        context = {
            "order_number": order.order_number,
            "customer_name": order.customer_name,
            "customer_email": order.customer_email,
            "amount": event.amount,
            "currency": event.currency or order.currency,
            "order_status": order.order_status,
            "has_customizations": any(i.has_customizations for i in order.items),
            "payment_method": "PayPal" if order.payment_method == "paypal" else order.payment_method,
            "items": [
                {"product_name": i.product_name, "quantity": i.quantity, "total_price": i.total_price}
                for i in order.ordered_items()
            ],
            "paid_at": (event.paid_at or datetime.now(UTC)).isoformat(),
        }
        if not post_to_chat(order, NotificationType.NEW_PAID_ORDER.value, context):
            self._save(order)

    @handle(OrderCompleted)
    def on_order_completed(self, event: OrderCompleted) -> None:
        order = self._order(event.order_id)
        completion_email(order)
        self._save(order)

    @handle(CompletionEmailRequested)
    def on_completion_email_requested(self, event: CompletionEmailRequested) -> None:
        order = self._order(event.order_id)
        completion_email(order)
        self._save(order)

    @handle(ItemsAwaitingCustomization)
    def on_items_awaiting_customization(self, event: ItemsAwaitingCustomization) -> None:
        order = self._order(event.order_id)
        send_email(
            order,
            NotificationType.CUSTOM_WORK_PENDING.value,
            {
                "order_number": order.order_number,
                "customer_name": order.customer_name,
                "item_names": json.loads(event.item_names) if event.item_names else [],
            },
        )
        self._save(order)

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        order = self._order(event.order_id)
        send_email(
            order,
            NotificationType.ORDER_CANCELLED.value,
            {
                "order_number": order.order_number,
                "customer_name": order.customer_name,
                "reason": event.reason,
                "refunded": event.refunded,
            },
        )
        self._save(order)
