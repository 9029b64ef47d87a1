"""Template registry — maps NotificationType to template classes."""

from storefront.notifications.templates.custom_work_pending import CustomWorkPendingTemplate
from storefront.notifications.templates.free_order_completed import FreeOrderCompletedTemplate
from storefront.notifications.templates.new_paid_order import NewPaidOrderTemplate
from storefront.notifications.templates.order_cancelled import OrderCancelledTemplate
from storefront.notifications.templates.order_completed import OrderCompletedTemplate
from storefront.notifications.types import NotificationType

TEMPLATE_REGISTRY: dict[str, type] = {
    NotificationType.ORDER_COMPLETED.value: OrderCompletedTemplate,
    NotificationType.FREE_ORDER_COMPLETED.value: FreeOrderCompletedTemplate,
    NotificationType.CUSTOM_WORK_PENDING.value: CustomWorkPendingTemplate,
    NotificationType.ORDER_CANCELLED.value: OrderCancelledTemplate,
    NotificationType.NEW_PAID_ORDER.value: NewPaidOrderTemplate,
}


def get_template(notification_type: str):
    """Look up a template class by notification type string."""
    template_cls = TEMPLATE_REGISTRY.get(notification_type)
    if template_cls is None:
        raise ValueError(f"No template registered for notification type: {notification_type}")
    return template_cls
