"""Custom work in progress — some items need a designer before delivery."""

from storefront.notifications.templates._html import wrap
from storefront.notifications.types import NotificationChannel, NotificationType


class CustomWorkPendingTemplate:
    notification_type = NotificationType.CUSTOM_WORK_PENDING.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context["order_number"]
        name = context.get("customer_name") or "عميلنا العزيز"
        items = "، ".join(context.get("item_names", []))
        paragraphs = [
            f"مرحباً {name}،",
            f"استلمنا طلبك رقم {order_number}.",
            f"يعمل فريق التصميم الآن على تخصيص: {items}.",
            "سنرسل لك روابط التحميل فور الانتهاء.",
        ]
        return {
            "subject": f"طلبك قيد التخصيص - {order_number}",
            "body": "\n".join(paragraphs),
            "html_body": wrap(f"طلبك قيد التخصيص - {order_number}", paragraphs),
        }
