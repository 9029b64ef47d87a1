"""Order completed — download links for a paid order."""

from storefront.notifications.templates._html import link_lines, wrap
from storefront.notifications.types import NotificationChannel, NotificationType


class OrderCompletedTemplate:
    notification_type = NotificationType.ORDER_COMPLETED.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context["order_number"]
        name = context.get("customer_name") or "عميلنا العزيز"
        links = context.get("download_links", [])
        expiry = context.get("download_expiry", "")
        paragraphs = [
            f"مرحباً {name}،",
            f"تم إكمال طلبك رقم {order_number} وملفاتك جاهزة للتحميل.",
            f"روابط التحميل صالحة حتى {expiry}.",
        ]
        return {
            "subject": f"تم إكمال الطلب - {order_number}",
            "body": "\n".join(paragraphs) + "\n\n" + link_lines(links),
            "html_body": wrap(f"تم إكمال الطلب - {order_number}", paragraphs, links),
        }
