"""Free order accepted — download links for a zero-total order."""

from storefront.notifications.templates._html import link_lines, wrap
from storefront.notifications.types import NotificationChannel, NotificationType


class FreeOrderCompletedTemplate:
    notification_type = NotificationType.FREE_ORDER_COMPLETED.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context["order_number"]
        name = context.get("customer_name") or "عميلنا العزيز"
        links = context.get("download_links", [])
        paragraphs = [
            f"مرحباً {name}،",
            f"تم قبول طلبك المجاني رقم {order_number}.",
            f"روابط التحميل صالحة حتى {context.get('download_expiry', '')}.",
        ]
        return {
            "subject": f"تم قبول الطلب المجاني - {order_number}",
            "body": "\n".join(paragraphs) + "\n\n" + link_lines(links),
            "html_body": wrap(f"تم قبول الطلب المجاني - {order_number}", paragraphs, links),
        }
