"""Order cancellation template — sent when an order is cancelled."""

from storefront.notifications.templates._html import wrap
from storefront.notifications.types import NotificationChannel, NotificationType


class OrderCancelledTemplate:
    notification_type = NotificationType.ORDER_CANCELLED.value
    default_channels = [NotificationChannel.EMAIL.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context["order_number"]
        name = context.get("customer_name") or "عميلنا العزيز"
        paragraphs = [f"مرحباً {name}،", f"تم إلغاء طلبك رقم {order_number}."]
        if context.get("reason"):
            paragraphs.append(f"السبب: {context['reason']}")
        if context.get("refunded"):
            paragraphs.append("تم استرداد المبلغ إلى وسيلة الدفع الخاصة بك.")
        paragraphs.append("للاستفسار يرجى التواصل مع فريق الدعم.")
        return {
            "subject": f"تم إلغاء الطلب - {order_number}",
            "body": "\n".join(paragraphs),
            "html_body": wrap(f"تم إلغاء الطلب - {order_number}", paragraphs),
        }
