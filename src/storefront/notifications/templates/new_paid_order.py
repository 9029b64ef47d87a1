"""New paid order — staff chat embed."""

from storefront.notifications.types import NotificationChannel, NotificationType

PAID_ORDER_COLOR = 0x00FF00
FOOTER = "Prestige Designs - نظام إدارة الطلبات"

_STATUS_LABELS = {
    "processing": "🔄 قيد المعالجة",
    "completed": "✅ مكتمل",
}


class NewPaidOrderTemplate:
    notification_type = NotificationType.NEW_PAID_ORDER.value
    default_channels = [NotificationChannel.CHAT.value]

    @staticmethod
    def render(context: dict) -> dict:
        order_number = context["order_number"]
        items = "\n".join(
            f"• {i['product_name'] or 'منتج غير محدد'} ({i['quantity']}x) - ${i['total_price']:.2f}"
            for i in context.get("items", [])
        )
        embed = {
            "title": "💰 طلب مدفوع جديد",
            "description": f"تم تأكيد طلب جديد برقم: **{order_number}**",
            "color": PAID_ORDER_COLOR,
            "fields": [
                {
                    "name": "👤 العميل",
                    "value": f"**{context['customer_name']}**\n{context['customer_email']}",
                    "inline": True,
                },
                {
                    "name": "💳 المبلغ المدفوع",
                    "value": f"${context['amount']:.2f} {context['currency']}",
                    "inline": True,
                },
                {
                    "name": "📦 حالة الطلب",
                    "value": _STATUS_LABELS.get(context["order_status"], context["order_status"]),
                    "inline": True,
                },
                {"name": "🛍️ المنتجات", "value": items or "لا توجد تفاصيل", "inline": False},
                {
                    "name": "🎨 تخصيصات",
                    "value": "✅ يحتاج تخصيصات" if context.get("has_customizations") else "❌ جاهز للتسليم",
                    "inline": True,
                },
                {"name": "💳 طريقة الدفع", "value": context.get("payment_method") or "PayPal", "inline": True},
            ],
            "timestamp": context["paid_at"],
            "footer": {"text": FOOTER},
        }
        return {
            "subject": embed["title"],
            "body": embed["description"],
            "payload": {"embeds": [embed]},
        }
