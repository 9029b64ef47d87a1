"""Tests for notification templates."""

import pytest
from storefront.notifications.templates import TEMPLATE_REGISTRY, get_template
from storefront.notifications.types import NotificationType

LINKS = [
    {"design_file_id": "f-1", "file_name": "overlay.zip", "url": "https://designs.test/design-files/f-1/download"},
]


class TestRegistry:
    def test_every_notification_type_has_a_template(self):
        assert set(TEMPLATE_REGISTRY) == {t.value for t in NotificationType}

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            get_template("newsletter")


class TestEmailTemplates:
    def test_order_completed_lists_links_and_expiry(self):
        content = get_template(NotificationType.ORDER_COMPLETED.value).render(
            {
                "order_number": "PD-2026-001",
                "customer_name": "Sara",
                "download_links": LINKS,
                "download_expiry": "2026-11-18",
            }
        )
        assert content["subject"] == "تم إكمال الطلب - PD-2026-001"
        assert "https://designs.test/design-files/f-1/download" in content["body"]
        assert "2026-11-18" in content["body"]
        assert 'dir="rtl"' in content["html_body"]

    def test_free_order_subject(self):
        content = get_template(NotificationType.FREE_ORDER_COMPLETED.value).render(
            {"order_number": "PD-2026-002", "customer_name": "Sara", "download_links": LINKS}
        )
        assert content["subject"] == "تم قبول الطلب المجاني - PD-2026-002"

    def test_cancellation_mentions_reason_and_refund(self):
        content = get_template(NotificationType.ORDER_CANCELLED.value).render(
            {"order_number": "PD-2026-003", "customer_name": "Sara", "reason": "طلب مكرر", "refunded": True}
        )
        assert "طلب مكرر" in content["body"]
        assert "تم استرداد المبلغ" in content["body"]

    def test_custom_work_pending_lists_items(self):
        content = get_template(NotificationType.CUSTOM_WORK_PENDING.value).render(
            {"order_number": "PD-2026-004", "customer_name": "Sara", "item_names": ["Neon Overlay"]}
        )
        assert content["subject"] == "طلبك قيد التخصيص - PD-2026-004"
        assert "Neon Overlay" in content["body"]


class TestChatTemplate:
    def test_paid_order_embed(self):
        content = get_template(NotificationType.NEW_PAID_ORDER.value).render(
            {
                "order_number": "PD-2026-005",
                "customer_name": "Sara",
                "customer_email": "sara@example.com",
                "amount": 25.0,
                "currency": "USD",
                "order_status": "completed",
                "has_customizations": False,
                "payment_method": "PayPal",
                "items": [{"product_name": "Neon Overlay", "quantity": 1, "total_price": 25.0}],
                "paid_at": "2026-10-19T10:00:00+00:00",
            }
        )
        embed = content["payload"]["embeds"][0]
        assert embed["color"] == 0x00FF00
        assert "PD-2026-005" in embed["description"]
        values = [f["value"] for f in embed["fields"]]
        assert "$25.00 USD" in values
        assert "✅ مكتمل" in values
        assert any("Neon Overlay (1x)" in v for v in values)
