"""Application tests for zero-total orders."""

import pytest
from protean import current_domain
from protean.exceptions import ValidationError
from storefront.access.order_design_file import grants_for_order
from storefront.order.free_completion import CompleteFreeOrder
from storefront.order.order import OrderStatus, PaymentStatus
from storefront.promotions.promo_code import PromoCode


class TestFreeOrder:
    def test_free_order_completes_at_checkout(self, make_product, make_design_file, line, place_order, mailbox):
        product = make_product(price=0.0)
        make_design_file(product)

        order = place_order([line(product)])

        assert order.payment_status == PaymentStatus.FREE.value
        assert order.order_status == OrderStatus.COMPLETED.value
        assert len(grants_for_order(order.id)) == 1
        assert mailbox.sent_emails[-1]["subject"] == f"تم قبول الطلب المجاني - {order.order_number}"

    def test_fully_discounted_order_is_free(self, make_product, make_design_file, line, place_order):
        product = make_product(price=10.0)
        make_design_file(product)
        current_domain.repository_for(PromoCode).add(
            PromoCode.create(code="GIFT", discount_type="percentage", discount_value=100.0, product_ids=[str(product.id)])
        )

        order = place_order([line(product)], discount=10.0, promo_codes=["GIFT"])

        assert order.total_price == 0.0
        assert order.order_status == OrderStatus.COMPLETED.value

    def test_complete_free_is_idempotent(self, make_product, make_design_file, line, place_order):
        product = make_product(price=0.0)
        make_design_file(product)
        order = place_order([line(product)])

        status = current_domain.process(CompleteFreeOrder(order_id=str(order.id)), asynchronous=False)

        assert status == OrderStatus.COMPLETED.value
        assert len(grants_for_order(order.id)) == 1

    def test_free_custom_order_waits_for_designer(self, make_product, line, place_order):
        product = make_product(price=0.0, enable_customizations=True)
        order = place_order([line(product, has_customizations=True)])

        status = current_domain.process(CompleteFreeOrder(order_id=str(order.id)), asynchronous=False)

        assert status == OrderStatus.PROCESSING.value
        assert order.payment_status == PaymentStatus.FREE.value

    def test_paid_order_cannot_be_completed_for_free(self, make_product, line, place_order):
        order = place_order([line(make_product(price=15.0))])
        with pytest.raises(ValidationError):
            current_domain.process(CompleteFreeOrder(order_id=str(order.id)), asynchronous=False)
