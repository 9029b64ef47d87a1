"""Tests for the PromoCode aggregate — discounts, applicability and limits."""

from datetime import UTC, datetime, timedelta

import pytest
from protean.exceptions import ValidationError
from storefront.promotions.promo_code import (
    REASON_EXPIRED,
    REASON_INACTIVE,
    REASON_NOT_APPLICABLE,
    REASON_NOT_STARTED,
    REASON_USAGE_LIMIT,
    REASON_USER_LIMIT,
    PromoCode,
)

CART = [{"product_id": "prod-1", "quantity": 2}, {"product_id": "prod-2", "quantity": 1}]


def _code(**settings):
    settings.setdefault("product_ids", ["prod-1"])
    return PromoCode.create(
        code=settings.pop("code", " ramadan "),
        discount_type=settings.pop("discount_type", "percentage"),
        discount_value=settings.pop("discount_value", 10.0),
        **settings,
    )


class TestCreation:
    def test_code_is_normalized(self):
        assert _code().code == "RAMADAN"

    def test_percentage_over_hundred_rejected(self):
        with pytest.raises(ValidationError):
            _code(discount_value=120.0)

    def test_must_target_products(self):
        with pytest.raises(ValidationError):
            _code(product_ids=None)

    def test_all_products_needs_no_list(self):
        assert _code(product_ids=None, apply_to_all_products=True).applies_to("anything")

    def test_end_date_after_start(self):
        now = datetime.now(UTC)
        with pytest.raises(ValidationError):
            _code(start_date=now, end_date=now - timedelta(days=1))


class TestDiscount:
    def test_percentage_discount(self):
        assert _code().calculate_discount(80.0) == 8.0

    def test_percentage_capped_by_max(self):
        assert _code(discount_value=50.0, max_discount_amount=15.0).calculate_discount(100.0) == 15.0

    def test_fixed_amount_applies_per_qualifying_item(self):
        promo = _code(discount_type="fixed_amount", discount_value=5.0)
        assert promo.calculate_discount(40.0, qualifying_quantity=2) == 10.0

    def test_discount_never_exceeds_amount(self):
        promo = _code(discount_type="fixed_amount", discount_value=50.0)
        assert promo.calculate_discount(20.0) == 20.0

    def test_below_minimum_gives_nothing(self):
        assert _code(minimum_order_amount=50.0).calculate_discount(30.0) == 0.0


class TestEvaluate:
    def test_valid_code(self):
        verdict = _code().evaluate(CART, order_amount=60.0)
        assert verdict.valid
        assert verdict.qualifying_quantity == 2
        assert verdict.discount_amount == 6.0

    def test_not_applicable_to_cart(self):
        verdict = _code(product_ids=["prod-9"]).evaluate(CART)
        assert not verdict.valid
        assert verdict.reason == REASON_NOT_APPLICABLE

    @pytest.mark.parametrize(
        "settings, reason",
        [
            ({"is_active": False}, REASON_INACTIVE),
            ({"start_date": datetime.now(UTC) + timedelta(days=2)}, REASON_NOT_STARTED),
            ({"end_date": datetime.now(UTC) - timedelta(days=2), "start_date": datetime.now(UTC) - timedelta(days=9)}, REASON_EXPIRED),
            ({"usage_limit": 3, "usage_count": 3}, REASON_USAGE_LIMIT),
        ],
        ids=["inactive", "not-started", "expired", "used-up"],
    )
    def test_unavailable_codes(self, settings, reason):
        verdict = _code(**settings).evaluate(CART)
        assert not verdict.valid
        assert verdict.reason == reason

    def test_per_customer_limit(self):
        verdict = _code(user_usage_limit=1).evaluate(CART, times_used_by_user=1)
        assert verdict.reason == REASON_USER_LIMIT

    def test_minimum_order_amount(self):
        verdict = _code(minimum_order_amount=100.0).evaluate(CART, order_amount=60.0)
        assert not verdict.valid
        assert "100" in verdict.reason
