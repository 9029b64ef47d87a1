"""PromoCode aggregate — a discount rule with usage counters and a validity window.

Orders keep only the code string, so editing or deactivating a promo code
never changes the totals of orders already placed.
"""

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from storefront.domain import storefront
from storefront.utils.dates import as_utc


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


REASON_NOT_FOUND = "كود الخصم غير موجود"
REASON_NOT_APPLICABLE = "كود الخصم لا ينطبق على المنتجات في السلة"
REASON_INACTIVE = "كود الخصم غير مفعل"
REASON_NOT_STARTED = "كود الخصم لم يبدأ بعد"
REASON_EXPIRED = "انتهت صلاحية كود الخصم"
REASON_USAGE_LIMIT = "تم الوصول إلى الحد الأقصى لاستخدام كود الخصم"
REASON_USER_LIMIT = "لقد استخدمت كود الخصم هذا من قبل"
REASON_MINIMUM = "الحد الأدنى لقيمة الطلب هو {amount}$"


@dataclass(frozen=True)
class PromoVerdict:
    valid: bool
    code: str
    reason: str | None = None
    discount_amount: float = 0.0
    qualifying_quantity: int = 0


@storefront.aggregate
class PromoCode:
    code: String(required=True, max_length=50, unique=True)
    description: String(max_length=500)
    product_ids: Text()  # JSON list of product ids
    apply_to_all_products: Boolean(default=False)
    discount_type: String(required=True, choices=DiscountType)
    discount_value: Float(required=True, min_value=0.0)
    max_discount_amount: Float(min_value=0.0)
    usage_limit: Integer(min_value=1)
    usage_count: Integer(default=0, min_value=0)
    user_usage_limit: Integer(default=1, min_value=1)
    minimum_order_amount: Float(min_value=0.0)
    start_date: DateTime()
    end_date: DateTime()
    is_active: Boolean(default=True)
    created_by: Identifier()
    created_at: DateTime()

    @invariant.post
    def percentage_cannot_exceed_hundred(self):
        if self.discount_type == DiscountType.PERCENTAGE.value and (self.discount_value or 0) > 100:
            raise ValidationError({"discount_value": ["Percentage discount cannot exceed 100"]})

    @invariant.post
    def end_date_after_start_date(self):
        if self.start_date and self.end_date and as_utc(self.end_date) <= as_utc(self.start_date):
            raise ValidationError({"end_date": ["End date must be after start date"]})

    @invariant.post
    def must_target_products(self):
        if not self.apply_to_all_products and not self.scoped_product_ids():
            raise ValidationError({"product_ids": ["Select products or apply the code to all products"]})

    @classmethod
    def create(cls, code, discount_type, discount_value, product_ids=None, **settings):
        return cls(
            code=code.strip().upper(),
            discount_type=discount_type,
            discount_value=discount_value,
            product_ids=json.dumps(list(product_ids)) if product_ids else None,
            created_at=datetime.now(UTC),
            **settings,
        )

    def scoped_product_ids(self) -> list[str]:
        return json.loads(self.product_ids) if self.product_ids else []

    def applies_to(self, product_id: str) -> bool:
        return bool(self.apply_to_all_products) or str(product_id) in self.scoped_product_ids()

    def qualifying_quantity(self, cart_items: list[dict]) -> int:
        """Total quantity of cart lines this code applies to."""
        return sum(int(i.get("quantity") or 1) for i in cart_items if self.applies_to(i["product_id"]))

    def availability_problem(self, now: datetime | None = None) -> str | None:
        now = now or datetime.now(UTC)
        if not self.is_active:
            return REASON_INACTIVE
        if self.start_date and as_utc(self.start_date) > now:
            return REASON_NOT_STARTED
        if self.end_date and as_utc(self.end_date) < now:
            return REASON_EXPIRED
        if self.usage_limit and (self.usage_count or 0) >= self.usage_limit:
            return REASON_USAGE_LIMIT
        return None

    def calculate_discount(self, order_amount: float, qualifying_quantity: int = 1) -> float:
        """Discount for ``order_amount``, never more than the amount itself."""
        if order_amount <= 0 or qualifying_quantity <= 0:
            return 0.0
        if self.minimum_order_amount and order_amount < self.minimum_order_amount:
            return 0.0

        if self.discount_type == DiscountType.PERCENTAGE.value:
            discount = order_amount * (self.discount_value / 100)
        else:
            # Fixed amounts apply per qualifying item
            discount = self.discount_value * qualifying_quantity

        if self.max_discount_amount and discount > self.max_discount_amount:
            discount = self.max_discount_amount
        return round(min(discount, order_amount), 2)

    def evaluate(
        self,
        cart_items: list[dict],
        order_amount: float | None = None,
        times_used_by_user: int = 0,
        now: datetime | None = None,
    ) -> PromoVerdict:
        quantity = self.qualifying_quantity(cart_items)
        if quantity == 0:
            return PromoVerdict(valid=False, code=self.code, reason=REASON_NOT_APPLICABLE)

        problem = self.availability_problem(now)
        if problem:
            return PromoVerdict(valid=False, code=self.code, reason=problem)
        if self.user_usage_limit and times_used_by_user >= self.user_usage_limit:
            return PromoVerdict(valid=False, code=self.code, reason=REASON_USER_LIMIT)
        if order_amount is not None and self.minimum_order_amount and order_amount < self.minimum_order_amount:
            return PromoVerdict(
                valid=False,
                code=self.code,
                reason=REASON_MINIMUM.format(amount=self.minimum_order_amount),
            )

        discount = self.calculate_discount(order_amount, quantity) if order_amount is not None else 0.0
        return PromoVerdict(valid=True, code=self.code, discount_amount=discount, qualifying_quantity=quantity)

    def increment_usage(self) -> None:
        self.usage_count = (self.usage_count or 0) + 1

    def deactivate(self) -> None:
        self.is_active = False


@storefront.aggregate
class PromoCodeUsage:
    """One use of a promo code by a customer on an order."""

    user_id: Identifier(required=True)
    promo_code_id: Identifier(required=True)
    promo_code: String(required=True, max_length=50)
    order_id: Identifier(required=True)
    order_number: String(max_length=30)
    discount_amount: Float(default=0.0, min_value=0.0)
    order_total: Float(default=0.0, min_value=0.0)
    used_at: DateTime()
    is_active: Boolean(default=True)
