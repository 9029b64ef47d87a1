"""Promo code administration — commands and handlers."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront.domain import storefront
from storefront.promotions.promo_code import PromoCode


@storefront.command(part_of="PromoCode")
class CreatePromoCode:
    code: String(required=True, max_length=50)
    description: String(max_length=500)
    discount_type: String(required=True)
    discount_value: Float(required=True)
    product_ids: Text()  # JSON list
    apply_to_all_products: Boolean(default=False)
    max_discount_amount: Float()
    usage_limit: Integer()
    user_usage_limit: Integer(default=1)
    minimum_order_amount: Float()
    start_date: DateTime()
    end_date: DateTime()
    created_by: Identifier()


@storefront.command(part_of="PromoCode")
class DeactivatePromoCode:
    promo_code_id: Identifier(required=True)


@storefront.command_handler(part_of=PromoCode)
class ManagePromoCodeHandler:
    @handle(CreatePromoCode)
    def create_promo_code(self, command):
        repo = current_domain.repository_for(PromoCode)
        code = command.code.strip().upper()
        if repo._dao.query.filter(code=code).all().items:
            raise ValidationError({"code": ["Promo code already exists"]})

        promo = PromoCode.create(
            code=code,
            discount_type=command.discount_type,
            discount_value=command.discount_value,
            product_ids=json.loads(command.product_ids) if command.product_ids else None,
            description=command.description,
            apply_to_all_products=bool(command.apply_to_all_products),
            max_discount_amount=command.max_discount_amount,
            usage_limit=command.usage_limit,
            user_usage_limit=command.user_usage_limit or 1,
            minimum_order_amount=command.minimum_order_amount,
            start_date=command.start_date,
            end_date=command.end_date,
            created_by=command.created_by,
        )
        repo.add(promo)
        return str(promo.id)

    @handle(DeactivatePromoCode)
    def deactivate_promo_code(self, command):
        repo = current_domain.repository_for(PromoCode)
        promo = repo.get(command.promo_code_id)
        promo.deactivate()
        repo.add(promo)
