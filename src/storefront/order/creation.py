"""Order placement — command and handler.

Checkout submits a cart snapshot. The handler fills in the product's
customization capability where the cart did not carry it, checks the
applied promo codes, allocates an order number and stores the order.
Zero-total orders skip payment and go straight through delivery.
"""

import json

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.fulfillment.customization import Customizations
from storefront.fulfillment.pipeline import deliver_order
from storefront.order.numbering import generate_order_number
from storefront.order.order import Order
from storefront.promotions.validation import record_usage, validate_promo_code

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Order")
class PlaceOrder:
    customer_id = Identifier(required=True)
    customer_name = String(required=True, max_length=255)
    customer_email = String(required=True, max_length=255)
    customer_phone = String(max_length=50)
    customer_address = Text()  # JSON: {address, city, country, zip_code}
    items = Text(required=True)  # JSON: list of canonical item dicts
    subtotal = Float(required=True)
    total_promo_discount = Float(default=0.0)
    total_price = Float(required=True)
    currency = String(max_length=3, default="USD")
    applied_promo_codes = Text()  # JSON list of codes
    customer_notes = Text()


def _enable_customizations(item: dict) -> bool:
    if item.get("enable_customizations") is not None:
        return bool(item["enable_customizations"])
    try:
        product = current_domain.repository_for(Product).get(item["product_id"])
    except ObjectNotFoundError:
        return False
    return bool(product.enable_customizations)


def _items_data(raw_items: list[dict]) -> list[dict]:
    items = []
    for item in raw_items:
        items.append(
            {
                "product_id": item["product_id"],
                "product_name": item["product_name"],
                "product_slug": item["product_slug"],
                "quantity": item["quantity"],
                "original_price": item["original_price"],
                "discount_amount": item.get("discount_amount") or 0.0,
                "unit_price": item["unit_price"],
                "total_price": item["total_price"],
                "promo_code": (item.get("promo_code") or "").upper() or None,
                "promo_discount": item.get("promo_discount") or 0.0,
                "has_customizations": bool(item.get("has_customizations")),
                "enable_customizations": _enable_customizations(item),
                "customizations": Customizations.from_dict(item.get("customizations")),
            }
        )
    return items


def _check_promo_codes(codes: list[str], items: list[dict], subtotal: float, customer_id: str) -> None:
    cart = [{"product_id": i["product_id"], "quantity": i["quantity"]} for i in items]
    for code in codes:
        verdict = validate_promo_code(code, cart, order_amount=subtotal, user_id=customer_id)
        if not verdict.valid:
            raise ValidationError({"applied_promo_codes": [verdict.reason]})


@storefront.command_handler(part_of=Order)
class PlaceOrderHandler:
    @handle(PlaceOrder)
    def place_order(self, command):
        raw_items = json.loads(command.items) if isinstance(command.items, str) else command.items
        items_data = _items_data(raw_items)
        codes = json.loads(command.applied_promo_codes) if command.applied_promo_codes else []
        if codes:
            _check_promo_codes(codes, items_data, command.subtotal, command.customer_id)

        order = Order.create(
            order_number=generate_order_number(),
            customer_id=command.customer_id,
            customer_name=command.customer_name,
            customer_email=command.customer_email,
            items_data=items_data,
            subtotal=command.subtotal,
            total_promo_discount=command.total_promo_discount or 0.0,
            total_price=command.total_price,
            applied_promo_codes=codes,
            customer_phone=command.customer_phone,
            customer_address=json.loads(command.customer_address) if command.customer_address else None,
            customer_notes=command.customer_notes,
            currency=command.currency or "USD",
        )
        if codes:
            record_usage(order, order.total_promo_discount)

        logger.info(
            "Order placed",
            order_number=order.order_number,
            total_price=order.total_price,
            item_count=len(items_data),
        )

        if order.is_free:
            order.mark_free()
            deliver_order(order)
        else:
            current_domain.repository_for(Order).add(order)
        return str(order.id)
