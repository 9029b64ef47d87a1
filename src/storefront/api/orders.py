"""FastAPI routes for customers — placing, viewing and completing orders."""

import json

from fastapi import APIRouter, Depends
from protean.utils.globals import current_domain

from storefront.access.download import Requester
from storefront.access.errors import AccessDenied
from storefront.api.dependencies import current_requester
from storefront.api.schemas import (
    HistoryView,
    OrderCreatedResponse,
    OrderItemView,
    OrderView,
    PlaceOrderRequest,
    StatusResponse,
)
from storefront.order.creation import PlaceOrder
from storefront.order.free_completion import CompleteFreeOrder
from storefront.order.order import Order
from storefront.payments.reconciliation import load_order

order_router = APIRouter(prefix="/orders", tags=["orders"])


def owned_order(order_id: str, requester: Requester) -> Order:
    """Load an order the requester may see: their own, or any for admins."""
    order = load_order(order_id)
    if not requester.is_admin and str(order.customer_id) != str(requester.user_id):
        raise AccessDenied(f"Order {order.order_number} belongs to another customer")
    return order


def order_view(order: Order) -> OrderView:
    return OrderView(
        id=str(order.id),
        order_number=order.order_number,
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        order_status=order.order_status,
        payment_status=order.payment_status,
        customization_status=order.customization_status,
        subtotal=order.subtotal,
        total_promo_discount=order.total_promo_discount,
        total_price=order.total_price,
        currency=order.currency,
        download_expiry=order.download_expiry,
        requires_review=bool(order.requires_review),
        items=[
            OrderItemView(
                id=str(i.id),
                product_id=str(i.product_id),
                product_name=i.product_name,
                product_slug=i.product_slug,
                quantity=i.quantity,
                unit_price=i.unit_price,
                total_price=i.total_price,
                has_customizations=bool(i.has_customizations),
                delivery_status=i.delivery_status,
                delivered_at=i.delivered_at,
            )
            for i in order.ordered_items()
        ],
        history=[
            HistoryView(status=h.status, timestamp=h.timestamp, note=h.note, changed_by=h.changed_by)
            for h in order.timeline()
        ],
    )


@order_router.post("", status_code=201, response_model=OrderCreatedResponse)
def place_order(
    body: PlaceOrderRequest,
    requester: Requester = Depends(current_requester),
) -> OrderCreatedResponse:
    items = []
    for item in body.items:
        data = item.model_dump(exclude={"customizations"})
        data["customizations"] = item.customizations.model_dump() if item.customizations else None
        items.append(data)

    command = PlaceOrder(
        customer_id=requester.user_id,
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        customer_phone=body.customer_phone,
        customer_address=json.dumps(body.customer_address.model_dump()) if body.customer_address else None,
        customer_notes=body.customer_notes,
        items=json.dumps(items, ensure_ascii=False),
        subtotal=body.subtotal,
        total_promo_discount=body.total_promo_discount,
        total_price=body.total_price,
        currency=body.currency.upper(),
        applied_promo_codes=json.dumps(body.applied_promo_codes) if body.applied_promo_codes else None,
    )
    order_id = current_domain.process(command, asynchronous=False)
    order = current_domain.repository_for(Order).get(order_id)
    return OrderCreatedResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        order_status=order.order_status,
        payment_status=order.payment_status,
    )


@order_router.get("/{order_id}", response_model=OrderView)
def get_order(order_id: str, requester: Requester = Depends(current_requester)) -> OrderView:
    """Look an order up by id or order number."""
    return order_view(owned_order(order_id, requester))


@order_router.post("/{order_id}/complete-free", response_model=StatusResponse)
def complete_free_order(order_id: str, requester: Requester = Depends(current_requester)) -> StatusResponse:
    order = owned_order(order_id, requester)
    status = current_domain.process(
        CompleteFreeOrder(order_id=str(order.id), requested_by=requester.email or requester.user_id),
        asynchronous=False,
    )
    return StatusResponse(status=status)
