import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from storefront.api import (
    admin_router,
    category_router,
    design_file_router,
    order_router,
    payment_router,
    product_router,
    promo_router,
    review_router,
    signed_file_router,
)
from storefront.api.errors import register_exception_handlers


@pytest.fixture()
def client():
    app = FastAPI()
    for router in (
        order_router,
        payment_router,
        design_file_router,
        signed_file_router,
        product_router,
        category_router,
        promo_router,
        review_router,
        admin_router,
    ):
        app.include_router(router)
    register_exception_handlers(app)
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture()
def order_payload():
    """Checkout body for one line of ``product``, as the storefront cart submits it."""

    def _payload(product, quantity=1, **overrides):
        total = round(product.price * quantity, 2)
        payload = {
            "customerName": "Sara",
            "customerEmail": "sara@example.com",
            "items": [
                {
                    "productId": str(product.id),
                    "productName": product.name,
                    "productSlug": product.slug,
                    "quantity": quantity,
                    "originalPrice": product.price,
                    "unitPrice": product.price,
                    "totalPrice": total,
                }
            ],
            "subtotal": total,
            "totalPrice": total,
        }
        payload.update(overrides)
        return payload

    return _payload
