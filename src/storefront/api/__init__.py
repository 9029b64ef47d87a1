"""Storefront HTTP API package."""

from storefront.api.admin import admin_router
from storefront.api.catalogue import category_router, product_router, promo_router, review_router
from storefront.api.files import design_file_router, signed_file_router
from storefront.api.orders import order_router
from storefront.api.payments import payment_router

__all__ = [
    "admin_router",
    "category_router",
    "design_file_router",
    "order_router",
    "payment_router",
    "product_router",
    "promo_router",
    "review_router",
    "signed_file_router",
]
