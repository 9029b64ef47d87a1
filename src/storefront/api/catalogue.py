"""FastAPI routes for the public storefront — products, categories, promo codes, reviews."""

from fastapi import APIRouter, Depends, Query
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from storefront.access.download import Requester
from storefront.api.dependencies import current_requester, optional_requester
from storefront.api.schemas import (
    CategoryView,
    IdResponse,
    ProductListResponse,
    ProductView,
    PromoVerdictResponse,
    ReviewView,
    SubmitReviewRequest,
    ValidatePromoRequest,
)
from storefront.catalogue.category import Category
from storefront.catalogue.product import Product
from storefront.promotions.validation import validate_promo_code
from storefront.reviews.moderation import SubmitReview, approved_reviews

product_router = APIRouter(prefix="/products", tags=["catalogue"])
category_router = APIRouter(prefix="/categories", tags=["catalogue"])
promo_router = APIRouter(prefix="/promo-codes", tags=["promotions"])
review_router = APIRouter(prefix="/reviews", tags=["reviews"])


def product_view(product: Product) -> ProductView:
    return ProductView(
        id=str(product.id),
        name=product.name,
        slug=product.slug,
        description=product.description,
        category_id=str(product.category_id) if product.category_id else None,
        price=product.price,
        final_price=product.final_price if product.final_price is not None else product.compute_final_price(),
        enable_customizations=bool(product.enable_customizations),
        colors=product.color_themes(),
        is_featured=bool(product.is_featured),
        purchase_count=product.purchase_count or 0,
    )


@product_router.get("", response_model=ProductListResponse)
async def list_products(
    category: str | None = Query(default=None, description="Category slug"),
    featured: bool | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
) -> ProductListResponse:
    filters = {"is_active": True}
    if category:
        found = current_domain.repository_for(Category)._dao.query.filter(slug=category).all().items
        if not found:
            return ProductListResponse(items=[], total=0, page=page, limit=limit)
        filters["category_id"] = str(found[0].id)
    if featured is not None:
        filters["is_featured"] = featured

    products = current_domain.repository_for(Product)._dao.query.filter(**filters).all().items
    products = sorted(products, key=lambda p: p.created_at, reverse=True)
    start = (page - 1) * limit
    return ProductListResponse(
        items=[product_view(p) for p in products[start : start + limit]],
        total=len(products),
        page=page,
        limit=limit,
    )


@product_router.get("/{slug}", response_model=ProductView)
async def get_product(slug: str) -> ProductView:
    found = current_domain.repository_for(Product)._dao.query.filter(slug=slug, is_active=True).all().items
    if not found:
        raise ObjectNotFoundError(f"Product {slug} not found")
    return product_view(found[0])


@category_router.get("", response_model=list[CategoryView])
async def list_categories() -> list[CategoryView]:
    categories = current_domain.repository_for(Category)._dao.query.filter(is_active=True).all().items
    return [
        CategoryView(
            id=str(c.id),
            name=c.name,
            slug=c.slug,
            description=c.description,
            display_order=c.display_order or 0,
        )
        for c in sorted(categories, key=lambda c: (c.display_order or 0, c.name))
    ]


@promo_router.post("/validate", response_model=PromoVerdictResponse)
async def validate_promo(
    body: ValidatePromoRequest,
    requester: Requester | None = Depends(optional_requester),
) -> PromoVerdictResponse:
    """Preview a promo code against the cart; invalid codes answer 200 with a reason."""
    verdict = validate_promo_code(
        body.code,
        [{"product_id": line.product_id, "quantity": line.quantity} for line in body.cart_items],
        order_amount=body.order_amount,
        user_id=requester.user_id if requester else None,
    )
    return PromoVerdictResponse(
        valid=verdict.valid,
        code=verdict.code,
        message=verdict.reason,
        discount_amount=verdict.discount_amount,
    )


@review_router.get("", response_model=list[ReviewView])
async def list_reviews() -> list[ReviewView]:
    return [
        ReviewView(id=str(r.id), name=r.name, rating=r.rating, text=r.text, avatar=r.avatar)
        for r in approved_reviews()
    ]


@review_router.post("", status_code=201, response_model=IdResponse)
async def submit_review(
    body: SubmitReviewRequest,
    requester: Requester = Depends(current_requester),
) -> IdResponse:
    review_id = current_domain.process(
        SubmitReview(
            name=body.name,
            rating=body.rating,
            text=body.text,
            avatar=body.avatar,
            user_id=requester.user_id,
            order_id=body.order_id,
        ),
        asynchronous=False,
    )
    return IdResponse(id=review_id)
