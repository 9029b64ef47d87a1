"""FastAPI routes for staff — order handling and catalogue administration.

Every route requires the ``admin`` role.
"""

import json

import structlog
from fastapi import APIRouter, Depends, File, Form, UploadFile
from protean.utils.globals import current_domain

from storefront.access.download import Requester
from storefront.api.dependencies import admin_requester
from storefront.api.orders import order_view
from storefront.api.schemas import (
    AddCategoryRequest,
    AddProductRequest,
    AdminNoteRequest,
    CancelOrderRequest,
    CompleteOrderRequest,
    CreatePromoCodeRequest,
    IdResponse,
    ModerateReviewRequest,
    OrderView,
    RefundOrderRequest,
    RegisterDesignFileRequest,
    StatusResponse,
    UpdateProductRequest,
)
from storefront.catalogue.management import (
    AddCategory,
    AddProduct,
    AttachOrderFile,
    DeactivateDesignFile,
    RegisterDesignFile,
    UpdateProduct,
)
from storefront.order.cancellation import CancelOrder, RefundOrder
from storefront.order.completion import CompleteOrder, StartCustomization
from storefront.order.resend import AddAdminNote, ResendCompletionEmail
from storefront.payments.reconciliation import load_order
from storefront.promotions.management import CreatePromoCode, DeactivatePromoCode
from storefront.reviews.moderation import ApproveReview, RejectReview
from storefront.storage import get_storage
from storefront.storage.paths import build_order_file_path

logger = structlog.get_logger(__name__)

admin_router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(admin_requester)])


def _actor(requester: Requester) -> str:
    return requester.email or requester.user_id


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
@admin_router.get("/orders/{order_id}", response_model=OrderView)
def get_order(order_id: str) -> OrderView:
    return order_view(load_order(order_id))


@admin_router.post("/orders/{order_id}/start-customization", response_model=StatusResponse)
def start_customization(order_id: str, requester: Requester = Depends(admin_requester)) -> StatusResponse:
    order = load_order(order_id)
    current_domain.process(
        StartCustomization(order_id=str(order.id), started_by=_actor(requester)),
        asynchronous=False,
    )
    return StatusResponse()


@admin_router.post("/orders/{order_id}/complete", response_model=StatusResponse)
def complete_order(
    order_id: str,
    body: CompleteOrderRequest | None = None,
    requester: Requester = Depends(admin_requester),
) -> StatusResponse:
    order = load_order(order_id)
    completed = current_domain.process(
        CompleteOrder(
            order_id=str(order.id),
            completed_by=_actor(requester),
            note=body.note if body else None,
        ),
        asynchronous=False,
    )
    return StatusResponse(status="completed" if completed else "unchanged")


@admin_router.post("/orders/{order_id}/cancel", response_model=StatusResponse)
def cancel_order(
    order_id: str,
    body: CancelOrderRequest,
    requester: Requester = Depends(admin_requester),
) -> StatusResponse:
    order = load_order(order_id)
    cancelled = current_domain.process(
        CancelOrder(order_id=str(order.id), reason=body.reason, cancelled_by=_actor(requester)),
        asynchronous=False,
    )
    return StatusResponse(status="cancelled" if cancelled else "unchanged")


@admin_router.post("/orders/{order_id}/refund", response_model=StatusResponse)
def refund_order(
    order_id: str,
    body: RefundOrderRequest | None = None,
    requester: Requester = Depends(admin_requester),
) -> StatusResponse:
    order = load_order(order_id)
    refunded = current_domain.process(
        RefundOrder(
            order_id=str(order.id),
            reason=body.reason if body else None,
            refunded_by=_actor(requester),
        ),
        asynchronous=False,
    )
    return StatusResponse(status="refunded" if refunded else "refund_failed")


@admin_router.post("/orders/{order_id}/send-email", response_model=StatusResponse)
def resend_completion_email(order_id: str, requester: Requester = Depends(admin_requester)) -> StatusResponse:
    order = load_order(order_id)
    current_domain.process(
        ResendCompletionEmail(order_id=str(order.id), requested_by=_actor(requester)),
        asynchronous=False,
    )
    return StatusResponse()


@admin_router.post("/orders/{order_id}/notes", response_model=StatusResponse)
def add_note(
    order_id: str,
    body: AdminNoteRequest,
    requester: Requester = Depends(admin_requester),
) -> StatusResponse:
    order = load_order(order_id)
    current_domain.process(
        AddAdminNote(order_id=str(order.id), note=body.note, added_by=_actor(requester)),
        asynchronous=False,
    )
    return StatusResponse()


@admin_router.post("/orders/{order_id}/files", status_code=201, response_model=IdResponse)
def upload_order_file(
    order_id: str,
    file: UploadFile = File(...),
    product_id: str = Form(..., alias="productId"),
    color_name: str | None = Form(default=None, alias="colorName"),
) -> IdResponse:
    """Store a designer's bespoke file and grant it to the order."""
    order = load_order(order_id)
    item = next((i for i in order.items if str(i.product_id) == product_id), None)
    product_slug = item.product_slug if item else product_id

    data = file.file.read()
    path = build_order_file_path(order.order_number, product_slug, file.filename or "file", color_name)
    url = get_storage().save(path, data, file.content_type)
    logger.info("Custom file uploaded", order_number=order.order_number, path=path, size=len(data))

    design_file_id = current_domain.process(
        AttachOrderFile(
            order_id=str(order.id),
            product_id=product_id,
            file_name=file.filename or path.rsplit("/", 1)[-1],
            file_url=url,
            storage_path=path,
            mime_type=file.content_type,
            file_size=len(data),
        ),
        asynchronous=False,
    )
    return IdResponse(id=design_file_id)


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
@admin_router.post("/categories", status_code=201, response_model=IdResponse)
def add_category(body: AddCategoryRequest) -> IdResponse:
    category_id = current_domain.process(
        AddCategory(name=body.name, description=body.description, display_order=body.display_order),
        asynchronous=False,
    )
    return IdResponse(id=category_id)


@admin_router.post("/products", status_code=201, response_model=IdResponse)
def add_product(body: AddProductRequest) -> IdResponse:
    data = body.model_dump(exclude={"colors", "tags"})
    product_id = current_domain.process(
        AddProduct(
            **data,
            colors=json.dumps([c.model_dump() for c in body.colors], ensure_ascii=False),
            tags=json.dumps(body.tags, ensure_ascii=False),
        ),
        asynchronous=False,
    )
    return IdResponse(id=product_id)


@admin_router.put("/products/{product_id}", response_model=StatusResponse)
def update_product(product_id: str, body: UpdateProductRequest) -> StatusResponse:
    changes = body.model_dump(exclude_unset=True)
    current_domain.process(
        UpdateProduct(product_id=product_id, changes=json.dumps(changes, ensure_ascii=False)),
        asynchronous=False,
    )
    return StatusResponse()


@admin_router.post("/design-files", status_code=201, response_model=IdResponse)
def register_design_file(body: RegisterDesignFileRequest) -> IdResponse:
    design_file_id = current_domain.process(RegisterDesignFile(**body.model_dump()), asynchronous=False)
    return IdResponse(id=design_file_id)


@admin_router.delete("/design-files/{design_file_id}", response_model=StatusResponse)
def deactivate_design_file(design_file_id: str) -> StatusResponse:
    current_domain.process(DeactivateDesignFile(design_file_id=design_file_id), asynchronous=False)
    return StatusResponse()


# ---------------------------------------------------------------------------
# Promotions and reviews
# ---------------------------------------------------------------------------
@admin_router.post("/promo-codes", status_code=201, response_model=IdResponse)
def create_promo_code(body: CreatePromoCodeRequest, requester: Requester = Depends(admin_requester)) -> IdResponse:
    data = body.model_dump(exclude={"product_ids"})
    promo_code_id = current_domain.process(
        CreatePromoCode(**data, product_ids=json.dumps(body.product_ids), created_by=requester.user_id),
        asynchronous=False,
    )
    return IdResponse(id=promo_code_id)


@admin_router.delete("/promo-codes/{promo_code_id}", response_model=StatusResponse)
def deactivate_promo_code(promo_code_id: str) -> StatusResponse:
    current_domain.process(DeactivatePromoCode(promo_code_id=promo_code_id), asynchronous=False)
    return StatusResponse()


@admin_router.post("/reviews/{review_id}/approve", response_model=StatusResponse)
def approve_review(
    review_id: str,
    body: ModerateReviewRequest | None = None,
    requester: Requester = Depends(admin_requester),
) -> StatusResponse:
    current_domain.process(
        ApproveReview(
            review_id=review_id,
            moderator=_actor(requester),
            display_order=body.display_order if body else None,
        ),
        asynchronous=False,
    )
    return StatusResponse(status="approved")


@admin_router.post("/reviews/{review_id}/reject", response_model=StatusResponse)
def reject_review(
    review_id: str,
    body: ModerateReviewRequest | None = None,
    requester: Requester = Depends(admin_requester),
) -> StatusResponse:
    current_domain.process(
        RejectReview(review_id=review_id, moderator=_actor(requester), reason=body.reason if body else None),
        asynchronous=False,
    )
    return StatusResponse(status="rejected")
