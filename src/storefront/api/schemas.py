"""Pydantic request/response schemas for the storefront API.

These are external contracts (anti-corruption layer) — separate from
internal Protean commands. Cart payloads arrive in the storefront's
camelCase; customization payloads that were stored as JSON strings are
parsed here once and rejected if they do not fit the canonical shape.
"""

import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Customizations
# ---------------------------------------------------------------------------
class ColorSchema(CamelModel):
    name: str
    hex: str = Field(pattern=r"^#(?:[0-9a-fA-F]{3}){1,2}$")


class TextChangeSchema(CamelModel):
    field: str
    value: str


class UploadedAssetSchema(CamelModel):
    url: str
    public_id: str = Field(default="", alias="publicId")


class CustomizationsSchema(CamelModel):
    colors: list[ColorSchema] = Field(default_factory=list)
    text_changes: list[TextChangeSchema] = Field(default_factory=list, alias="textChanges")
    uploaded_images: list[UploadedAssetSchema] = Field(default_factory=list, alias="uploadedImages")
    uploaded_logo: UploadedAssetSchema | None = Field(default=None, alias="uploadedLogo")
    customization_notes: str | None = Field(default=None, alias="customizationNotes")


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class AddressSchema(CamelModel):
    address: str | None = None
    city: str | None = None
    country: str | None = None
    zip_code: str | None = Field(default=None, alias="zipCode")


class OrderItemSchema(CamelModel):
    product_id: str = Field(alias="productId")
    product_name: str = Field(alias="productName")
    product_slug: str = Field(alias="productSlug")
    quantity: int = Field(ge=1, default=1)
    original_price: float = Field(ge=0, alias="originalPrice")
    discount_amount: float = Field(ge=0, default=0.0, alias="discountAmount")
    unit_price: float = Field(ge=0, alias="unitPrice")
    total_price: float = Field(ge=0, alias="totalPrice")
    promo_code: str | None = Field(default=None, alias="promoCode")
    promo_discount: float = Field(ge=0, default=0.0, alias="promoDiscount")
    has_customizations: bool = Field(default=False, alias="hasCustomizations")
    enable_customizations: bool | None = Field(default=None, alias="EnableCustomizations")
    customizations: CustomizationsSchema | None = None

    @field_validator("customizations", mode="before")
    @classmethod
    def parse_stored_json(cls, value):
        if isinstance(value, str):
            if not value.strip():
                return None
            return json.loads(value)
        return value


class PlaceOrderRequest(CamelModel):
    customer_name: str = Field(min_length=1, alias="customerName")
    customer_email: str = Field(min_length=3, alias="customerEmail")
    customer_phone: str | None = Field(default=None, alias="customerPhone")
    customer_address: AddressSchema | None = Field(default=None, alias="customerAddress")
    customer_notes: str | None = Field(default=None, alias="customerNotes")
    items: list[OrderItemSchema] = Field(min_length=1)
    subtotal: float = Field(ge=0)
    total_promo_discount: float = Field(ge=0, default=0.0, alias="totalPromoDiscount")
    total_price: float = Field(ge=0, alias="totalPrice")
    currency: str = Field(default="USD", min_length=3, max_length=3)
    applied_promo_codes: list[str] = Field(default_factory=list, alias="appliedPromoCodes")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "customerName": "أحمد",
                    "customerEmail": "ahmed@example.com",
                    "items": [
                        {
                            "productId": "prod-001",
                            "productName": "Neon Overlay",
                            "productSlug": "neon-overlay",
                            "quantity": 1,
                            "originalPrice": 20.0,
                            "unitPrice": 20.0,
                            "totalPrice": 20.0,
                            "customizations": {"colors": [{"name": "Red", "hex": "#FF0000"}]},
                        }
                    ],
                    "subtotal": 20.0,
                    "totalPrice": 20.0,
                }
            ]
        },
    )


class OrderCreatedResponse(BaseModel):
    order_id: str
    order_number: str
    order_status: str
    payment_status: str


class OrderItemView(BaseModel):
    id: str
    product_id: str
    product_name: str
    product_slug: str
    quantity: int
    unit_price: float
    total_price: float
    has_customizations: bool
    delivery_status: str
    delivered_at: datetime | None = None


class HistoryView(BaseModel):
    status: str
    timestamp: datetime
    note: str | None = None
    changed_by: str | None = None


class OrderView(BaseModel):
    id: str
    order_number: str
    customer_name: str
    customer_email: str
    order_status: str
    payment_status: str
    customization_status: str
    subtotal: float
    total_promo_discount: float
    total_price: float
    currency: str
    download_expiry: datetime | None = None
    requires_review: bool = False
    items: list[OrderItemView]
    history: list[HistoryView]


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class CapturePaymentRequest(CamelModel):
    order_id: str = Field(alias="orderId")
    provider_order_id: str = Field(alias="paypalOrderId")


class WebhookAmount(BaseModel):
    value: str
    currency_code: str


class WebhookRelatedIds(BaseModel):
    order_id: str | None = None


class WebhookSupplementaryData(BaseModel):
    related_ids: WebhookRelatedIds | None = None


class WebhookStatusDetails(BaseModel):
    reason: str | None = None


class WebhookResource(BaseModel):
    """The ``resource`` of a PayPal webhook; unknown fields are ignored."""

    id: str | None = None
    status: str | None = None
    custom_id: str | None = None
    invoice_id: str | None = None
    amount: WebhookAmount | None = None
    supplementary_data: WebhookSupplementaryData | None = None
    status_details: WebhookStatusDetails | None = None

    def provider_order_id(self, event_type: str) -> str | None:
        related = self.supplementary_data.related_ids if self.supplementary_data else None
        if related and related.order_id:
            return related.order_id
        # For order events the resource itself is the provider order
        return self.id if event_type.startswith("CHECKOUT.ORDER") else None


class PaymentWebhookRequest(BaseModel):
    id: str
    event_type: str
    resource: WebhookResource = Field(default_factory=WebhookResource)


# ---------------------------------------------------------------------------
# Downloads
# ---------------------------------------------------------------------------
class DownloadResponse(BaseModel):
    download_url: str
    file_name: str
    expires_at: datetime
    downloads_remaining: int | None = None


# ---------------------------------------------------------------------------
# Catalogue
# ---------------------------------------------------------------------------
class ColorThemeSchema(CamelModel):
    name: str
    hex: str = Field(pattern=r"^#(?:[0-9a-fA-F]{3}){1,2}$")
    description: str | None = None


class AddProductRequest(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    slug: str | None = None
    description: str | None = None
    category_id: str | None = Field(default=None, alias="categoryId")
    price: float = Field(ge=0)
    discount_amount: float = Field(ge=0, default=0.0, alias="discountAmount")
    discount_percentage: float = Field(ge=0, le=100, default=0.0, alias="discountPercentage")
    enable_customizations: bool = Field(default=False, alias="EnableCustomizations")
    allow_color_changes: bool = Field(default=False, alias="allowColorChanges")
    allow_text_editing: bool = Field(default=False, alias="allowTextEditing")
    allow_image_replacement: bool = Field(default=False, alias="allowImageReplacement")
    allow_logo_upload: bool = Field(default=False, alias="allowLogoUpload")
    colors: list[ColorThemeSchema] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    youtube_link: str | None = Field(default=None, alias="youtubeLink")
    is_featured: bool = Field(default=False, alias="isFeatured")


class UpdateProductRequest(CamelModel):
    name: str | None = None
    description: str | None = None
    category_id: str | None = Field(default=None, alias="categoryId")
    price: float | None = Field(default=None, ge=0)
    discount_amount: float | None = Field(default=None, ge=0, alias="discountAmount")
    discount_percentage: float | None = Field(default=None, ge=0, le=100, alias="discountPercentage")
    enable_customizations: bool | None = Field(default=None, alias="EnableCustomizations")
    allow_color_changes: bool | None = Field(default=None, alias="allowColorChanges")
    allow_text_editing: bool | None = Field(default=None, alias="allowTextEditing")
    allow_image_replacement: bool | None = Field(default=None, alias="allowImageReplacement")
    allow_logo_upload: bool | None = Field(default=None, alias="allowLogoUpload")
    colors: list[ColorThemeSchema] | None = None
    tags: list[str] | None = None
    youtube_link: str | None = Field(default=None, alias="youtubeLink")
    is_active: bool | None = Field(default=None, alias="isActive")
    is_featured: bool | None = Field(default=None, alias="isFeatured")


class AddCategoryRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    description: str | None = None
    display_order: int = Field(default=0, alias="displayOrder")


class RegisterDesignFileRequest(CamelModel):
    product_id: str = Field(alias="productId")
    file_name: str = Field(alias="fileName")
    file_url: str = Field(alias="fileUrl")
    storage_path: str | None = Field(default=None, alias="storagePath")
    mime_type: str | None = Field(default=None, alias="mimeType")
    file_type: str | None = Field(default=None, alias="fileType")
    file_size: int = Field(default=0, ge=0, alias="fileSize")
    color_variant_name: str | None = Field(default=None, alias="colorVariantName")
    color_variant_hex: str | None = Field(default=None, alias="colorVariantHex")
    max_downloads: int | None = Field(default=None, ge=1, alias="maxDownloads")
    expires_at: datetime | None = Field(default=None, alias="expiresAt")


class ProductView(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    category_id: str | None = None
    price: float
    final_price: float | None = None
    enable_customizations: bool
    colors: list[dict]
    is_featured: bool
    purchase_count: int


class ProductListResponse(BaseModel):
    items: list[ProductView]
    total: int
    page: int
    limit: int


class CategoryView(BaseModel):
    id: str
    name: str
    slug: str
    description: str | None = None
    display_order: int


class IdResponse(BaseModel):
    id: str


# ---------------------------------------------------------------------------
# Promotions
# ---------------------------------------------------------------------------
class CartLineSchema(CamelModel):
    product_id: str = Field(alias="productId")
    quantity: int = Field(ge=1, default=1)


class ValidatePromoRequest(CamelModel):
    code: str = Field(min_length=1)
    cart_items: list[CartLineSchema] = Field(min_length=1, alias="cartItems")
    order_amount: float | None = Field(default=None, ge=0, alias="orderAmount")


class PromoVerdictResponse(BaseModel):
    valid: bool
    code: str
    message: str | None = None
    discount_amount: float = 0.0


class CreatePromoCodeRequest(CamelModel):
    code: str = Field(min_length=1, max_length=50)
    description: str | None = None
    discount_type: str = Field(pattern=r"^(percentage|fixed_amount)$", alias="discountType")
    discount_value: float = Field(ge=0, alias="discountValue")
    product_ids: list[str] = Field(default_factory=list, alias="productIds")
    apply_to_all_products: bool = Field(default=False, alias="applyToAllProducts")
    max_discount_amount: float | None = Field(default=None, ge=0, alias="maxDiscountAmount")
    usage_limit: int | None = Field(default=None, ge=1, alias="usageLimit")
    user_usage_limit: int = Field(default=1, ge=1, alias="userUsageLimit")
    minimum_order_amount: float | None = Field(default=None, ge=0, alias="minimumOrderAmount")
    start_date: datetime | None = Field(default=None, alias="startDate")
    end_date: datetime | None = Field(default=None, alias="endDate")


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
class SubmitReviewRequest(CamelModel):
    name: str = Field(min_length=1, max_length=100)
    rating: int = Field(ge=1, le=5)
    text: str = Field(min_length=1)
    avatar: str | None = None
    order_id: str | None = Field(default=None, alias="orderId")


class ReviewView(BaseModel):
    id: str
    name: str
    rating: int
    text: str
    avatar: str


class ModerateReviewRequest(CamelModel):
    reason: str | None = None
    display_order: int | None = Field(default=None, alias="displayOrder")


# ---------------------------------------------------------------------------
# Admin order actions
# ---------------------------------------------------------------------------
class CancelOrderRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class RefundOrderRequest(BaseModel):
    reason: str | None = None


class CompleteOrderRequest(BaseModel):
    note: str | None = None


class AdminNoteRequest(BaseModel):
    note: str = Field(min_length=1)
