"""DesignFile aggregate — a deliverable asset tied to a product.

A file is either general (delivered for any purchase of the product) or a
color variant (delivered when the customer picked that color). Files that
carry an ``order_id`` were produced by a designer for one customized order
and are never offered to other orders.
"""

from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from storefront.catalogue.events import DesignFileDeactivated, DesignFileRegistered
from storefront.catalogue.product import normalize_hex
from storefront.domain import storefront
from storefront.utils.dates import as_utc

VIDEO_MIME_PREFIX = "video/"


@storefront.aggregate
class DesignFile:
    product_id: Identifier(required=True)
    order_id: Identifier()
    file_name: String(required=True, max_length=255)
    file_url: String(required=True, max_length=1000)
    storage_path: String(max_length=1000)
    file_type: String(max_length=50)  # image, video, archive, template, ...
    file_size: Integer(default=0, min_value=0)
    mime_type: String(max_length=100)
    is_active: Boolean(default=True)
    download_count: Integer(default=0, min_value=0)
    max_downloads: Integer(min_value=1)
    expires_at: DateTime()
    is_color_variant: Boolean(default=False)
    color_variant_name: String(max_length=50)
    color_variant_hex: String(max_length=7)
    created_at: DateTime()

    @invariant.post
    def color_variant_requires_hex(self):
        if self.is_color_variant and not self.color_variant_hex:
            raise ValidationError({"color_variant_hex": ["Color variant files must specify a hex color"]})

    @classmethod
    def register(
        cls,
        product_id,
        file_name,
        file_url,
        mime_type=None,
        file_type=None,
        file_size=0,
        storage_path=None,
        color_variant_name=None,
        color_variant_hex=None,
        order_id=None,
        max_downloads=None,
        expires_at=None,
    ):
        now = datetime.now(UTC)
        is_color_variant = bool(color_variant_name or color_variant_hex)
        design_file = cls(
            product_id=product_id,
            order_id=order_id,
            file_name=file_name,
            file_url=file_url,
            storage_path=storage_path,
            file_type=file_type or _file_type_for(mime_type),
            file_size=file_size,
            mime_type=mime_type,
            is_color_variant=is_color_variant,
            color_variant_name=color_variant_name,
            color_variant_hex=normalize_hex(color_variant_hex) if color_variant_hex else None,
            max_downloads=max_downloads,
            expires_at=expires_at,
            created_at=now,
        )
        design_file.raise_(
            DesignFileRegistered(
                design_file_id=design_file.id,
                product_id=product_id,
                file_name=file_name,
                is_color_variant=is_color_variant,
                color_variant_hex=design_file.color_variant_hex,
                order_id=order_id,
                registered_at=now,
            )
        )
        return design_file

    def is_expired(self, now: datetime | None = None) -> bool:
        if not self.expires_at:
            return False
        return as_utc(self.expires_at) <= (now or datetime.now(UTC))

    def is_available(self, now: datetime | None = None) -> bool:
        return bool(self.is_active) and not self.is_expired(now)

    def is_limit_reached(self) -> bool:
        return bool(self.max_downloads) and (self.download_count or 0) >= self.max_downloads

    def matches_color(self, hex_value: str) -> bool:
        return bool(self.is_color_variant) and normalize_hex(self.color_variant_hex) == normalize_hex(hex_value)

    def is_video(self) -> bool:
        return (self.mime_type or "").startswith(VIDEO_MIME_PREFIX)

    def record_download(self) -> None:
        self.download_count = (self.download_count or 0) + 1

    def deactivate(self) -> None:
        if not self.is_active:
            return
        now = datetime.now(UTC)
        self.is_active = False
        self.raise_(DesignFileDeactivated(design_file_id=self.id, product_id=self.product_id, deactivated_at=now))


def _file_type_for(mime_type: str | None) -> str:
    if not mime_type:
        return "other"
    if mime_type.startswith("image/"):
        return "image"
    if mime_type.startswith(VIDEO_MIME_PREFIX):
        return "video"
    if mime_type in ("application/zip", "application/x-zip-compressed", "application/x-rar-compressed"):
        return "archive"
    return "other"
