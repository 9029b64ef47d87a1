"""Product aggregate — a purchasable digital design.

Orders snapshot the product's id, name and slug at checkout, so edits made
here never change historical orders. Fulfillment reads the live product
only for ``enable_customizations`` and its design files.
"""

import json
import re
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from storefront.catalogue.events import ProductAdded, ProductUpdated
from storefront.domain import storefront

HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}){1,2}$")

_EDITABLE_FIELDS = (
    "name",
    "description",
    "category_id",
    "price",
    "discount_amount",
    "discount_percentage",
    "enable_customizations",
    "allow_color_changes",
    "allow_text_editing",
    "allow_image_replacement",
    "allow_logo_upload",
    "youtube_link",
    "is_active",
    "is_featured",
)


def normalize_hex(value: str) -> str:
    return (value or "").strip().upper()


@storefront.aggregate
class Product:
    name: String(required=True, max_length=200)
    slug: String(required=True, max_length=220, unique=True)
    description: Text()
    category_id: Identifier()
    price: Float(required=True, min_value=0.0)
    discount_amount: Float(default=0.0, min_value=0.0)
    discount_percentage: Float(default=0.0, min_value=0.0, max_value=100.0)
    final_price: Float(min_value=0.0)

    # Customization capabilities offered to the customer
    enable_customizations: Boolean(default=False)
    allow_color_changes: Boolean(default=False)
    allow_text_editing: Boolean(default=False)
    allow_image_replacement: Boolean(default=False)
    allow_logo_upload: Boolean(default=False)
    colors: Text()  # JSON list of {name, hex, description}

    youtube_link: String(max_length=500)
    tags: Text()  # JSON list of strings
    is_active: Boolean(default=True)
    is_featured: Boolean(default=False)
    purchase_count: Integer(default=0, min_value=0)
    created_at: DateTime()
    updated_at: DateTime()

    @invariant.post
    def colors_must_have_valid_hex(self):
        for color in self.color_themes():
            if not HEX_COLOR.match(color.get("hex", "")):
                raise ValidationError({"colors": [f"Invalid hex color code: {color.get('hex')}"]})

    @classmethod
    def create(cls, name, slug, price, **details):
        now = datetime.now(UTC)
        colors = details.pop("colors", None)
        tags = details.pop("tags", None)
        product = cls(
            name=name,
            slug=slug,
            price=price,
            colors=json.dumps(colors, ensure_ascii=False) if colors else None,
            tags=json.dumps(tags, ensure_ascii=False) if tags else None,
            created_at=now,
            updated_at=now,
            **details,
        )
        product.final_price = product.compute_final_price()
        product.raise_(
            ProductAdded(
                product_id=product.id,
                name=name,
                slug=slug,
                category_id=product.category_id,
                enable_customizations=product.enable_customizations,
                added_at=now,
            )
        )
        return product

    def compute_final_price(self) -> float:
        price = self.price or 0.0
        if self.discount_amount:
            price -= self.discount_amount
        elif self.discount_percentage:
            price -= price * self.discount_percentage / 100
        return round(max(price, 0.0), 2)

    def color_themes(self) -> list[dict]:
        return json.loads(self.colors) if self.colors else []

    def update_details(self, colors=None, tags=None, **changes):
        unknown = set(changes) - set(_EDITABLE_FIELDS)
        if unknown:
            raise ValidationError({"product": [f"Unknown fields: {', '.join(sorted(unknown))}"]})

        changed = [name for name, value in changes.items() if value is not None]
        for name in changed:
            setattr(self, name, changes[name])
        if colors is not None:
            self.colors = json.dumps(colors, ensure_ascii=False)
            changed.append("colors")
        if tags is not None:
            self.tags = json.dumps(tags, ensure_ascii=False)
            changed.append("tags")
        if not changed:
            return

        now = datetime.now(UTC)
        self.final_price = self.compute_final_price()
        self.updated_at = now
        self.raise_(ProductUpdated(product_id=self.id, changed_fields=",".join(changed), updated_at=now))

    def record_purchase(self, quantity: int = 1) -> None:
        self.purchase_count = (self.purchase_count or 0) + quantity
