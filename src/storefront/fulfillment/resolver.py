"""Delivery resolution — decide how one order item gets fulfilled.

Policy, in order:

1. Product without customization support: deliver its general files.
2. Real customization content on the item: hold for custom work.
3. No selected colors: deliver general files.
4. Selected colors: deliver the color-variant file of every selected color.
   A color without a matching file leaves the item for manual follow-up.

An item that would auto-deliver but has nothing to deliver is treated as a
fulfillment gap as well, so no order completes with an empty download list.
Resolution is staged: nothing here writes to the order.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from storefront.fulfillment.customization import Customizations, requires_custom_work


class DeliveryOutcome(Enum):
    AUTO_DELIVER = "auto_deliver"
    NEEDS_CUSTOM_WORK = "needs_custom_work"


class ProductNotFound(Exception):
    """The ordered product no longer exists in the catalogue."""

    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


@dataclass(frozen=True)
class ItemToResolve:
    item_id: str
    product_id: str
    has_customizations: bool = False
    customizations: Customizations | None = None


@dataclass(frozen=True)
class Resolution:
    item_id: str
    outcome: DeliveryOutcome
    files: tuple = field(default_factory=tuple)
    note: str | None = None

    @property
    def file_ids(self) -> list[str]:
        return [str(f.id) for f in self.files]


NOTE_CUSTOM_WORK = "يحتاج هذا المنتج إلى تخصيص يدوي من فريق التصميم"
NOTE_NO_FILES = "لا توجد ملفات تصميم متاحة لهذا المنتج، يحتاج إلى متابعة يدوية"
NOTE_MISSING_COLORS = "لا توجد ملفات للألوان المختارة: {colors}، يحتاج إلى متابعة يدوية"
NOTE_PRODUCT_MISSING = "المنتج غير موجود في الكتالوج، يحتاج إلى مراجعة يدوية"
NOTE_AUTO_DELIVERED = "تم التسليم التلقائي للملفات"


def _deliverable(files: Iterable, now: datetime | None) -> list:
    return [f for f in files if f.is_available(now) and not f.order_id]


def general_files(files: Iterable, now: datetime | None = None) -> list:
    return [f for f in _deliverable(files, now) if not f.is_color_variant]


def color_variant_files(files: Iterable, hex_value: str, now: datetime | None = None) -> list:
    return [f for f in _deliverable(files, now) if f.matches_color(hex_value)]


def _auto_or_gap(item_id: str, files: list, gap_note: str = NOTE_NO_FILES) -> Resolution:
    if not files:
        return Resolution(item_id=item_id, outcome=DeliveryOutcome.NEEDS_CUSTOM_WORK, note=gap_note)
    return Resolution(
        item_id=item_id,
        outcome=DeliveryOutcome.AUTO_DELIVER,
        files=tuple(files),
        note=NOTE_AUTO_DELIVERED,
    )


def resolve(item: ItemToResolve, product, design_files: Iterable, now: datetime | None = None) -> Resolution:
    """Resolve a single item against its product and the product's design files.

    Raises:
        ProductNotFound: when ``product`` is None.
    """
    if product is None:
        raise ProductNotFound(item.product_id)

    files = list(design_files)

    if not product.enable_customizations:
        return _auto_or_gap(item.item_id, general_files(files, now))

    if requires_custom_work(item.has_customizations, item.customizations):
        return Resolution(item_id=item.item_id, outcome=DeliveryOutcome.NEEDS_CUSTOM_WORK, note=NOTE_CUSTOM_WORK)

    colors = item.customizations.colors if item.customizations else ()
    if not colors:
        return _auto_or_gap(item.item_id, general_files(files, now))

    matched: dict[str, object] = {}
    missing: list[str] = []
    for color in colors:
        found = color_variant_files(files, color.hex, now)
        if not found:
            missing.append(color.name or color.hex)
        for design_file in found:
            matched.setdefault(str(design_file.id), design_file)

    if missing:
        return Resolution(
            item_id=item.item_id,
            outcome=DeliveryOutcome.NEEDS_CUSTOM_WORK,
            note=NOTE_MISSING_COLORS.format(colors="، ".join(missing)),
        )
    return _auto_or_gap(item.item_id, list(matched.values()))


def unresolvable(item: ItemToResolve) -> Resolution:
    """Resolution recorded for an item whose product is gone."""
    return Resolution(item_id=item.item_id, outcome=DeliveryOutcome.NEEDS_CUSTOM_WORK, note=NOTE_PRODUCT_MISSING)
