"""Category aggregate — flat grouping of products for browsing."""

import re
from datetime import UTC, datetime

from protean.fields import Boolean, DateTime, Integer, String, Text

from storefront.catalogue.events import CategoryAdded
from storefront.domain import storefront


def slugify(value: str) -> str:
    """Lower-case, hyphen-separated slug. Arabic letters are kept as-is."""
    slug = re.sub(r"[^\w\s-]", "", value.strip().lower(), flags=re.UNICODE)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


@storefront.aggregate
class Category:
    name: String(required=True, max_length=100)
    slug: String(required=True, max_length=120, unique=True)
    description: Text()
    is_active: Boolean(default=True)
    display_order: Integer(default=0)
    created_at: DateTime()

    @classmethod
    def create(cls, name, description=None, display_order=0, slug=None):
        category = cls(
            name=name,
            slug=slug or slugify(name),
            description=description,
            display_order=display_order,
            created_at=datetime.now(UTC),
        )
        category.raise_(CategoryAdded(category_id=category.id, name=name, slug=category.slug))
        return category
