"""Domain events for the catalogue aggregates."""

from protean.fields import Boolean, DateTime, Identifier, String

from storefront.domain import storefront


@storefront.event(part_of="Category")
class CategoryAdded:
    __version__ = 1

    category_id: Identifier(required=True)
    name: String(required=True)
    slug: String(required=True)


@storefront.event(part_of="Product")
class ProductAdded:
    """A product was added to the storefront."""

    __version__ = 1

    product_id: Identifier(required=True)
    name: String(required=True)
    slug: String(required=True)
    category_id: Identifier()
    enable_customizations: Boolean(default=False)
    added_at: DateTime(required=True)


@storefront.event(part_of="Product")
class ProductUpdated:
    __version__ = 1

    product_id: Identifier(required=True)
    changed_fields: String()  # comma separated
    updated_at: DateTime(required=True)


@storefront.event(part_of="DesignFile")
class DesignFileRegistered:
    """A deliverable asset was attached to a product (or to one order)."""

    __version__ = 1

    design_file_id: Identifier(required=True)
    product_id: Identifier(required=True)
    file_name: String(required=True)
    is_color_variant: Boolean(default=False)
    color_variant_hex: String()
    order_id: Identifier()
    registered_at: DateTime(required=True)


@storefront.event(part_of="DesignFile")
class DesignFileDeactivated:
    __version__ = 1

    design_file_id: Identifier(required=True)
    product_id: Identifier(required=True)
    deactivated_at: DateTime(required=True)
