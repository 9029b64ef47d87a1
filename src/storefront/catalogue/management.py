"""Catalogue management — admin commands and handlers."""

import json
from datetime import UTC, datetime, timedelta

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from storefront import config
from storefront.access.order_design_file import grant_files
from storefront.catalogue.category import Category, slugify
from storefront.catalogue.design_file import DesignFile
from storefront.catalogue.product import Product
from storefront.domain import storefront
from storefront.order.order import Order

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Category")
class AddCategory:
    name: String(required=True, max_length=100)
    description: Text()
    display_order: Integer(default=0)


@storefront.command(part_of="Product")
class AddProduct:
    name: String(required=True, max_length=200)
    slug: String(max_length=220)
    description: Text()
    category_id: Identifier()
    price: Float(required=True, min_value=0.0)
    discount_amount: Float(default=0.0)
    discount_percentage: Float(default=0.0)
    enable_customizations: Boolean(default=False)
    allow_color_changes: Boolean(default=False)
    allow_text_editing: Boolean(default=False)
    allow_image_replacement: Boolean(default=False)
    allow_logo_upload: Boolean(default=False)
    colors: Text()  # JSON list of {name, hex, description}
    tags: Text()  # JSON list of strings
    youtube_link: String(max_length=500)
    is_featured: Boolean(default=False)


@storefront.command(part_of="Product")
class UpdateProduct:
    product_id: Identifier(required=True)
    changes: Text(required=True)  # JSON object of editable fields


@storefront.command(part_of="DesignFile")
class RegisterDesignFile:
    product_id: Identifier(required=True)
    file_name: String(required=True, max_length=255)
    file_url: String(required=True, max_length=1000)
    storage_path: String(max_length=1000)
    mime_type: String(max_length=100)
    file_type: String(max_length=50)
    file_size: Integer(default=0)
    color_variant_name: String(max_length=50)
    color_variant_hex: String(max_length=7)
    max_downloads: Integer()
    expires_at: DateTime()


@storefront.command(part_of="DesignFile")
class DeactivateDesignFile:
    design_file_id: Identifier(required=True)


@storefront.command(part_of="DesignFile")
class AttachOrderFile:
    """A designer's bespoke file for one customized order, already stored."""

    order_id: Identifier(required=True)
    product_id: Identifier(required=True)
    file_name: String(required=True, max_length=255)
    file_url: String(required=True, max_length=1000)
    storage_path: String(max_length=1000)
    mime_type: String(max_length=100)
    file_size: Integer(default=0)


@storefront.command_handler(part_of=Category)
class ManageCategoryHandler:
    @handle(AddCategory)
    def add_category(self, command):
        repo = current_domain.repository_for(Category)
        slug = slugify(command.name)
        if repo._dao.query.filter(slug=slug).all().total:
            raise ValidationError({"name": ["A category with this name already exists"]})
        category = Category.create(
            name=command.name,
            description=command.description,
            display_order=command.display_order or 0,
            slug=slug,
        )
        repo.add(category)
        return str(category.id)


def _json_list(value):
    return json.loads(value) if value else None


@storefront.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        repo = current_domain.repository_for(Product)
        slug = command.slug or slugify(command.name)
        if repo._dao.query.filter(slug=slug).all().total:
            raise ValidationError({"slug": ["A product with this slug already exists"]})
        if command.category_id:
            current_domain.repository_for(Category).get(command.category_id)

        product = Product.create(
            name=command.name,
            slug=slug,
            price=command.price,
            description=command.description,
            category_id=command.category_id,
            discount_amount=command.discount_amount or 0.0,
            discount_percentage=command.discount_percentage or 0.0,
            enable_customizations=bool(command.enable_customizations),
            allow_color_changes=bool(command.allow_color_changes),
            allow_text_editing=bool(command.allow_text_editing),
            allow_image_replacement=bool(command.allow_image_replacement),
            allow_logo_upload=bool(command.allow_logo_upload),
            colors=_json_list(command.colors),
            tags=_json_list(command.tags),
            youtube_link=command.youtube_link,
            is_featured=bool(command.is_featured),
        )
        repo.add(product)
        logger.info("Product added", product_id=str(product.id), slug=slug)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        changes = json.loads(command.changes)
        product.update_details(**changes)
        repo.add(product)


@storefront.command_handler(part_of=DesignFile)
class ManageDesignFileHandler:
    @handle(RegisterDesignFile)
    def register_design_file(self, command):
        current_domain.repository_for(Product).get(command.product_id)
        design_file = DesignFile.register(
            product_id=command.product_id,
            file_name=command.file_name,
            file_url=command.file_url,
            storage_path=command.storage_path,
            mime_type=command.mime_type,
            file_type=command.file_type,
            file_size=command.file_size or 0,
            color_variant_name=command.color_variant_name,
            color_variant_hex=command.color_variant_hex,
            max_downloads=command.max_downloads,
            expires_at=command.expires_at,
        )
        current_domain.repository_for(DesignFile).add(design_file)
        return str(design_file.id)

    @handle(DeactivateDesignFile)
    def deactivate_design_file(self, command):
        repo = current_domain.repository_for(DesignFile)
        design_file = repo.get(command.design_file_id)
        design_file.deactivate()
        repo.add(design_file)

    @handle(AttachOrderFile)
    def attach_order_file(self, command):
        order = current_domain.repository_for(Order).get(command.order_id)
        if not any(str(i.product_id) == str(command.product_id) for i in order.items):
            raise ValidationError({"product_id": ["Product is not part of this order"]})

        design_file = DesignFile.register(
            product_id=command.product_id,
            order_id=str(order.id),
            file_name=command.file_name,
            file_url=command.file_url,
            storage_path=command.storage_path,
            mime_type=command.mime_type,
            file_size=command.file_size or 0,
        )
        current_domain.repository_for(DesignFile).add(design_file)

        expires_at = order.download_expiry or datetime.now(UTC) + timedelta(days=config.delivery_window_days())
        grant_files(order, [design_file], expires_at=expires_at)
        logger.info(
            "Custom file attached to order",
            order_number=order.order_number,
            design_file_id=str(design_file.id),
        )
        return str(design_file.id)
