import logging

from flask import current_app
from slugify import slugify

from storefront.errors import Conflict, ValidationError
from storefront.models.database import db, Category, OrderItem, Product
from storefront.services.catalog_service import CatalogService
from storefront.services.image_storage import ImageStorage

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("category_id", "name", "description", "price", "stock")


class ProductService:
    """Admin-side product mutations."""

    @staticmethod
    def storage() -> ImageStorage:
        return current_app.extensions["image_storage"]

    @staticmethod
    def _check_category(category_id: int) -> None:
        if db.session.get(Category, category_id) is None:
            raise ValidationError({"category_id": ["The selected category id is invalid."]})

    @staticmethod
    def create_product(data: dict, upload=None) -> Product:
        ProductService._check_category(data["category_id"])

        if upload is not None:
            image = ProductService.storage().save(upload)
        elif data.get("image"):
            image = data["image"]
        else:
            raise ValidationError({"image": ["The image field is required."]})

        product = Product(
            category_id=data["category_id"],
            name=data["name"],
            slug=slugify(data["name"]),
            description=data["description"],
            price=data["price"],
            image=image,
            stock=data["stock"],
        )
        db.session.add(product)
        db.session.commit()
        logger.info("Created product id=%s", product.id)
        return CatalogService.get_product(product.id)

    @staticmethod
    def update_product(product_id: int, data: dict, upload=None) -> Product:
        product = CatalogService.get_product(product_id)
        if "category_id" in data:
            ProductService._check_category(data["category_id"])

        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(product, field, data[field])
        if "name" in data:
            product.slug = slugify(data["name"])

        old_image = None
        if upload is not None:
            old_image = product.image
            product.image = ProductService.storage().save(upload)
        elif data.get("image"):
            old_image = product.image
            product.image = data["image"]

        db.session.commit()
        if old_image and old_image != product.image:
            ProductService.storage().delete(old_image)
        logger.info("Updated product id=%s", product.id)
        return CatalogService.get_product(product.id)

    @staticmethod
    def delete_product(product_id: int) -> None:
        product = CatalogService.get_product(product_id)
        ordered = OrderItem.query.filter_by(product_id=product.id).count()
        if ordered:
            raise Conflict(
                "Cannot delete a product that appears in existing orders"
            )

        image = product.image
        db.session.delete(product)
        db.session.commit()
        ProductService.storage().delete(image)
        logger.info("Deleted product id=%s", product_id)
