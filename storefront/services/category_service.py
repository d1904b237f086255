import logging

from slugify import slugify
from sqlalchemy import func, select

from storefront.errors import HasDependents, ValidationError
from storefront.models.database import db, Category, Product
from storefront.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)


class CategoryService:
    """Admin-side category mutations, including the delete guard."""

    @staticmethod
    def count_products(category_id: int) -> int:
        return db.session.execute(
            select(func.count(Product.id)).where(Product.category_id == category_id)
        ).scalar_one()

    @staticmethod
    def _check_unique_name(name: str, exclude_id=None) -> None:
        stmt = select(Category.id).where(Category.name == name)
        if exclude_id is not None:
            stmt = stmt.where(Category.id != exclude_id)
        if db.session.execute(stmt).first() is not None:
            raise ValidationError({"name": ["The name has already been taken."]})

    @staticmethod
    def create_category(name: str, description=None) -> Category:
        CategoryService._check_unique_name(name)
        category = Category(name=name, slug=slugify(name), description=description)
        db.session.add(category)
        db.session.commit()
        logger.info("Created category id=%s", category.id)
        return CatalogService.get_category(category.id)

    @staticmethod
    def update_category(category_id: int, data: dict) -> Category:
        category = CatalogService.get_category(category_id)
        if "name" in data:
            CategoryService._check_unique_name(data["name"], exclude_id=category.id)
            category.name = data["name"]
            category.slug = slugify(data["name"])
        if "description" in data:
            category.description = data["description"]

        db.session.commit()
        logger.info("Updated category id=%s", category.id)
        return CatalogService.get_category(category.id)

    @staticmethod
    def delete_category(category_id: int) -> None:
        """Delete a category that owns no products.

        Products are never cascaded; a category that still owns any is
        refused with HasDependents.
        """
        category = CatalogService.get_category(category_id)
        count = CategoryService.count_products(category.id)
        if count > 0:
            raise HasDependents(count)

        db.session.delete(category)
        db.session.commit()
        logger.info("Deleted category id=%s", category_id)
