import re

from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import joinedload, undefer

from storefront.errors import NotFound
from storefront.models.database import db, Category, Product
from storefront.services.query import apply_search, apply_sort, paginate

# Numeric category values such as -1, 2.5 or 1e3 are ids, never slugs
NUMERIC = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")

PRODUCT_SORTS = {
    "name": Product.name,
    "price": Product.price,
    "stock": Product.stock,
    "created_at": Product.created_at,
}

CATEGORY_SORTS = {
    "name": Category.name,
    "created_at": Category.created_at,
    "products_count": Category.products_count,
}


class CatalogService:
    """Read side of the catalog: product and category listings."""

    @staticmethod
    def resolve_category_id(value):
        """Map a category id or slug to an id.

        Unknown slugs resolve to ``None`` which means no category
        restriction at all, matching the behaviour older clients rely on.
        """
        if value is None or value == "":
            return None
        if isinstance(value, int):
            return value
        if NUMERIC.match(str(value)):
            number = float(value)
            return int(number) if number.is_integer() else number
        return db.session.execute(
            select(Category.id).where(Category.slug == value)
        ).scalar_one_or_none()

    @staticmethod
    def product_query(search=None, category=None, min_price=None, max_price=None,
                      sort=None, order=None):
        stmt = select(Product).options(joinedload(Product.category))
        stmt = apply_search(stmt, search, Product.name, Product.description)

        category_id = CatalogService.resolve_category_id(category)
        if category_id is not None:
            stmt = stmt.where(Product.category_id == category_id)
        if min_price is not None:
            stmt = stmt.where(Product.price >= min_price)
        if max_price is not None:
            stmt = stmt.where(Product.price <= max_price)

        return apply_sort(stmt, sort, order, PRODUCT_SORTS,
                          default=("created_at", "desc"), tiebreak=Product.id)

    @staticmethod
    def list_products(page=1, per_page=None, default_per_page=None, **filters):
        """Paginated products matching every supplied filter."""
        stmt = CatalogService.product_query(**filters)
        return paginate(stmt, page, per_page,
                        default_per_page or current_app.config["PUBLIC_PER_PAGE"])

    @staticmethod
    def get_product(product_id: int) -> Product:
        product = db.session.execute(
            select(Product)
            .options(joinedload(Product.category))
            .where(Product.id == product_id)
        ).scalar_one_or_none()
        if product is None:
            raise NotFound("Product", product_id)
        return product

    @staticmethod
    def all_categories() -> list:
        return db.session.execute(select(Category).order_by(Category.name)).scalars().all()

    @staticmethod
    def list_categories(search=None, sort=None, order=None, page=1, per_page=None):
        """Paginated categories, each annotated with its product count."""
        stmt = select(Category).options(undefer(Category.products_count))
        stmt = apply_search(stmt, search, Category.name, Category.description)
        stmt = apply_sort(stmt, sort, order, CATEGORY_SORTS,
                          default=("name", "asc"), tiebreak=Category.id)
        return paginate(stmt, page, per_page)

    @staticmethod
    def get_category(category_id: int) -> Category:
        category = db.session.execute(
            select(Category)
            .options(undefer(Category.products_count))
            .where(Category.id == category_id)
        ).scalar_one_or_none()
        if category is None:
            raise NotFound("Category", category_id)
        return category
