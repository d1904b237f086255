"""Response shapes for the JSON API."""

from urllib.parse import urljoin

from flask import request
from marshmallow import Schema, fields


class CategorySchema(Schema):
    id = fields.Integer()
    name = fields.String()
    slug = fields.String()
    description = fields.String(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


class CategoryWithCountSchema(CategorySchema):
    products_count = fields.Integer()


class ProductSchema(Schema):
    id = fields.Integer()
    category_id = fields.Integer()
    category = fields.Nested(CategorySchema, allow_none=True)
    name = fields.String()
    slug = fields.String()
    description = fields.String()
    price = fields.Float()
    image = fields.Method("image_url")
    stock = fields.Integer()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()

    def image_url(self, product):
        if not product.image:
            return None
        if product.image.startswith(("http://", "https://")):
            return product.image
        return urljoin(request.host_url, product.image.lstrip("/"))


class OrderItemSchema(Schema):
    id = fields.Integer()
    order_id = fields.Integer()
    product_id = fields.Integer()
    quantity = fields.Integer()
    price = fields.Float()
    product = fields.Nested(ProductSchema, allow_none=True)


class OrderSchema(Schema):
    id = fields.Integer()
    user_id = fields.Integer(allow_none=True)
    user_name = fields.String()
    user_email = fields.String()
    address = fields.String()
    total = fields.Float()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
    order_items = fields.Nested(OrderItemSchema, many=True, attribute="items")


class UserSchema(Schema):
    id = fields.Integer()
    name = fields.String()
    email = fields.String()
    role = fields.String()
    created_at = fields.DateTime()
    updated_at = fields.DateTime()


def paginated(pagination, schema: Schema) -> dict:
    """Render a Flask-SQLAlchemy pagination as the list envelope."""
    return {
        "data": schema.dump(pagination.items, many=True),
        "current_page": pagination.page,
        "last_page": max(pagination.pages, 1),
        "per_page": pagination.per_page,
        "total": pagination.total,
        "from": pagination.first or None,
        "to": pagination.last or None,
    }
