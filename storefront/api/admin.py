from flask import Blueprint, current_app, g, jsonify, request
from marshmallow import Schema, fields, validate

from storefront.api.params import ListParamsSchema, ProductParamsSchema
from storefront.api.resources import (
    CategoryWithCountSchema,
    OrderSchema,
    ProductSchema,
    UserSchema,
    paginated,
)
from storefront.middleware.auth import require_admin
from storefront.services.catalog_service import CatalogService
from storefront.services.category_service import CategoryService
from storefront.services.order_service import OrderService
from storefront.services.product_service import ProductService
from storefront.services.user_service import UserService

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


class ProductInputSchema(Schema):
    category_id = fields.Integer(required=True)
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    description = fields.String(required=True, validate=validate.Length(min=1))
    price = fields.Decimal(required=True, places=2, validate=validate.Range(min=0))
    stock = fields.Integer(required=True, validate=validate.Range(min=0))
    image = fields.Url(load_default=None)


class CategoryInputSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    description = fields.String(allow_none=True, load_default=None)


class UserInputSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    email = fields.Email(required=True, validate=validate.Length(max=255))
    password = fields.String(required=True, validate=validate.Length(min=8))
    role = fields.String(validate=validate.OneOf(["user", "admin"]))


class UserUpdateSchema(UserInputSchema):
    password = fields.String(allow_none=True, validate=validate.Length(min=8))


def request_payload() -> dict:
    """Form fields for multipart requests, the JSON body otherwise."""
    if request.mimetype in ("multipart/form-data", "application/x-www-form-urlencoded"):
        return request.form.to_dict()
    return request.get_json(silent=True) or {}


def uploaded_image():
    upload = request.files.get("image")
    if upload is None or not upload.filename:
        return None
    return upload


# Products

@admin_bp.route("/products", methods=["GET"])
@require_admin
def list_products():
    """List products with filters (admin only)."""
    params = ProductParamsSchema().load(request.args.to_dict())
    products = CatalogService.list_products(
        default_per_page=current_app.config["ADMIN_PER_PAGE"], **params
    )
    return jsonify(paginated(products, ProductSchema()))


@admin_bp.route("/products", methods=["POST"])
@require_admin
def create_product():
    """Create a product from JSON or a multipart upload (admin only)."""
    data = ProductInputSchema().load(request_payload())
    product = ProductService.create_product(data, upload=uploaded_image())
    return jsonify({
        "message": "Product created successfully",
        "product": ProductSchema().dump(product),
    }), 201


@admin_bp.route("/products/<int:product_id>", methods=["GET"])
@require_admin
def get_product(product_id):
    """Get a product with its category (admin only)."""
    return jsonify({"data": ProductSchema().dump(CatalogService.get_product(product_id))})


@admin_bp.route("/products/<int:product_id>", methods=["PUT", "PATCH"])
@require_admin
def update_product(product_id):
    """Update a product and optionally replace its image (admin only)."""
    data = ProductInputSchema(partial=True).load(request_payload())
    product = ProductService.update_product(product_id, data, upload=uploaded_image())
    return jsonify({
        "message": "Product updated successfully",
        "product": ProductSchema().dump(product),
    })


@admin_bp.route("/products/<int:product_id>", methods=["DELETE"])
@require_admin
def delete_product(product_id):
    """Delete a product that has never been ordered (admin only)."""
    ProductService.delete_product(product_id)
    return jsonify({"message": "Product deleted successfully"})


# Categories

@admin_bp.route("/categories", methods=["GET"])
@require_admin
def list_categories():
    """List categories with product counts (admin only)."""
    params = ListParamsSchema().load(request.args.to_dict())
    categories = CatalogService.list_categories(**params)
    return jsonify(paginated(categories, CategoryWithCountSchema()))


@admin_bp.route("/categories", methods=["POST"])
@require_admin
def create_category():
    """Create a category (admin only)."""
    data = CategoryInputSchema().load(request.get_json(silent=True) or {})
    category = CategoryService.create_category(data["name"], data.get("description"))
    return jsonify({
        "message": "Category created successfully",
        "category": CategoryWithCountSchema().dump(category),
    }), 201


@admin_bp.route("/categories/<int:category_id>", methods=["GET"])
@require_admin
def get_category(category_id):
    """Get a category with its product count (admin only)."""
    category = CatalogService.get_category(category_id)
    return jsonify({"data": CategoryWithCountSchema().dump(category)})


@admin_bp.route("/categories/<int:category_id>", methods=["PUT", "PATCH"])
@require_admin
def update_category(category_id):
    """Rename or describe a category (admin only)."""
    data = CategoryInputSchema(partial=True).load(request.get_json(silent=True) or {})
    category = CategoryService.update_category(category_id, data)
    return jsonify({
        "message": "Category updated successfully",
        "category": CategoryWithCountSchema().dump(category),
    })


@admin_bp.route("/categories/<int:category_id>", methods=["DELETE"])
@require_admin
def delete_category(category_id):
    """Delete a category that owns no products (admin only)."""
    CategoryService.delete_category(category_id)
    return jsonify({"message": "Category deleted successfully"})


# Users

@admin_bp.route("/users", methods=["GET"])
@require_admin
def list_users():
    """Get all users (admin only)."""
    params = ListParamsSchema().load(request.args.to_dict())
    return jsonify(paginated(UserService.list_users(**params), UserSchema()))


@admin_bp.route("/users", methods=["POST"])
@require_admin
def create_user():
    """Create a user account (admin only)."""
    data = UserInputSchema().load(request.get_json(silent=True) or {})
    user = UserService.create_user(data)
    return jsonify({
        "message": "User created successfully",
        "user": UserSchema().dump(user),
    }), 201


@admin_bp.route("/users/<int:user_id>", methods=["GET"])
@require_admin
def get_user(user_id):
    """Get a single user (admin only)."""
    return jsonify({"data": UserSchema().dump(UserService.get_user(user_id))})


@admin_bp.route("/users/<int:user_id>", methods=["PUT", "PATCH"])
@require_admin
def update_user(user_id):
    """Update a user account (admin only)."""
    data = UserUpdateSchema(partial=True).load(request.get_json(silent=True) or {})
    user = UserService.update_user(user_id, data)
    return jsonify({
        "message": "User updated successfully",
        "user": UserSchema().dump(user),
    })


@admin_bp.route("/users/<int:user_id>", methods=["DELETE"])
@require_admin
def delete_user(user_id):
    """Delete another user account (admin only)."""
    UserService.delete_user(user_id, acting_user=g.current_user)
    return jsonify({"message": "User deleted successfully"})


# Orders

@admin_bp.route("/orders", methods=["GET"])
@require_admin
def list_orders():
    """All orders with their items, newest first by default."""
    params = ListParamsSchema().load(request.args.to_dict())
    return jsonify(paginated(OrderService.list_orders(**params), OrderSchema()))
