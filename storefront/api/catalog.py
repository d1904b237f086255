from flask import Blueprint, jsonify, request

from storefront.api.params import ProductParamsSchema
from storefront.api.resources import CategorySchema, ProductSchema, paginated
from storefront.services.catalog_service import CatalogService

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")


@catalog_bp.route("/products", methods=["GET"])
def list_products():
    """Paginated product listing with search, category and price filters."""
    params = ProductParamsSchema().load(request.args.to_dict())
    products = CatalogService.list_products(**params)
    return jsonify(paginated(products, ProductSchema()))


@catalog_bp.route("/products/<int:product_id>", methods=["GET"])
def get_product(product_id):
    """Get a single product with its category."""
    product = CatalogService.get_product(product_id)
    return jsonify({"data": ProductSchema().dump(product)})


@catalog_bp.route("/categories", methods=["GET"])
def list_categories():
    """List all categories by name."""
    categories = CatalogService.all_categories()
    return jsonify({"data": CategorySchema(many=True).dump(categories)})
