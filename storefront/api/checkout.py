from flask import Blueprint, request, jsonify, g
from marshmallow import EXCLUDE, Schema, fields, validate

from storefront.api.resources import OrderSchema
from storefront.middleware.auth import require_auth
from storefront.services.checkout_service import CheckoutService

checkout_bp = Blueprint("checkout", __name__, url_prefix="/api")


class CartLineSchema(Schema):
    class Meta:
        # Clients may still send a price per line; it is never used
        unknown = EXCLUDE

    product_id = fields.Integer(required=True, strict=True, validate=validate.Range(min=1))
    quantity = fields.Integer(required=True, strict=True, validate=validate.Range(min=1))


class CheckoutSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    items = fields.List(fields.Nested(CartLineSchema), required=True, validate=validate.Length(min=1))
    address = fields.String(required=True, validate=validate.Length(min=1, max=1000))


@checkout_bp.route("/checkout", methods=["POST"])
@require_auth
def checkout():
    """Place an order for the authenticated user."""
    data = CheckoutSchema().load(request.get_json(silent=True) or {})
    user = g.current_user

    order = CheckoutService.place_order(
        customer={"name": user.name, "email": user.email, "user_id": user.id},
        address=data["address"],
        items=data["items"],
    )
    return jsonify({
        "message": "Order created successfully",
        "order": OrderSchema().dump(order),
    }), 201
