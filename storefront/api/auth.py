import logging

from flask import Blueprint, current_app, g, jsonify, request
from marshmallow import Schema, fields, validate

from storefront.api.resources import UserSchema
from storefront.middleware.auth import require_auth
from storefront.services.auth_service import AuthService

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


class RegisterSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    email = fields.Email(required=True, validate=validate.Length(max=255))
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))


class LoginSchema(Schema):
    email = fields.Email(required=True, validate=validate.Length(max=255))
    password = fields.String(required=True, validate=validate.Length(min=6))


def public_user(user) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email}


@auth_bp.route("/register", methods=["POST"])
def register():
    """Register a new customer account."""
    data = RegisterSchema().load(request.get_json(silent=True) or {})
    user = AuthService.register_user(data["name"], data["email"], data["password"])
    return jsonify({
        "message": "User registered successfully",
        "user": public_user(user),
    }), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """Authenticate and receive a bearer token."""
    data = LoginSchema().load(request.get_json(silent=True) or {})
    token, user = AuthService.authenticate(
        data["email"],
        data["password"],
        address=request.remote_addr or "unknown",
        throttle=current_app.extensions["login_throttle"],
    )
    return jsonify({
        "message": "Login successful",
        "token": token,
        "user": public_user(user),
    }), 200


@auth_bp.route("/logout", methods=["POST"])
@require_auth
def logout():
    """Revoke the token used for this request."""
    AuthService.revoke_token(g.current_token_id)
    logger.info("User id=%s logged out", g.current_user.id)
    return jsonify({"message": "Logout successful"}), 200


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    """Get the authenticated user."""
    return jsonify({"user": UserSchema(only=("id", "name", "email", "role")).dump(g.current_user)})
