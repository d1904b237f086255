from functools import wraps
from flask import request, g

from storefront.errors import Forbidden, Unauthorized
from storefront.services.auth_service import AuthService


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return ""
    return token.strip()


def require_auth(f):
    """Middleware to require a live bearer token."""
    @wraps(f)
    def decorated(*args, **kwargs):
        token = bearer_token()
        if not token:
            raise Unauthorized()

        g.current_user, g.current_token_id = AuthService.resolve_token(token)
        return f(*args, **kwargs)
    return decorated


def require_admin(f):
    """Middleware to require admin role."""
    @wraps(f)
    @require_auth
    def decorated(*args, **kwargs):
        if not g.current_user.is_admin:
            raise Forbidden()
        return f(*args, **kwargs)
    return decorated
