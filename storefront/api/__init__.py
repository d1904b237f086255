from storefront.api.admin import admin_bp
from storefront.api.auth import auth_bp
from storefront.api.catalog import catalog_bp
from storefront.api.checkout import checkout_bp

__all__ = ["admin_bp", "auth_bp", "catalog_bp", "checkout_bp"]
