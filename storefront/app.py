import logging

from flask import Flask, send_from_directory
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from storefront.config.settings import Config
from storefront.models.database import db, configure_sqlite
from storefront.api import admin_bp, auth_bp, catalog_bp, checkout_bp
from storefront.cli import register_commands
from storefront.middleware.error_handler import register_error_handlers
from storefront.services.image_storage import ImageStorage
from storefront.services.login_throttle import LoginThrottle


def create_app(config_object=None, **overrides) -> Flask:
    """Application factory."""
    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    app.config.update(overrides)

    if not app.config.get("JWT_SECRET"):
        raise RuntimeError("JWT_SECRET must be configured")

    logging.getLogger("storefront").setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    with app.app_context():
        configure_sqlite(db.engine)

    CORS(app, origins=app.config["CORS_ORIGINS"])

    Limiter(
        app=app,
        key_func=get_remote_address,
        default_limits=[app.config["RATE_LIMIT_DEFAULT"]],
    )

    app.extensions["login_throttle"] = LoginThrottle(
        max_attempts=app.config["LOGIN_MAX_ATTEMPTS"],
        decay_seconds=app.config["LOGIN_DECAY_SECONDS"],
    )
    app.extensions["image_storage"] = ImageStorage(app.config["UPLOAD_FOLDER"])

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(admin_bp)

    @app.route("/storage/<path:filename>")
    def stored_file(filename):
        return send_from_directory(app.config["UPLOAD_FOLDER"], filename)

    # Register error handlers
    register_error_handlers(app)
    register_commands(app)

    return app
