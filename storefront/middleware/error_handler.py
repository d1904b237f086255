import logging

from flask import jsonify
from marshmallow import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from storefront.errors import PersistenceError, StorefrontError
from storefront.models.database import db

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    """Translate service and framework errors into JSON responses."""

    @app.errorhandler(StorefrontError)
    def handle_storefront_error(error):
        if isinstance(error, PersistenceError):
            db.session.rollback()
        response = jsonify(error.to_dict())
        response.status_code = error.status_code
        if getattr(error, "retry_after", None):
            response.headers["Retry-After"] = str(error.retry_after)
        return response

    @app.errorhandler(SchemaValidationError)
    def handle_schema_error(error):
        return jsonify({"message": "Validation failed", "errors": error.normalized_messages()}), 422

    @app.errorhandler(429)
    def handle_rate_limit(error):
        return jsonify({"message": f"Rate limit exceeded: {error.description}"}), 429

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(error):
        db.session.rollback()
        logger.exception("Unhandled database error")
        return jsonify({"message": PersistenceError.message}), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception("Unhandled error")
        return jsonify({"message": "An unexpected error occurred"}), 500
