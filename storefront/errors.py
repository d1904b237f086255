"""Exception taxonomy shared by services and the HTTP error handlers.

Services raise these; ``storefront.middleware.error_handler`` turns them
into JSON responses. Every error carries a human-readable ``message`` and
an HTTP ``status_code``.
"""

from typing import Optional


class StorefrontError(Exception):
    status_code = 500
    message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(StorefrontError):
    status_code = 422
    message = "Validation failed"

    def __init__(self, errors: dict, message: Optional[str] = None):
        super().__init__(message)
        self.errors = errors

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class NotFound(StorefrontError):
    status_code = 404

    def __init__(self, resource: str, resource_id=None):
        self.resource = resource
        self.resource_id = resource_id
        if resource_id is None:
            super().__init__(f"{resource} not found")
        else:
            super().__init__(f"{resource} {resource_id} not found")


class InsufficientStock(StorefrontError):
    status_code = 400

    def __init__(self, product_id: int, requested: int, available: int,
                 product_name: Optional[str] = None):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        label = product_name or f"#{product_id}"
        super().__init__(f"Insufficient stock for product: {label}")

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "product_id": self.product_id,
            "requested": self.requested,
            "available": self.available,
        }


class Unauthorized(StorefrontError):
    status_code = 401
    message = "Authentication required"


class InvalidCredentials(Unauthorized):
    message = "The provided credentials are incorrect."

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": {"email": [self.message]}}


class Forbidden(StorefrontError):
    status_code = 403
    message = "Admin access required"


class Conflict(StorefrontError):
    status_code = 422


class HasDependents(Conflict):
    def __init__(self, count: int, resource: str = "category", dependents: str = "products"):
        self.count = count
        self.error = (
            f"This {resource} has {count} {dependents}. "
            "Please reassign or delete them first."
        )
        super().__init__(f"Cannot delete {resource} with associated {dependents}")

    def to_dict(self) -> dict:
        return {"message": self.message, "error": self.error, "count": self.count}


class RateLimited(StorefrontError):
    status_code = 429

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        minutes = max(1, -(-retry_after // 60))
        super().__init__(
            f"Too many login attempts. Please try again in {minutes} minute(s)."
        )

    def to_dict(self) -> dict:
        return {"message": self.message, "retry_after": self.retry_after}


class PersistenceError(StorefrontError):
    status_code = 500
    message = "Failed to save changes"
