from storefront.models.database import (
    db,
    AccessToken,
    Category,
    Order,
    OrderItem,
    Product,
    User,
)

__all__ = ["db", "AccessToken", "Category", "Order", "OrderItem", "Product", "User"]
