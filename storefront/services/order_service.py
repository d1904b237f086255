from sqlalchemy import select
from sqlalchemy.orm import joinedload, selectinload

from storefront.models.database import Order, OrderItem, Product
from storefront.services.query import apply_search, apply_sort, paginate

ORDER_SORTS = {
    "created_at": Order.created_at,
    "total": Order.total,
    "user_name": Order.user_name,
}


class OrderService:
    """Read access to placed orders for the back-office."""

    @staticmethod
    def list_orders(search=None, sort=None, order=None, page=1, per_page=None):
        """Paginated orders with their items and products loaded."""
        stmt = select(Order).options(
            selectinload(Order.items)
            .joinedload(OrderItem.product)
            .joinedload(Product.category)
        )
        stmt = apply_search(stmt, search, Order.user_name, Order.user_email)
        stmt = apply_sort(stmt, sort, order, ORDER_SORTS,
                          default=("created_at", "desc"), tiebreak=Order.id)
        return paginate(stmt, page, per_page)
