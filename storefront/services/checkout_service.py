import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError

from storefront.errors import (
    InsufficientStock,
    NotFound,
    PersistenceError,
    StorefrontError,
    ValidationError,
)
from storefront.models.database import db, Order, OrderItem, Product

logger = logging.getLogger(__name__)


class CheckoutService:
    """Turns a cart into an order in one transaction.

    Prices come from the stored products, never from the caller. Stock is
    checked under a row lock and decremented with a conditional update, so
    two checkouts racing for the last units cannot both succeed. Any failure
    rolls back the order, its items and every stock change together.
    """

    @staticmethod
    def merge_lines(items) -> dict:
        """Validate the cart shape and return ``{product_id: quantity}``.

        Repeated product ids are summed; cart order is kept so the first
        offending line is reported consistently.
        """
        if not isinstance(items, (list, tuple)) or not items:
            raise ValidationError({"items": ["The items field is required."]})

        errors = {}
        lines = {}
        for index, item in enumerate(items):
            product_id = item.get("product_id") if isinstance(item, dict) else None
            quantity = item.get("quantity") if isinstance(item, dict) else None

            if not isinstance(product_id, int) or isinstance(product_id, bool):
                errors[f"items.{index}.product_id"] = ["The product id field is required."]
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
                errors[f"items.{index}.quantity"] = ["The quantity must be at least 1."]
            if f"items.{index}.product_id" in errors or f"items.{index}.quantity" in errors:
                continue
            lines[product_id] = lines.get(product_id, 0) + quantity

        if errors:
            raise ValidationError(errors)
        return lines

    @staticmethod
    def _lock_products(product_ids) -> dict:
        # Locks are taken in id order so concurrent carts cannot deadlock
        products = db.session.execute(
            select(Product)
            .where(Product.id.in_(product_ids))
            .order_by(Product.id)
            .with_for_update()
        ).scalars().all()
        return {product.id: product for product in products}

    @staticmethod
    def _decrement_stock(product_id: int, quantity: int, product_name: str = None) -> None:
        result = db.session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
        )
        if result.rowcount != 1:
            available = db.session.execute(
                select(Product.stock).where(Product.id == product_id)
            ).scalar_one()
            raise InsufficientStock(product_id, quantity, available, product_name)

    @staticmethod
    def place_order(customer: dict, address: str, items: list) -> Order:
        """Create an order for ``customer`` shipping to ``address``.

        ``customer`` holds ``name``, ``email`` and optionally ``user_id``;
        ``items`` is a list of ``{"product_id", "quantity"}`` dicts.
        """
        if not address or not str(address).strip():
            raise ValidationError({"address": ["The address field is required."]})
        lines = CheckoutService.merge_lines(items)

        try:
            products = CheckoutService._lock_products(list(lines))

            for product_id, quantity in lines.items():
                product = products.get(product_id)
                if product is None:
                    raise NotFound("Product", product_id)
                if quantity > product.stock:
                    raise InsufficientStock(product_id, quantity, product.stock, product.name)

            total = Decimal("0.00")
            order_items = []
            for product_id, quantity in lines.items():
                price = products[product_id].price
                total += price * quantity
                order_items.append(OrderItem(product_id=product_id, quantity=quantity, price=price))

            for product_id, quantity in lines.items():
                CheckoutService._decrement_stock(product_id, quantity, products[product_id].name)

            order = Order(
                user_id=customer.get("user_id"),
                user_name=customer["name"],
                user_email=customer["email"],
                address=address,
                total=total,
                items=order_items,
            )
            db.session.add(order)
            db.session.commit()
        except StorefrontError as e:
            db.session.rollback()
            logger.warning("Checkout rejected for %s: %s", customer.get("email"), e.message)
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception("Checkout failed while saving order for %s", customer.get("email"))
            raise PersistenceError("Failed to create order") from e

        logger.info("Created order id=%s total=%s lines=%d", order.id, order.total, len(order_items))
        return order
