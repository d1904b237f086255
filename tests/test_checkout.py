from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from storefront.errors import InsufficientStock, NotFound, PersistenceError, ValidationError
from storefront.models.database import db, Order, OrderItem, Product
from storefront.services.checkout_service import CheckoutService
from tests.factories import make_category, make_product


@pytest.fixture
def gadget(app):
    category = make_category("Gadgets", "gadgets")
    return make_product(category, "Gadget", "19.99", 5)


@pytest.fixture
def widget(app):
    category = make_category("Widgets", "widgets")
    return make_product(category, "Widget", "4.25", 10)


CUSTOMER = {"name": "Jane Doe", "email": "jane@example.com"}


def stock_of(product_id):
    db.session.expire_all()
    return db.session.get(Product, product_id).stock


def test_checkout_computes_total_and_decrements_stock(client, customer_headers, gadget):
    response = client.post("/api/checkout", headers=customer_headers, json={
        "address": "1 Main Street, Springfield",
        "items": [{"product_id": gadget.id, "quantity": 3}],
    })

    assert response.status_code == 201
    order = response.get_json()["order"]
    assert order["total"] == 59.97
    assert order["user_name"] == "Jane Doe"
    assert order["user_email"] == "jane@example.com"
    assert order["order_items"][0]["price"] == 19.99
    assert order["order_items"][0]["quantity"] == 3
    assert stock_of(gadget.id) == 2


def test_checkout_over_stock_is_rejected_and_stock_untouched(client, customer_headers, gadget):
    response = client.post("/api/checkout", headers=customer_headers, json={
        "address": "1 Main Street, Springfield",
        "items": [{"product_id": gadget.id, "quantity": 6}],
    })

    assert response.status_code == 400
    body = response.get_json()
    assert body["message"] == "Insufficient stock for product: Gadget"
    assert body["requested"] == 6
    assert body["available"] == 5
    assert stock_of(gadget.id) == 5
    assert Order.query.count() == 0


def test_client_supplied_prices_are_ignored(client, customer_headers, gadget):
    response = client.post("/api/checkout", headers=customer_headers, json={
        "address": "1 Main Street, Springfield",
        "items": [{"product_id": gadget.id, "quantity": 1, "price": 0.01}],
    })

    assert response.status_code == 201
    assert response.get_json()["order"]["total"] == 19.99


def test_checkout_requires_authentication(client, gadget):
    response = client.post("/api/checkout", json={
        "address": "1 Main Street",
        "items": [{"product_id": gadget.id, "quantity": 1}],
    })
    assert response.status_code == 401


def test_checkout_validates_cart_shape(client, customer_headers):
    response = client.post("/api/checkout", headers=customer_headers, json={
        "items": [{"product_id": 1, "quantity": 0}],
    })

    assert response.status_code == 422
    errors = response.get_json()["errors"]
    assert "address" in errors
    assert "items" in errors


def test_checkout_unknown_product_is_404(client, customer_headers, gadget):
    response = client.post("/api/checkout", headers=customer_headers, json={
        "address": "1 Main Street",
        "items": [
            {"product_id": gadget.id, "quantity": 1},
            {"product_id": 4040, "quantity": 1},
        ],
    })

    assert response.status_code == 404
    assert stock_of(gadget.id) == 5


def test_total_is_sum_of_item_lines(gadget, widget):
    order = CheckoutService.place_order(CUSTOMER, "1 Main Street", [
        {"product_id": gadget.id, "quantity": 2},
        {"product_id": widget.id, "quantity": 3},
    ])

    assert order.total == Decimal("52.73")
    assert order.total == sum(item.price * item.quantity for item in order.items)
    assert [item.price for item in order.items] == [Decimal("19.99"), Decimal("4.25")]


def test_item_price_is_a_snapshot(gadget):
    order = CheckoutService.place_order(CUSTOMER, "1 Main Street", [
        {"product_id": gadget.id, "quantity": 1},
    ])

    product = db.session.get(Product, gadget.id)
    product.price = Decimal("25.00")
    db.session.commit()

    item = db.session.get(OrderItem, order.items[0].id)
    assert item.price == Decimal("19.99")


def test_guest_order_has_no_user(gadget):
    order = CheckoutService.place_order(CUSTOMER, "1 Main Street", [
        {"product_id": gadget.id, "quantity": 1},
    ])
    assert order.user_id is None


def test_repeated_lines_are_checked_against_combined_quantity(gadget):
    with pytest.raises(InsufficientStock) as excinfo:
        CheckoutService.place_order(CUSTOMER, "1 Main Street", [
            {"product_id": gadget.id, "quantity": 3},
            {"product_id": gadget.id, "quantity": 3},
        ])

    assert excinfo.value.requested == 6
    assert stock_of(gadget.id) == 5


def test_first_offending_line_is_reported(gadget, widget):
    with pytest.raises(InsufficientStock) as excinfo:
        CheckoutService.place_order(CUSTOMER, "1 Main Street", [
            {"product_id": widget.id, "quantity": 11},
            {"product_id": gadget.id, "quantity": 6},
        ])

    assert excinfo.value.product_id == widget.id
    assert stock_of(widget.id) == 10
    assert stock_of(gadget.id) == 5


def test_no_partial_stock_change_when_a_later_line_fails(gadget, widget):
    with pytest.raises(InsufficientStock):
        CheckoutService.place_order(CUSTOMER, "1 Main Street", [
            {"product_id": widget.id, "quantity": 2},
            {"product_id": gadget.id, "quantity": 9},
        ])

    assert stock_of(widget.id) == 10
    assert Order.query.count() == 0


def test_storage_failure_rolls_back_everything(monkeypatch, gadget, widget):
    original = CheckoutService._decrement_stock
    calls = []

    def flaky_decrement(product_id, quantity, product_name=None):
        calls.append(product_id)
        if len(calls) == 2:
            raise OperationalError("UPDATE products", {}, Exception("disk I/O error"))
        original(product_id, quantity, product_name)

    monkeypatch.setattr(CheckoutService, "_decrement_stock", staticmethod(flaky_decrement))

    with pytest.raises(PersistenceError):
        CheckoutService.place_order(CUSTOMER, "1 Main Street", [
            {"product_id": gadget.id, "quantity": 1},
            {"product_id": widget.id, "quantity": 1},
        ])

    assert stock_of(gadget.id) == 5
    assert stock_of(widget.id) == 10
    assert Order.query.count() == 0
    assert OrderItem.query.count() == 0


def test_service_rejects_malformed_lines(gadget):
    with pytest.raises(ValidationError) as excinfo:
        CheckoutService.place_order(CUSTOMER, "1 Main Street", [
            {"product_id": gadget.id, "quantity": -1},
            {"quantity": 1},
        ])

    assert set(excinfo.value.errors) == {"items.0.quantity", "items.1.product_id"}


def test_service_rejects_empty_cart(app):
    with pytest.raises(ValidationError):
        CheckoutService.place_order(CUSTOMER, "1 Main Street", [])


def test_service_unknown_product(app):
    with pytest.raises(NotFound):
        CheckoutService.place_order(CUSTOMER, "1 Main Street", [{"product_id": 1, "quantity": 1}])


def test_stock_taken_after_the_lock_read_names_the_product(monkeypatch, gadget):
    original = CheckoutService._lock_products

    def lock_then_sell_out(product_ids):
        products = original(product_ids)
        # Another buyer empties the shelf without the session noticing
        db.session.execute(
            update(Product).where(Product.id == gadget.id).values(stock=0),
            execution_options={"synchronize_session": False},
        )
        return products

    monkeypatch.setattr(CheckoutService, "_lock_products", staticmethod(lock_then_sell_out))

    with pytest.raises(InsufficientStock) as excinfo:
        CheckoutService.place_order(CUSTOMER, "1 Main Street", [{"product_id": gadget.id, "quantity": 2}])

    assert excinfo.value.message == "Insufficient stock for product: Gadget"
    assert excinfo.value.available == 0
    assert stock_of(gadget.id) == 5
    assert Order.query.count() == 0
