import threading

import pytest

from storefront.app import create_app
from storefront.config.settings import TestingConfig
from storefront.errors import InsufficientStock
from storefront.models.database import db, Order, Product
from storefront.services.checkout_service import CheckoutService
from tests.factories import make_category, make_product


@pytest.fixture
def file_app(tmp_path):
    """An app on a file database so each thread gets its own connection."""
    app = create_app(
        TestingConfig,
        SQLALCHEMY_DATABASE_URI=f"sqlite:///{tmp_path / 'race.db'}",
        UPLOAD_FOLDER=str(tmp_path / "storage"),
    )
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def race(app, product_id, quantity, workers=2):
    barrier = threading.Barrier(workers)
    outcomes = []
    lock = threading.Lock()

    def buy(index):
        with app.app_context():
            barrier.wait()
            try:
                order = CheckoutService.place_order(
                    {"name": f"Buyer {index}", "email": f"buyer{index}@example.com"},
                    "1 Main Street",
                    [{"product_id": product_id, "quantity": quantity}],
                )
                result = ("ok", order.id)
            except InsufficientStock as e:
                result = ("insufficient", e.available)
            with lock:
                outcomes.append(result)

    threads = [threading.Thread(target=buy, args=(i,)) for i in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return outcomes


def test_concurrent_checkouts_for_full_stock_cannot_both_succeed(file_app):
    with file_app.app_context():
        category = make_category("Limited", "limited")
        product_id = make_product(category, "Last Units", "10.00", 5).id

    outcomes = race(file_app, product_id, quantity=5)

    assert len(outcomes) == 2
    assert sorted(kind for kind, _ in outcomes) == ["insufficient", "ok"]
    with file_app.app_context():
        assert db.session.get(Product, product_id).stock == 0
        assert Order.query.count() == 1


def test_concurrent_checkouts_never_oversell(file_app):
    with file_app.app_context():
        category = make_category("Limited", "limited")
        product_id = make_product(category, "Scarce", "3.00", 7).id

    outcomes = race(file_app, product_id, quantity=2, workers=5)

    successes = [o for o in outcomes if o[0] == "ok"]
    assert len(outcomes) == 5
    assert len(successes) == 3
    with file_app.app_context():
        assert db.session.get(Product, product_id).stock == 1
        assert Order.query.count() == 3
