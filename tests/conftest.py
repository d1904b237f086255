import pytest

from storefront.app import create_app
from storefront.config.settings import TestingConfig
from storefront.models.database import db
from storefront.services.auth_service import AuthService
from tests.factories import FakeClock, auth_headers, make_category, make_product


@pytest.fixture
def app(tmp_path):
    app = create_app(TestingConfig, UPLOAD_FOLDER=str(tmp_path / "storage"))
    ctx = app.app_context()
    ctx.push()
    db.create_all()

    yield app

    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def clock(app):
    fake = FakeClock()
    app.extensions["login_throttle"].clock = fake
    return fake


@pytest.fixture
def admin(app):
    return AuthService.register_user("Admin", "admin@example.com", "password123", role="admin")


@pytest.fixture
def customer(app):
    return AuthService.register_user("Jane Doe", "jane@example.com", "password123")


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def customer_headers(customer):
    return auth_headers(customer)


@pytest.fixture
def catalog(app):
    """Two categories and four products."""
    electronics = make_category("Electronics", "electronics", "Electronic devices")
    clothing = make_category("Clothing", "clothing", "Apparel and accessories")

    products = {
        "laptop": make_product(electronics, "Laptop Computer", "999.99", 10,
                               "High-performance laptop for professionals"),
        "phone": make_product(electronics, "Smartphone", "699.99", 25,
                              "Latest model smartphone with great camera"),
        "shirt": make_product(clothing, "T-Shirt", "19.99", 100,
                              "Comfortable cotton t-shirt"),
        "headphones": make_product(electronics, "Wireless Headphones", "199.99", 15,
                                   "Noise-cancelling wireless headphones"),
    }
    return {"electronics": electronics, "clothing": clothing, **products}
