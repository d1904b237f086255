import logging
from decimal import Decimal

import click
from flask import current_app
from slugify import slugify

from storefront.models.database import db, Category, Product, User
from storefront.services.auth_service import AuthService

logger = logging.getLogger(__name__)

SAMPLE_CATALOG = {
    ("Electronics", "Gadgets, audio and wearables"): [
        ("Wireless Bluetooth Headphones",
         "Noise-cancelling wireless headphones with 30-hour battery life.",
         "149.99", 50),
        ("Smart Watch Pro",
         "Fitness tracking smartwatch with heart rate monitor and GPS.",
         "299.99", 35),
        ("Portable Wireless Speaker",
         "Waterproof Bluetooth speaker with 12-hour playtime.",
         "79.99", 75),
    ],
    ("Clothing", "Apparel and accessories"): [
        ("Classic Denim Jacket",
         "Premium cotton denim jacket with brass buttons.",
         "89.99", 60),
        ("Premium Cotton T-Shirt",
         "Soft, breathable organic cotton t-shirt with a modern fit.",
         "29.99", 100),
    ],
    ("Home & Kitchen", "Everything for the kitchen and living room"): [
        ("Stainless Steel Cookware Set",
         "Ten-piece induction ready cookware set.",
         "199.99", 20),
        ("Ceramic Coffee Mug Set",
         "Set of four dishwasher safe ceramic mugs.",
         "34.99", 80),
    ],
}


def seed_catalog() -> int:
    """Insert the sample catalog; existing categories are left alone."""
    created = 0
    for index, ((name, description), products) in enumerate(SAMPLE_CATALOG.items(), start=1):
        if Category.query.filter_by(name=name).first():
            continue
        category = Category(name=name, slug=slugify(name), description=description)
        db.session.add(category)
        db.session.flush()
        for position, (product_name, product_description, price, stock) in enumerate(products):
            db.session.add(Product(
                category_id=category.id,
                name=product_name,
                slug=slugify(product_name),
                description=product_description,
                price=Decimal(price),
                image=f"https://picsum.photos/400/300?random={index * 10 + position}",
                stock=stock,
            ))
            created += 1
    db.session.commit()
    return created


def seed_admin():
    """Create the configured admin account unless an admin already exists."""
    if User.query.filter_by(role="admin").first():
        return None
    config = current_app.config
    if User.query.filter_by(email=config["SEED_ADMIN_EMAIL"]).first():
        logger.warning("Seed admin email %s belongs to a non-admin user", config["SEED_ADMIN_EMAIL"])
        return None
    return AuthService.register_user(
        config["SEED_ADMIN_NAME"],
        config["SEED_ADMIN_EMAIL"],
        config["SEED_ADMIN_PASSWORD"],
        role="admin",
    )


def register_commands(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        db.create_all()
        click.echo("Database initialized")

    @app.cli.command("seed")
    def seed():
        """Load sample categories, products and an admin account."""
        db.create_all()
        created = seed_catalog()
        click.echo(f"Seeded {created} product(s)")
        admin = seed_admin()
        if admin is not None:
            click.echo(f"Created admin {admin.email}")

    @app.cli.command("create-admin")
    @click.argument("name")
    @click.argument("email")
    @click.argument("password")
    def create_admin(name, email, password):
        """Create an admin account."""
        if User.query.filter_by(email=email).first():
            raise click.ClickException(f"{email} is already registered")
        user = AuthService.register_user(name, email, password, role="admin")
        logger.info("Created admin id=%s from the command line", user.id)
        click.echo(f"Created admin {email}")

    @app.cli.command("prune-tokens")
    def prune_tokens():
        """Delete expired access tokens."""
        deleted = AuthService.prune_expired_tokens()
        click.echo(f"Pruned {deleted} expired token(s)")
