# Overview: Flask CLI command groups for bootstrap, operator accounts and demo data.

# backend/verger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Create all tables and the default operator account (idempotent).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Operator accounts:
# - python -m flask users create --email ops@verger.local --password "Password123"
#   Create an operator (prompts if options are omitted).
# - python -m flask users list
#
# Catalog and stock:
# - python -m flask catalog seed
#   Insert demo fruits with inventory records and a couple of customers.
# - python -m flask catalog stock
#   Print on-hand quantities per product.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Customer, InventoryRecord, Product, User
from .services.auth_service import create_user, PasswordValidationError
from .services import inventory_service


DEFAULT_OPERATOR_EMAIL = "admin@verger.local"
DEFAULT_OPERATOR_PASSWORD = "Password123"

DEMO_PRODUCTS = [
    # name, price per kg, category, origin, on-hand kg
    ("Mangue Kent", 4.20, "Tropical", "Pérou", 850.0),
    ("Ananas Victoria", 3.10, "Tropical", "Réunion", 420.0),
    ("Avocat Hass", 5.60, "Tropical", "Kenya", 600.0),
    ("Citron vert", 2.40, "Agrumes", "Brésil", 300.0),
    ("Orange Navel", 1.80, "Agrumes", "Espagne", 1200.0),
    ("Banane Cavendish", 1.35, "Tropical", "Côte d'Ivoire", 2000.0),
    ("Fruit de la passion", 9.50, "Exotique", "Colombie", 75.5),
]

DEMO_CUSTOMERS = [
    ("Primeurs du Sud", "Claire Martin", "achats@primeurs-sud.example", "Marseille", "France"),
    ("FreshHandel GmbH", "Jonas Weber", "einkauf@freshhandel.example", "Hamburg", "Allemagne"),
]


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--email', default=DEFAULT_OPERATOR_EMAIL, help='Default operator email')
@with_appcontext
def init_system(email):
    """
    Create the schema and the default operator account.

    The default password is "Password123". Change it in production!
    """
    click.echo("START Initializing back-office database...")

    db.create_all()
    click.echo("PASS Tables created")

    existing = db.session.query(User).filter_by(email=email.strip().lower()).first()
    if existing:
        click.echo(f"WARN  Operator '{existing.email}' already exists, skipping...")
    else:
        try:
            user = create_user(email, DEFAULT_OPERATOR_PASSWORD, display_name="Administrateur")
            click.echo(f"PASS Created operator: {user.email}")
        except PasswordValidationError as e:
            click.echo(f"FAIL Password validation failed: {str(e)}")
            return

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo(f"   {email} / {DEFAULT_OPERATOR_PASSWORD}")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """Operator account commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--name', 'display_name', default=None, help='Display name')
@with_appcontext
def create_user_cli(email, password, display_name):
    """
    Create an operator account.

    Password must be at least 8 characters with a letter and a digit.
    """
    try:
        user = create_user(email, password, display_name=display_name)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {str(e)}")
        click.echo("Requirements: 8+ chars, at least one letter and one digit")
        return
    except ValueError as e:
        click.echo(f"FAIL {str(e)}")
        return

    click.echo(f"PASS Created operator: {user.email} (ID: {user.id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List operator accounts."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No operators found. Run 'python -m flask system init' first.")
        return

    for user in users:
        status = "active" if user.is_active else "inactive"
        click.echo(f"  {user.id:>4}  {user.email:<40} {status}")


@click.group('catalog')
def catalog_group():
    """Catalog and stock commands."""


@catalog_group.command('seed')
@with_appcontext
def seed_catalog():
    """Insert demo products, stock levels and customers (skips existing names)."""
    created = 0
    for name, price, category, origin, quantity in DEMO_PRODUCTS:
        if db.session.query(Product).filter_by(name=name).first():
            click.echo(f"WARN  Product '{name}' already exists, skipping...")
            continue
        product = Product(name=name, price=price, category=category, origin_country=origin)
        db.session.add(product)
        db.session.commit()
        inventory_service.set_stock(product.id, quantity, unit="kg")
        created += 1
    click.echo(f"PASS Created {created} products with inventory")

    created = 0
    for company, contact, email, city, country in DEMO_CUSTOMERS:
        if db.session.query(Customer).filter_by(company_name=company).first():
            continue
        db.session.add(Customer(
            company_name=company, contact_name=contact, email=email, city=city, country=country,
        ))
        created += 1
    db.session.commit()
    click.echo(f"PASS Created {created} customers")


@catalog_group.command('stock')
@with_appcontext
def show_stock():
    """Print on-hand quantity per product."""
    rows = (
        db.session.query(Product.id, Product.name, InventoryRecord.quantity, InventoryRecord.unit)
        .outerjoin(InventoryRecord, InventoryRecord.product_id == Product.id)
        .order_by(Product.name.asc())
        .all()
    )
    for product_id, name, quantity, unit in rows:
        if quantity is None:
            click.echo(f"  {product_id:>4}  {name:<30} (no inventory record)")
        else:
            click.echo(f"  {product_id:>4}  {name:<30} {quantity:>10.2f} {unit}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(catalog_group)
