"""
CLI command tests (flask system / users / catalog groups).
"""

from verger.extensions import db
from verger.models import Customer, InventoryRecord, Product, User


def test_system_init_creates_default_operator(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["system", "init"])
    assert result.exit_code == 0
    assert "PASS Created operator: admin@verger.local" in result.output

    again = runner.invoke(args=["system", "init"])
    assert "already exists" in again.output
    assert db.session.query(User).count() == 1


def test_users_create(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=[
        "users", "create", "--email", "Compta@Verger.local", "--password", "Factures2026",
    ])
    assert result.exit_code == 0
    assert db.session.query(User).filter_by(email="compta@verger.local").count() == 1

    weak = runner.invoke(args=["users", "create", "--email", "x@verger.local", "--password", "court"])
    assert "FAIL Password validation failed" in weak.output


def test_catalog_seed_is_idempotent(app, db_session):
    runner = app.test_cli_runner()
    first = runner.invoke(args=["catalog", "seed"])
    assert first.exit_code == 0
    products = db.session.query(Product).count()
    assert products > 0
    assert db.session.query(InventoryRecord).count() == products
    assert db.session.query(Customer).count() == 2

    runner.invoke(args=["catalog", "seed"])
    assert db.session.query(Product).count() == products

    stock = runner.invoke(args=["catalog", "stock"])
    assert "Mangue Kent" in stock.output
