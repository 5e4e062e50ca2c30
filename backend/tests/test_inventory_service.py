"""
Inventory ledger tests.

Verifies:
- Guarded decrements never drive quantity below zero
- Untracked products are reported as NotFound, not as zero stock rows
- Snapshots only contain products with a ledger record
"""

import pytest

from verger.errors import NotFoundError
from verger.services import inventory_service
from verger.services.inventory_service import InsufficientStockError


class TestDecrement:

    def test_decrement_returns_new_quantity(self, make_product):
        pid = make_product("Mangue Kent", 4.2, stock=10)
        assert inventory_service.decrement(pid, 3) == pytest.approx(7.0)
        assert inventory_service.get_quantity(pid) == (7.0, "kg")

    def test_decrement_to_exactly_zero(self, make_product):
        pid = make_product("Avocat Hass", 5.6, stock=2.5)
        assert inventory_service.decrement(pid, 2.5) == 0.0

    def test_decrement_beyond_stock_is_refused(self, make_product):
        pid = make_product("Fruit de la passion", 9.5, stock=2)
        with pytest.raises(InsufficientStockError) as exc_info:
            inventory_service.decrement(pid, 5)
        assert exc_info.value.product_ids == [pid]
        assert exc_info.value.status == 409
        assert inventory_service.get_quantity(pid)[0] == 2.0

    def test_decrement_untracked_product(self, make_product):
        pid = make_product("Ananas Victoria", 3.1)
        with pytest.raises(NotFoundError):
            inventory_service.decrement(pid, 1)

    def test_negative_amount(self, make_product):
        pid = make_product("Orange Navel", 1.8, stock=1)
        with pytest.raises(ValueError):
            inventory_service.decrement(pid, -1)


class TestRestoreAndStock:

    def test_restore_adds_back(self, make_product):
        pid = make_product("Banane Cavendish", 1.35, stock=4)
        assert inventory_service.restore(pid, 1.5) == pytest.approx(5.5)

    def test_restore_untracked_product(self, make_product):
        pid = make_product("Citron vert", 2.4)
        with pytest.raises(NotFoundError):
            inventory_service.restore(pid, 1)

    def test_set_stock_overwrites(self, make_product):
        pid = make_product("Orange Navel", 1.8, stock=12)
        record = inventory_service.set_stock(pid, 30, unit="caisse", storage_location="Quai B")
        assert record.quantity == 30
        assert inventory_service.get_quantity(pid) == (30.0, "caisse")

    def test_set_stock_negative(self, make_product):
        pid = make_product("Orange Navel", 1.8)
        with pytest.raises(ValueError):
            inventory_service.set_stock(pid, -1)

    def test_set_stock_unknown_product(self, db_session):
        with pytest.raises(NotFoundError):
            inventory_service.set_stock(12345, 1)


class TestSnapshot:

    def test_snapshot_skips_untracked(self, make_product):
        tracked = make_product("Mangue Kent", 4.2, stock=8)
        untracked = make_product("Ananas Victoria", 3.1)
        snap = inventory_service.snapshot({tracked, untracked})
        assert set(snap) == {tracked}
        assert snap[tracked].quantity == 8.0

    def test_snapshot_reflects_decrements(self, make_product):
        pid = make_product("Mangue Kent", 4.2, stock=8)
        inventory_service.snapshot()
        inventory_service.decrement(pid, 2)
        assert inventory_service.snapshot([pid])[pid].quantity == 6.0

    def test_empty_selection(self, db_session):
        assert inventory_service.snapshot([]) == {}

    def test_list_inventory_includes_product_name(self, make_product):
        make_product("Mangue Kent", 4.2, stock=8)
        rows = inventory_service.list_inventory()
        assert rows[0]["product_name"] == "Mangue Kent"
        assert rows[0]["unit"] == "kg"
