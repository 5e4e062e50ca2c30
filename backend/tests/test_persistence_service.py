"""
Persistence service tests.

Verifies CRUD by collection name and the translation of database failures
into PersistenceError codes.
"""

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from verger.errors import (
    FOREIGN_KEY_VIOLATION,
    NOT_NULL_VIOLATION,
    UNIQUE_VIOLATION,
    UNDEFINED_TABLE,
    NotFoundError,
    PersistenceError,
    database_error_code,
    handle_database_error,
)
from verger.services.persistence_service import PersistenceService, jsonable_row


@pytest.fixture
def store(db_session):
    return PersistenceService()


class TestCrud:

    def test_insert_and_select(self, store, customer):
        rows = store.insert("sales", {"customer_id": customer.id, "total_amount": 12.5})
        assert rows[0]["id"] is not None
        assert rows[0]["status"] == "pending"
        assert store.select("sales", customer_id=customer.id)[0]["total_amount"] == 12.5

    def test_select_order_and_in_filter(self, store, customer):
        a, b, c = store.insert("sales", [
            {"customer_id": customer.id, "total_amount": 1.0},
            {"customer_id": customer.id, "total_amount": 2.0},
            {"customer_id": customer.id, "total_amount": 3.0},
        ])
        rows = store.select("sales", order_by="-id", id=[a["id"], c["id"]])
        assert [r["id"] for r in rows] == [c["id"], a["id"]]

    def test_single_raises_not_found(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            store.single("sales", id=999)
        assert exc_info.value.status == 404
        assert exc_info.value.message == "Aucune donnée trouvée"

    def test_update_and_upsert(self, store, customer):
        sale = store.insert("sales", {"customer_id": customer.id, "total_amount": 1.0})[0]
        updated = store.update("sales", {"status": "processing"}, id=sale["id"])
        assert updated[0]["status"] == "processing"

        rows = store.upsert("sales", [
            {"id": sale["id"], "customer_id": customer.id, "total_amount": 4.0},
            {"customer_id": customer.id, "total_amount": 5.0},
        ])
        assert rows[0]["id"] == sale["id"]
        assert rows[0]["total_amount"] == 4.0
        assert rows[1]["id"] != sale["id"]
        assert len(store.select("sales")) == 2

    def test_delete_returns_deleted_rows(self, store, customer):
        sale = store.insert("sales", {"customer_id": customer.id, "total_amount": 1.0})[0]
        deleted = store.delete("sales", id=sale["id"])
        assert [r["id"] for r in deleted] == [sale["id"]]
        assert store.select("sales") == []

    def test_unfiltered_update_and_delete_are_refused(self, store):
        with pytest.raises(PersistenceError):
            store.update("sales", {"status": "completed"})
        with pytest.raises(PersistenceError):
            store.delete("sales")

    def test_jsonable_row(self, store, customer):
        sale = store.insert("sales", {"customer_id": customer.id, "total_amount": 1.0})[0]
        body = jsonable_row(sale)
        assert body["created_at"].endswith("Z")
        assert jsonable_row(None) is None


class TestDatabaseErrors:

    def test_unknown_collection(self, store):
        with pytest.raises(PersistenceError) as exc_info:
            store.select("suppliers")
        assert exc_info.value.code == UNDEFINED_TABLE
        assert exc_info.value.status == 500

    def test_unknown_column(self, store):
        with pytest.raises(PersistenceError) as exc_info:
            store.select("sales", colour="red")
        assert exc_info.value.status == 400

    def test_foreign_key_violation(self, store):
        with pytest.raises(PersistenceError) as exc_info:
            store.insert("sales", {"customer_id": 4242, "total_amount": 1.0})
        assert exc_info.value.code == FOREIGN_KEY_VIOLATION
        assert exc_info.value.status == 400
        assert exc_info.value.message == "Référence invalide"

    def test_unique_violation(self, store, customer):
        store.insert("sales", {"customer_id": customer.id, "request_token": "tok-1"})
        with pytest.raises(PersistenceError) as exc_info:
            store.insert("sales", {"customer_id": customer.id, "request_token": "tok-1"})
        assert exc_info.value.code == UNIQUE_VIOLATION
        assert exc_info.value.status == 409

    def test_not_null_violation(self, store):
        with pytest.raises(PersistenceError) as exc_info:
            store.insert("customers", {"company_name": None})
        assert exc_info.value.code == NOT_NULL_VIOLATION

    def test_session_usable_after_failure(self, store, customer):
        with pytest.raises(PersistenceError):
            store.insert("sales", {"customer_id": 4242})
        assert store.insert("sales", {"customer_id": customer.id})[0]["id"] is not None


class _PgOrig(Exception):
    pgcode = "23503"


def test_pgcode_is_preferred():
    exc = IntegrityError("INSERT ...", {}, _PgOrig("fk"))
    assert database_error_code(exc) == FOREIGN_KEY_VIOLATION


def test_operational_error_without_code():
    exc = OperationalError("SELECT 1", {}, Exception("disk I/O error"))
    error = handle_database_error(exc)
    assert error.code == "OPERATIONAL_ERROR"
    assert error.status == 500
    assert error.message == "Une erreur est survenue"
    assert "disk I/O error" in error.detail
