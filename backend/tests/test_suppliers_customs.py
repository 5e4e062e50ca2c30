"""
Supplier, shipment and customs clearance API tests.
"""

import pytest

from verger.extensions import db
from verger.models import CustomsClearance, Shipment


class TestSuppliers:

    def test_crud(self, client, headers, db_session):
        resp = client.post("/api/suppliers", json={
            "company_name": "Finca Los Andes",
            "country": "Pérou",
            "email": "ventas@losandes.example",
            "product_categories": ["avocats", " mangues ", ""],
        }, headers=headers)
        assert resp.status_code == 201
        supplier = resp.json["supplier"]
        assert supplier["product_categories"] == ["avocats", "mangues"]

        resp = client.put(f"/api/suppliers/{supplier['id']}", json={"phone": "+51 1 555 0100"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json["supplier"]["phone"] == "+51 1 555 0100"
        assert resp.json["supplier"]["company_name"] == "Finca Los Andes"

        assert client.get(f"/api/suppliers/{supplier['id']}", headers=headers).status_code == 200
        assert client.delete(f"/api/suppliers/{supplier['id']}", headers=headers).status_code == 200
        assert client.get(f"/api/suppliers/{supplier['id']}", headers=headers).status_code == 404

    def test_list_is_ordered_and_searchable(self, client, headers, db_session):
        for name, country in [("Zest Citrus", "Espagne"), ("Agrumes du Maroc", "Maroc")]:
            client.post("/api/suppliers", json={"company_name": name, "country": country}, headers=headers)

        names = [s["company_name"] for s in client.get("/api/suppliers", headers=headers).json["items"]]
        assert names == ["Agrumes du Maroc", "Zest Citrus"]

        found = client.get("/api/suppliers?search=ESPAGNE", headers=headers).json["items"]
        assert [s["company_name"] for s in found] == ["Zest Citrus"]

    @pytest.mark.parametrize(
        "body,message",
        [
            ({}, "Missing required fields: company_name"),
            ({"company_name": ""}, "company_name cannot be blank"),
            ({"company_name": "X", "email": "pas-un-email"}, "Email invalide"),
            ({"company_name": "X", "product_categories": "agrumes"}, "product_categories must be a list of strings"),
        ],
    )
    def test_invalid_supplier(self, client, headers, db_session, body, message):
        resp = client.post("/api/suppliers", json=body, headers=headers)
        assert resp.status_code == 400
        assert resp.json["error"] == message

    def test_update_unknown_is_404(self, client, headers, db_session):
        assert client.put("/api/suppliers/999", json={"phone": "1"}, headers=headers).status_code == 404
        assert client.delete("/api/suppliers/999", headers=headers).status_code == 404


class TestShipments:

    def test_create_and_list(self, client, headers, db_session):
        resp = client.post("/api/shipments", json={"tracking_number": "MSCU1234567", "carrier": "MSC"}, headers=headers)
        assert resp.status_code == 201
        items = client.get("/api/shipments", headers=headers).json["items"]
        assert [s["tracking_number"] for s in items] == ["MSCU1234567"]

    def test_duplicate_tracking_number_is_409(self, client, headers, db_session):
        client.post("/api/shipments", json={"tracking_number": "MSCU1234567"}, headers=headers)
        resp = client.post("/api/shipments", json={"tracking_number": "MSCU1234567"}, headers=headers)
        assert resp.status_code == 409
        assert resp.json["code"] == "23505"


class TestCustomsClearance:

    @pytest.fixture
    def shipment(self, db_session):
        shipment = Shipment(tracking_number="MAEU7654321", carrier="Maersk")
        db_session.add(shipment)
        db_session.commit()
        return shipment.id

    def test_crud(self, client, headers, shipment):
        resp = client.post("/api/customs-clearances", json={
            "shipment_id": shipment,
            "declaration_number": "DAU-2026-0042",
            "customs_fees": "180,50",
            "clearance_date": "2026-10-19",
            "documents_url": ["https://docs.example/dau-0042.pdf"],
        }, headers=headers)
        assert resp.status_code == 201
        clearance = resp.json["clearance"]
        assert clearance["status"] == "pending"
        assert clearance["customs_fees"] == pytest.approx(180.5)
        assert clearance["shipment"] == {"tracking_number": "MAEU7654321", "carrier": "Maersk"}

        resp = client.put(f"/api/customs-clearances/{clearance['id']}", json={"status": "completed"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json["clearance"]["status"] == "completed"
        assert resp.json["clearance"]["declaration_number"] == "DAU-2026-0042"

        resp = client.delete(f"/api/customs-clearances/{clearance['id']}", headers=headers)
        assert resp.status_code == 200
        assert db.session.query(CustomsClearance).count() == 0

    def test_search(self, client, headers, shipment):
        client.post("/api/customs-clearances", json={"shipment_id": shipment, "status": "blocked"}, headers=headers)

        assert len(client.get("/api/customs-clearances?search=maeu", headers=headers).json["items"]) == 1
        assert len(client.get("/api/customs-clearances?search=BLOCKED", headers=headers).json["items"]) == 1
        assert client.get("/api/customs-clearances?search=dau", headers=headers).json["items"] == []

    @pytest.mark.parametrize(
        "extra",
        [
            {"status": "lost"},
            {"customs_fees": -1},
            {"customs_fees": "nan"},
            {"documents_url": ["pas une url"]},
            {"documents_url": "https://docs.example/a.pdf"},
            {"clearance_date": "19/10/2026"},
        ],
    )
    def test_invalid_clearance(self, client, headers, shipment, extra):
        resp = client.post("/api/customs-clearances", json={"shipment_id": shipment, **extra}, headers=headers)
        assert resp.status_code == 400
        assert db.session.query(CustomsClearance).count() == 0

    def test_unknown_shipment(self, client, headers, db_session):
        resp = client.post("/api/customs-clearances", json={"shipment_id": 999}, headers=headers)
        assert resp.status_code == 400
        assert resp.json == {"error": "ID d'expédition invalide", "code": "INVALID_SHIPMENT"}

    def test_unknown_clearance_is_404(self, client, headers, db_session):
        assert client.get("/api/customs-clearances/999", headers=headers).status_code == 404
        assert client.put("/api/customs-clearances/999", json={"status": "completed"}, headers=headers).status_code == 404
        assert client.delete("/api/customs-clearances/999", headers=headers).status_code == 404
