"""
Sales API tests.

Verifies the HTTP status of each placement outcome and the draft editing
endpoint used by the sale form.
"""

import pytest

from verger.extensions import db
from verger.models import Sale
from verger.services import inventory_service


@pytest.fixture
def fruit(make_product):
    return make_product("Mangue Kent", 2.50, stock=10)


def _create(client, headers, customer_id, product_id, quantity, **extra):
    body = {
        "customer_id": customer_id,
        "items": [{"product_id": product_id, "quantity": quantity, "unit_price": 2.50}],
        **extra,
    }
    return client.post("/api/sales", json=body, headers=headers)


# =============================================================================
# CREATE
# =============================================================================


class TestCreateSale:

    def test_created(self, client, headers, customer, fruit):
        resp = _create(client, headers, customer.id, fruit, 3)
        assert resp.status_code == 201
        body = resp.json
        assert body["state"] == "committed"
        assert body["sale"]["total_amount"] == pytest.approx(7.5)
        assert body["items"][0]["product_id"] == fruit
        assert body["inventory"][str(fruit)]["quantity"] == pytest.approx(7.0)
        assert body["replayed"] is False

    def test_insufficient_stock_is_422(self, client, headers, customer, fruit):
        resp = _create(client, headers, customer.id, fruit, 50)
        assert resp.status_code == 422
        assert resp.json["state"] == "rejected"
        assert resp.json["error"] == "Stock insuffisant pour certains produits"
        assert resp.json["failures"][0] == {
            "kind": "InsufficientStock",
            "message": "Stock insuffisant pour certains produits",
            "product_ids": [fruit],
        }
        assert resp.json["draft"]["items"][0]["quantity"] == 50
        assert db.session.query(Sale).count() == 0

    def test_missing_customer_is_422(self, client, headers, fruit):
        resp = client.post("/api/sales", json={"items": [{"product_id": fruit, "quantity": 1}]}, headers=headers)
        assert resp.status_code == 422
        assert resp.json["failures"][0]["kind"] == "MissingCustomer"

    def test_malformed_body_is_400(self, client, headers, customer):
        resp = client.post("/api/sales", json={"customer_id": customer.id, "items": "mangues"}, headers=headers)
        assert resp.status_code == 400

    @pytest.mark.parametrize(
        "field,value",
        [
            ("unit_price", "nan"),
            ("unit_price", "inf"),
            ("unit_price", "-Infinity"),
            ("quantity", "nan"),
            ("quantity", "inf"),
        ],
    )
    def test_non_finite_numbers_are_400(self, client, headers, customer, fruit, field, value):
        item = {"product_id": fruit, "quantity": 1, "unit_price": 2.50, field: value}
        resp = client.post("/api/sales", json={"customer_id": customer.id, "items": [item]}, headers=headers)
        assert resp.status_code == 400
        assert db.session.query(Sale).count() == 0
        assert inventory_service.get_quantity(fruit)[0] == pytest.approx(10.0)

    @pytest.mark.parametrize("literal", ["NaN", "Infinity"])
    def test_non_finite_json_literals_are_400(self, client, headers, customer, fruit, literal):
        body = (
            f'{{"customer_id": {customer.id}, "items": '
            f'[{{"product_id": {fruit}, "quantity": 1, "unit_price": {literal}}}]}}'
        )
        resp = client.post("/api/sales", data=body, content_type="application/json", headers=headers)
        assert resp.status_code == 400
        assert db.session.query(Sale).count() == 0

    def test_request_token_replay_is_200(self, client, headers, customer, fruit):
        first = _create(client, headers, customer.id, fruit, 3, request_token="form-42")
        second = _create(client, headers, customer.id, fruit, 3, request_token="form-42")
        assert first.status_code == 201
        assert second.status_code == 200
        assert second.json["replayed"] is True
        assert second.json["sale"]["id"] == first.json["sale"]["id"]
        assert inventory_service.get_quantity(fruit)[0] == pytest.approx(7.0)


# =============================================================================
# UPDATE / DELETE / READ
# =============================================================================


class TestExistingSale:

    @pytest.fixture
    def sale(self, client, headers, customer, fruit):
        return _create(client, headers, customer.id, fruit, 3).json

    def test_update_keeps_statuses_when_omitted(self, client, headers, customer, fruit, sale):
        sale_id = sale["sale"]["id"]
        client.put(f"/api/sales/{sale_id}", json={
            "customer_id": customer.id,
            "items": [{"id": sale["items"][0]["id"], "product_id": fruit, "quantity": 3, "unit_price": 2.5}],
            "status": "processing",
        }, headers=headers)

        resp = client.put(f"/api/sales/{sale_id}", json={
            "customer_id": customer.id,
            "items": [{"id": sale["items"][0]["id"], "product_id": fruit, "quantity": 4, "unit_price": 2.5}],
        }, headers=headers)

        assert resp.status_code == 200
        assert resp.json["sale"]["status"] == "processing"
        assert resp.json["sale"]["total_amount"] == pytest.approx(10.0)
        assert inventory_service.get_quantity(fruit)[0] == pytest.approx(6.0)

    def test_update_unknown_sale_is_404(self, client, headers, customer, fruit):
        resp = client.put("/api/sales/9999", json={"customer_id": customer.id, "items": []}, headers=headers)
        assert resp.status_code == 404

    def test_update_with_non_object_body_is_400(self, client, headers, sale):
        resp = client.put(f"/api/sales/{sale['sale']['id']}", json=[1], headers=headers)
        assert resp.status_code == 400

    def test_update_invalid_status_is_400(self, client, headers, customer, sale):
        resp = client.put(f"/api/sales/{sale['sale']['id']}", json={
            "customer_id": customer.id, "items": [], "status": "shipped",
        }, headers=headers)
        assert resp.status_code == 400

    def test_get_and_list(self, client, headers, sale):
        sale_id = sale["sale"]["id"]
        resp = client.get(f"/api/sales/{sale_id}", headers=headers)
        assert resp.status_code == 200
        assert resp.json["sale"]["customer"]["company_name"] == "Primeurs du Sud"
        assert resp.json["sale"]["items"][0]["product_name"] == "Mangue Kent"

        listed = client.get("/api/sales?search=primeurs", headers=headers)
        assert [row["id"] for row in listed.json["items"]] == [sale_id]
        assert client.get("/api/sales?search=inconnu", headers=headers).json["items"] == []

    def test_get_unknown_is_404(self, client, headers, db_session):
        resp = client.get("/api/sales/4242", headers=headers)
        assert resp.status_code == 404
        assert resp.json["error"] == "Vente introuvable"

    def test_delete_without_restock(self, client, headers, fruit, sale):
        resp = client.delete(f"/api/sales/{sale['sale']['id']}", headers=headers)
        assert resp.status_code == 200
        assert resp.json["restocked"] == {}
        assert inventory_service.get_quantity(fruit)[0] == pytest.approx(7.0)

    def test_delete_with_restock(self, client, headers, fruit, sale):
        resp = client.delete(f"/api/sales/{sale['sale']['id']}?restock=1", headers=headers)
        assert resp.status_code == 200
        assert resp.json["restocked"] == {str(fruit): pytest.approx(10.0)}
        assert inventory_service.get_quantity(fruit)[0] == pytest.approx(10.0)

    def test_delete_unknown_is_404(self, client, headers, db_session):
        assert client.delete("/api/sales/4242", headers=headers).status_code == 404


# =============================================================================
# DRAFT EDITING
# =============================================================================


class TestDraftItems:

    def test_selecting_product_fills_price(self, client, headers, make_product):
        p3 = make_product("Citron vert", 4.00)
        draft = client.post("/api/sales/draft/items", json={"draft": {}, "action": "add"}, headers=headers).json["draft"]

        resp = client.post("/api/sales/draft/items", json={
            "draft": draft, "action": "update", "index": 0, "field": "product_id", "value": p3,
        }, headers=headers)

        assert resp.status_code == 200
        item = resp.json["draft"]["items"][0]
        assert item["product_id"] == p3
        assert item["unit_price"] == 4.00
        assert item["quantity"] == 1.0
        assert resp.json["draft"]["total_amount"] == 4.00

    def test_remove(self, client, headers, db_session):
        draft = {"items": [{"product_id": None, "quantity": 1}, {"product_id": None, "quantity": 2}]}
        resp = client.post("/api/sales/draft/items", json={"draft": draft, "action": "remove", "index": 0}, headers=headers)
        assert [i["quantity"] for i in resp.json["draft"]["items"]] == [2.0]

    @pytest.mark.parametrize(
        "body",
        [
            {"draft": {}, "action": "explode"},
            {"draft": {}, "action": "remove", "index": 0},
            {"draft": {"items": [{}]}, "action": "update", "index": 0, "field": "colour", "value": 1},
            [1],
            {"draft": [1], "action": "add"},
        ],
    )
    def test_bad_requests(self, client, headers, db_session, body):
        assert client.post("/api/sales/draft/items", json=body, headers=headers).status_code == 400
