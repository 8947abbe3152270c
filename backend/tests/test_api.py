import base64
from decimal import Decimal

from backend.app.db.models.models_v1 import StockLevel


def _create_order(client, catalog, lines, status="Enviada al Proveedor"):
    resp = client.post(
        "/v1/purchase-orders",
        json={
            "supplier_id": catalog.supplier_id,
            "project_id": catalog.project_id,
            "status": status,
            "lines": lines,
        },
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_health(client):
    resp = client.get("/v1/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_create_order_mints_number_and_total(client, catalog):
    body = _create_order(
        client,
        catalog,
        [
            {"item_id": catalog.cable_id, "quantity": 10, "price": 5},
            {"item_name": "Instalación", "quantity": 1, "price": 120, "type": "Servicio"},
        ],
    )
    assert body["success"] is True
    assert body["order_number"] == "OC-00001"

    po = client.get(f"/v1/purchase-orders/{body['order_id']}").json()
    assert Decimal(po["total"]) == Decimal("170")
    assert po["supplier"] == "Electro Suministros"
    assert po["lines"][0]["item_sku"] == "CAB-001"
    assert po["status_history"][0]["status"] == "Enviada al Proveedor"


def test_material_line_without_item_is_rejected(client, catalog):
    resp = client.post(
        "/v1/purchase-orders",
        json={
            "supplier_id": catalog.supplier_id,
            "lines": [{"item_name": "Algo", "quantity": 1, "price": 1}],
        },
    )
    assert resp.status_code == 409
    assert resp.json()["success"] is False


def test_partial_reception_end_to_end(client, catalog):
    order = _create_order(client, catalog, [{"item_id": catalog.cable_id, "quantity": 10, "price": 5}])

    pending = client.get("/v1/receptions/pending").json()
    assert [p["id"] for p in pending] == [order["order_id"]]

    resp = client.post(
        f"/v1/receptions/{order['order_id']}",
        json={
            "receiving_location_id": catalog.central_id,
            "received_items": [{"item_id": catalog.cable_id, "quantity": 6}],
            "reception_notes": "caja dañada",
        },
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["success"] is True
    assert body["status"] == "Recibida Parcialmente"
    backorder_id = body["backorder_id"]

    original = client.get(f"/v1/purchase-orders/{order['order_id']}").json()
    assert original["backorder_ids"] == [backorder_id]
    assert original["reception_notes"] == "caja dañada"

    bo = client.get(f"/v1/purchase-orders/{backorder_id}").json()
    assert bo["original_order_id"] == order["order_id"]
    assert bo["lines"][0]["quantity"] == 4
    assert Decimal(bo["total"]) == Decimal("20")

    # seul le reliquat reste à réceptionner
    pending = client.get("/v1/receptions/pending").json()
    assert [p["id"] for p in pending] == [backorder_id]

    stock = client.get("/v1/stock", params={"item_id": catalog.cable_id}).json()
    assert [(s["location_id"], s["quantity"]) for s in stock] == [(catalog.central_id, 6)]


def test_reception_of_missing_order_returns_404(client, catalog):
    resp = client.post(
        "/v1/receptions/999",
        json={"receiving_location_id": catalog.central_id, "received_items": []},
    )
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "Purchase order 999 not found", "code": "not_found"}


def test_negative_received_quantity_is_a_validation_error(client, catalog):
    order = _create_order(client, catalog, [{"item_id": catalog.cable_id, "quantity": 1, "price": 1}])
    resp = client.post(
        f"/v1/receptions/{order['order_id']}",
        json={
            "receiving_location_id": catalog.central_id,
            "received_items": [{"item_id": catalog.cable_id, "quantity": -1}],
        },
    )
    assert resp.status_code == 422


def test_transfer_endpoint(client, catalog, db_session):
    db_session.add(StockLevel(item_id=catalog.rj45_id, location_id=catalog.central_id, quantity=5))
    db_session.commit()

    payload = {
        "item_id": catalog.rj45_id,
        "from_location_id": catalog.central_id,
        "to_location_id": catalog.van_id,
        "quantity": 7,
    }
    resp = client.post("/v1/stock-movements/transfer", json=payload)
    assert resp.status_code == 409
    assert resp.json()["success"] is False

    payload["quantity"] = 2
    headers = {"Idempotency-Key": "tr-1"}
    first = client.post("/v1/stock-movements/transfer", json=payload, headers=headers)
    replay = client.post("/v1/stock-movements/transfer", json=payload, headers=headers)
    assert first.status_code == 200
    assert replay.json()["replayed"] is True

    stock = client.get("/v1/stock", params={"item_id": catalog.rj45_id}).json()
    assert sorted((s["location_id"], s["quantity"]) for s in stock) == sorted(
        [(catalog.central_id, 3), (catalog.van_id, 2)]
    )

    movements = client.get("/v1/stock-movements", params={"item_id": catalog.rj45_id}).json()
    assert [m["movement_type"] for m in movements] == ["TRANSFER"]


def test_transfer_rejects_non_positive_quantity(client, catalog):
    resp = client.post(
        "/v1/stock-movements/transfer",
        json={
            "item_id": catalog.rj45_id,
            "from_location_id": catalog.central_id,
            "to_location_id": catalog.van_id,
            "quantity": 0,
        },
    )
    assert resp.status_code == 422


def test_add_stock_endpoint(client, catalog):
    resp = client.post(
        "/v1/stock-movements/add",
        json={"item_id": catalog.cable_id, "location_id": catalog.van_id, "quantity": 15},
    )
    assert resp.status_code == 201
    stock = client.get("/v1/stock", params={"location_id": catalog.van_id}).json()
    assert [(s["item_id"], s["quantity"]) for s in stock] == [(catalog.cable_id, 15)]


def test_attach_delivery_notes(client, catalog):
    order = _create_order(client, catalog, [{"item_id": catalog.cable_id, "quantity": 1, "price": 1}])
    data = base64.b64encode(b"%PDF-1.4 albaran").decode("ascii")

    resp = client.post(
        f"/v1/receptions/{order['order_id']}/delivery-notes",
        json={"delivery_notes": [{"file_name": "albaran.pdf", "file_type": "application/pdf", "data": data}]},
    )
    assert resp.status_code == 200
    po = client.get(f"/v1/purchase-orders/{order['order_id']}").json()
    assert po["has_delivery_notes"] is True

    bad = client.post(
        f"/v1/receptions/{order['order_id']}/delivery-notes",
        json={"delivery_notes": [{"file_name": "x.pdf", "file_type": "application/pdf", "data": "@@not base64@@"}]},
    )
    assert bad.status_code == 409


def test_list_locations(client, catalog):
    names = [l["name"] for l in client.get("/v1/locations").json()]
    assert names == ["Almacén Central", "Furgoneta 1"]
