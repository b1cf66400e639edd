import pytest

from conftest import register


@pytest.fixture
def supplier_headers(client):
    return register(client, "Bolt Wholesale", "bolts@example.com", "supplier")


@pytest.fixture
def client_headers(client):
    return register(client, "Acme Retail", "buyer@example.com", "client")


def add_product(client, headers, **fields):
    body = {"name": "Hex bolt", "price": 10.0, "stock_quantity": 5, "moq": 3}
    body.update(fields)
    response = client.post("/api/products", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def test_health(client):
    assert client.get("/").status_code == 200


def test_register_login(client, supplier_headers):
    response = client.post("/api/auth/login", json={"email": "bolts@example.com", "password": "secret123"})
    assert response.status_code == 200
    assert response.json()["role"] == "supplier"
    assert response.json()["user_id"] == supplier_headers["X-User-Id"]

    bad = client.post("/api/auth/login", json={"email": "bolts@example.com", "password": "nope"})
    assert bad.status_code == 401

    dup = client.post("/api/auth/register", json={
        "name": "x", "email": "bolts@example.com", "password": "x", "role": "client"})
    assert dup.status_code == 409


def test_cart_requires_client(client, supplier_headers):
    assert client.get("/api/cart").status_code == 401
    assert client.get("/api/cart", headers=supplier_headers).status_code == 403


def test_cart_checkout_and_status_flow(client, supplier_headers, client_headers):
    product_id = add_product(client, supplier_headers)

    added = client.post("/api/cart/items", json={"product_id": product_id, "quantity": 1},
                        headers=client_headers).json()
    assert added["outcome"] == "clamped_to_moq"
    assert added["items"][0]["quantity"] == 3
    assert added["notices"][0]["title"] == "Minimum order"

    rejected = client.post("/api/cart/items", json={"product_id": product_id, "quantity": 10},
                           headers=client_headers).json()
    assert rejected["outcome"] == "rejected_stock_limit"
    assert rejected["item_count"] == 3

    updated = client.put(f"/api/cart/items/{product_id}", json={"quantity": 0}, headers=client_headers).json()
    assert updated["outcome"] == "clamped_to_moq"
    assert client.get("/api/cart", headers=client_headers).json()["subtotal"] == 30.0

    placed = client.post("/api/checkout", headers=client_headers)
    assert placed.status_code == 200
    body = placed.json()
    assert body["status"] == "created"
    assert body["orders_created"] == 1
    assert body["cart"]["items"] == []
    order_id = body["partitions"][0]["order_id"]

    mine = client.get("/api/orders", headers=client_headers).json()
    assert [o["id"] for o in mine] == [order_id]
    assert mine[0]["total"] == 30.0
    assert mine[0]["status"] == "pending"

    shipped = client.patch(f"/api/orders/{order_id}/status", json={"status": "shipped"},
                           headers=supplier_headers)
    assert shipped.status_code == 200
    assert shipped.json()["allowed_transitions"] == ["delivered"]

    other = register(client, "Nut & Co", "nuts@example.com", "supplier")
    forbidden = client.patch(f"/api/orders/{order_id}/status", json={"status": "delivered"}, headers=other)
    assert forbidden.status_code == 403
    assert client.get(f"/api/orders/{order_id}", headers=client_headers).json()["status"] == "shipped"

    backwards = client.patch(f"/api/orders/{order_id}/status", json={"status": "pending"},
                             headers=supplier_headers)
    assert backwards.status_code == 409


def test_checkout_empty_cart(client, client_headers):
    response = client.post("/api/checkout", headers=client_headers)

    assert response.status_code == 400
    assert response.json()["detail"] == "Your cart is empty."


def test_cross_supplier_add_via_api(client, supplier_headers, client_headers):
    first = add_product(client, supplier_headers, moq=1)
    other = register(client, "Nut & Co", "nuts@example.com", "supplier")
    second = add_product(client, other, name="Nut", moq=1)

    client.post("/api/cart/items", json={"product_id": first, "quantity": 1}, headers=client_headers)
    response = client.post("/api/cart/items", json={"product_id": second, "quantity": 1},
                           headers=client_headers).json()

    assert response["outcome"] == "rejected_cross_supplier"
    assert [i["product"]["id"] for i in response["items"]] == [first]


def test_status_change_on_missing_order(client, supplier_headers):
    response = client.patch("/api/orders/64b7f0000000000000000000/status", json={"status": "shipped"},
                            headers=supplier_headers)

    assert response.status_code == 404


def test_supplier_reports(client, supplier_headers, client_headers):
    product_id = add_product(client, supplier_headers, moq=1)
    client.post("/api/cart/items", json={"product_id": product_id, "quantity": 2}, headers=client_headers)
    order_id = client.post("/api/checkout", headers=client_headers).json()["partitions"][0]["order_id"]
    client.patch(f"/api/orders/{order_id}/status", json={"status": "shipped"}, headers=supplier_headers)

    dashboard = client.get("/api/reports/dashboard", headers=supplier_headers).json()
    assert dashboard["total_revenue"] == 20.0
    assert dashboard["total_sales"] == 1
    assert dashboard["active_products"] == 1

    clients = client.get("/api/reports/clients", headers=supplier_headers).json()
    assert clients == [{"id": client_headers["X-User-Id"], "name": "Acme Retail",
                        "order_count": 1, "total_value": 20.0}]
    assert client.get("/api/reports/dashboard", headers=client_headers).status_code == 403


def test_unconfigured_database_is_storage_unavailable(monkeypatch):
    from fastapi.testclient import TestClient

    import main

    monkeypatch.setattr(main, "connect", lambda: None)
    main.app.dependency_overrides.clear()

    with TestClient(main.app) as test_client:
        response = test_client.get("/api/products")

    assert response.status_code == 503
    assert response.json()["detail"] == "Database not available"
