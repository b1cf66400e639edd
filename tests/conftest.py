"""
Pytest configuration and fixtures: in-memory ports for the core, and a
mongomock-backed FastAPI test client for the HTTP surface.
"""
import itertools
from datetime import datetime, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

from errors import StorageUnavailable
from notifications import NoticeCollector
from schemas import Cart, Identity, OrderStatus, Product, Role


class InMemoryCartStore:
    def __init__(self):
        self.carts = {}
        self.saves = 0
        self.fail = False

    def load(self, key):
        return self.carts.get(key, Cart()).model_copy(deep=True)

    def save(self, key, cart):
        if self.fail:
            raise StorageUnavailable("cart store offline")
        self.saves += 1
        self.carts[key] = cart.model_copy(deep=True)


class InMemoryOrderRepository:
    def __init__(self, failing_suppliers=()):
        self.orders = {}
        self.failing_suppliers = set(failing_suppliers)
        self._ids = itertools.count(1)

    def insert(self, order):
        if order.supplier_id in self.failing_suppliers:
            raise StorageUnavailable(f"write for {order.supplier_id} failed")
        order_id = f"order-{next(self._ids)}"
        self.orders[order_id] = order.model_copy(update={
            "id": order_id,
            "created_at": order.created_at or datetime.now(timezone.utc),
        })
        return order_id

    def get(self, order_id):
        return self.orders.get(order_id)

    def set_status(self, order_id, status):
        if order_id not in self.orders:
            return False
        self.orders[order_id] = self.orders[order_id].model_copy(
            update={"status": OrderStatus(status).value})
        return True

    def list_by(self, field, value, statuses=None, limit=None):
        found = [o for o in self.orders.values() if getattr(o, field) == value]
        if statuses:
            found = [o for o in found if OrderStatus(o.status) in statuses]
        found.sort(key=lambda o: o.created_at, reverse=True)
        return found[:limit] if limit else found


def make_product(product_id="p1", supplier_id="s1", price=10.0, stock=5, moq=1, name=None):
    return Product(
        id=product_id,
        name=name or f"Product {product_id}",
        price=price,
        stock_quantity=stock,
        moq=moq,
        supplier_id=supplier_id,
        supplier_name=f"Supplier {supplier_id}",
    )


@pytest.fixture
def cart_store():
    return InMemoryCartStore()


@pytest.fixture
def notifier():
    return NoticeCollector()


@pytest.fixture
def buyer():
    return Identity(id="c1", name="Acme Retail", role=Role.CLIENT)


@pytest.fixture
def supplier():
    return Identity(id="s1", name="Bolt Wholesale", role=Role.SUPPLIER)


@pytest.fixture
def other_supplier():
    return Identity(id="s2", name="Nut & Co", role=Role.SUPPLIER)


@pytest.fixture
def mongo_db():
    return mongomock.MongoClient()["b2b_test"]


@pytest.fixture
def client(mongo_db):
    from main import app, get_db

    app.dependency_overrides[get_db] = lambda: mongo_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def register(client, name, email, role, password="secret123"):
    response = client.post("/api/auth/register", json={
        "name": name, "email": email, "password": password, "role": role,
    })
    assert response.status_code == 200, response.text
    return {"X-User-Id": response.json()["user_id"]}
