"""
Persistence ports and their MongoDB implementations.

The core only talks to these; pymongo failures are turned into
StorageUnavailable here so callers never see driver exceptions.
"""
from functools import wraps
from typing import Dict, List, Optional, Protocol

from pymongo import DESCENDING
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import create_document, delete_document, get_documents, oid, update_document
from errors import StorageUnavailable
from logger import get_logger
from schemas import Cart, Order, OrderStatus, Product

logger = get_logger(__name__)


def _storage_guard(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except PyMongoError as e:
            logger.error("Storage failure in %s: %s", fn.__qualname__, e)
            raise StorageUnavailable(f"Storage failure: {str(e)[:80]}") from e
    return wrapper


class ProductRepository(Protocol):
    def get(self, product_id: str) -> Optional[Product]: ...
    def list_by_supplier(self, supplier_id: str) -> List[Product]: ...
    def list_in_stock(self) -> List[Product]: ...
    def create(self, product: Product) -> str: ...
    def update(self, product_id: str, fields: Dict) -> bool: ...
    def delete(self, product_id: str) -> bool: ...


class OrderRepository(Protocol):
    def insert(self, order: Order) -> str: ...
    def get(self, order_id: str) -> Optional[Order]: ...
    def set_status(self, order_id: str, status: OrderStatus) -> bool: ...
    def list_by(self, field: str, value: str, statuses: Optional[List[OrderStatus]] = None,
                limit: Optional[int] = None) -> List[Order]: ...


class CartStore(Protocol):
    def load(self, key: str) -> Cart: ...
    def save(self, key: str, cart: Cart) -> None: ...


class MongoProductRepository:
    collection = "product"

    def __init__(self, database: Database):
        self.db = database

    @_storage_guard
    def get(self, product_id: str) -> Optional[Product]:
        _id = oid(product_id)
        if _id is None:
            return None
        doc = self.db[self.collection].find_one({"_id": _id})
        if not doc:
            return None
        doc["id"] = str(doc.pop("_id"))
        return Product(**doc)

    @_storage_guard
    def list_by_supplier(self, supplier_id: str) -> List[Product]:
        docs = get_documents(self.db, self.collection, {"supplier_id": supplier_id}, sort=[("name", 1)])
        return [Product(**d) for d in docs]

    @_storage_guard
    def list_in_stock(self) -> List[Product]:
        docs = get_documents(self.db, self.collection, {"stock_quantity": {"$gt": 0}}, sort=[("name", 1)])
        return [Product(**d) for d in docs]

    @_storage_guard
    def create(self, product: Product) -> str:
        return create_document(self.db, self.collection, product)

    @_storage_guard
    def update(self, product_id: str, fields: Dict) -> bool:
        return update_document(self.db, self.collection, product_id, fields)

    @_storage_guard
    def delete(self, product_id: str) -> bool:
        return delete_document(self.db, self.collection, product_id)


class MongoOrderRepository:
    collection = "order"

    def __init__(self, database: Database):
        self.db = database

    @_storage_guard
    def insert(self, order: Order) -> str:
        return create_document(self.db, self.collection, order)

    @_storage_guard
    def get(self, order_id: str) -> Optional[Order]:
        _id = oid(order_id)
        if _id is None:
            return None
        doc = self.db[self.collection].find_one({"_id": _id})
        if not doc:
            return None
        doc["id"] = str(doc.pop("_id"))
        return Order(**doc)

    @_storage_guard
    def set_status(self, order_id: str, status: OrderStatus) -> bool:
        return update_document(self.db, self.collection, order_id, {"status": OrderStatus(status).value})

    @_storage_guard
    def list_by(self, field: str, value: str, statuses: Optional[List[OrderStatus]] = None,
                limit: Optional[int] = None) -> List[Order]:
        query = {field: value}
        if statuses:
            query["status"] = {"$in": [OrderStatus(s).value for s in statuses]}
        docs = get_documents(self.db, self.collection, query, sort=[("created_at", DESCENDING)], limit=limit)
        return [Order(**d) for d in docs]


class MongoCartStore:
    """One cart document per buyer, keyed by user id"""
    collection = "cart"

    def __init__(self, database: Database):
        self.db = database

    @_storage_guard
    def load(self, key: str) -> Cart:
        doc = self.db[self.collection].find_one({"user_id": key})
        if not doc:
            return Cart()
        return Cart(items=doc.get("items", []))

    @_storage_guard
    def save(self, key: str, cart: Cart) -> None:
        items = [line.model_dump() for line in cart.items]
        self.db[self.collection].update_one(
            {"user_id": key}, {"$set": {"items": items}}, upsert=True
        )
