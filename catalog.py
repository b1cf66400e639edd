"""
Supplier-owned product catalog.

Suppliers create, edit and delete their own products; clients browse what
is in stock. Stock is never touched by cart or checkout.
"""
from typing import Dict, List, Optional

from errors import Forbidden, NotFound, Unauthenticated
from logger import get_logger
from repositories import ProductRepository
from schemas import Identity, Product, Role

logger = get_logger(__name__)

EDITABLE_FIELDS = ("name", "description", "price", "stock_quantity", "moq", "image_url")


def _require_supplier(actor: Optional[Identity]) -> Identity:
    if actor is None:
        raise Unauthenticated()
    if actor.role != Role.SUPPLIER:
        raise Forbidden("Only suppliers can manage products.")
    return actor


def _owned(products: ProductRepository, product_id: str, actor: Identity) -> Product:
    product = products.get(product_id)
    if product is None:
        raise NotFound(f"Product {product_id} not found.")
    if product.supplier_id != actor.id:
        raise Forbidden("You can only manage your own products.")
    return product


def get_product(products: ProductRepository, product_id: str) -> Product:
    product = products.get(product_id)
    if product is None:
        raise NotFound(f"Product {product_id} not found.")
    return product


def browse(products: ProductRepository) -> List[Product]:
    return products.list_in_stock()


def supplier_products(products: ProductRepository, actor: Optional[Identity]) -> List[Product]:
    actor = _require_supplier(actor)
    return products.list_by_supplier(actor.id)


def create_product(products: ProductRepository, actor: Optional[Identity], fields: Dict) -> Product:
    actor = _require_supplier(actor)
    product = Product(
        **{k: v for k, v in fields.items() if k in EDITABLE_FIELDS},
        supplier_id=actor.id,
        supplier_name=actor.name,
    )
    product_id = products.create(product)
    logger.info("Product %s created by supplier %s", product_id, actor.id)
    return product.model_copy(update={"id": product_id})


def update_product(products: ProductRepository, actor: Optional[Identity], product_id: str, fields: Dict) -> Product:
    actor = _require_supplier(actor)
    current = _owned(products, product_id, actor)
    changes = {
        k: v for k, v in fields.items()
        if k in EDITABLE_FIELDS and (v is not None or k == "image_url")
    }
    # Re-validate the merged product before writing
    updated = Product(**dict(current.model_dump(), **changes))
    if changes:
        products.update(product_id, {k: getattr(updated, k) for k in changes})
        logger.info("Product %s updated by supplier %s: %s", product_id, actor.id, sorted(changes))
    return updated


def delete_product(products: ProductRepository, actor: Optional[Identity], product_id: str) -> None:
    actor = _require_supplier(actor)
    _owned(products, product_id, actor)
    products.delete(product_id)
    logger.info("Product %s deleted by supplier %s", product_id, actor.id)
