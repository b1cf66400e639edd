"""
Checkout: split the cart into one order per supplier.

Writes are independent per supplier, so a checkout can partially succeed.
Only the lines whose order was written leave the cart.
"""
from collections import OrderedDict
from typing import List, NamedTuple, Optional

from cart import CartEngine
from errors import EmptyCart, StorageUnavailable, Unauthenticated
from logger import get_logger
from notifications import error, info, warning
from repositories import OrderRepository
from schemas import CartLine, Identity, Order, OrderItem, OrderStatus

logger = get_logger(__name__)


class PartitionResult(NamedTuple):
    supplier_id: str
    product_ids: List[str]
    total: float
    order_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.order_id is not None


class CheckoutResult(NamedTuple):
    partitions: List[PartitionResult]

    @property
    def succeeded(self) -> List[PartitionResult]:
        return [p for p in self.partitions if p.ok]

    @property
    def failed(self) -> List[PartitionResult]:
        return [p for p in self.partitions if not p.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)

    @property
    def orders_created(self) -> int:
        return len(self.succeeded)


def partition_by_supplier(lines: List[CartLine]) -> "OrderedDict[str, List[CartLine]]":
    groups = OrderedDict()
    for line in lines:
        groups.setdefault(line.product.supplier_id, []).append(line)
    return groups


def build_order(buyer: Identity, supplier_id: str, lines: List[CartLine]) -> Order:
    items = [
        OrderItem(
            product_id=line.product.id,
            name=line.product.name,
            price=line.product.price,
            quantity=line.quantity,
        )
        for line in lines
    ]
    total = round(sum(item.price * item.quantity for item in items), 2)
    return Order(
        client_id=buyer.id,
        client_name=buyer.name,
        supplier_id=supplier_id,
        items=items,
        total=total,
        status=OrderStatus.PENDING,
    )


def checkout(engine: CartEngine, buyer: Optional[Identity], orders: OrderRepository) -> CheckoutResult:
    if buyer is None:
        raise Unauthenticated("You must be logged in to checkout.")
    if not engine.cart.items:
        raise EmptyCart()

    results = []
    for supplier_id, lines in partition_by_supplier(engine.cart.items).items():
        order = build_order(buyer, supplier_id, lines)
        product_ids = [line.product.id for line in lines]
        try:
            order_id = orders.insert(order)
        except StorageUnavailable as e:
            logger.warning("Order for supplier %s failed: %s", supplier_id, e.message)
            results.append(PartitionResult(supplier_id, product_ids, order.total, error=e.message))
        else:
            logger.info("Order %s created for client %s, supplier %s, total %.2f",
                        order_id, buyer.id, supplier_id, order.total)
            results.append(PartitionResult(supplier_id, product_ids, order.total, order_id=order_id))

    result = CheckoutResult(results)
    if result.succeeded and not _settle_cart(engine, result):
        return result
    if result.ok:
        engine.notifier.notify(info(
            "Success",
            "Your order has been placed!" if result.orders_created == 1
            else f"{result.orders_created} orders have been placed!"))
    elif result.succeeded:
        engine.notifier.notify(warning(
            "Order partially placed",
            f"{result.orders_created} of {len(result.partitions)} orders were placed. "
            f"Items from supplier(s) {', '.join(p.supplier_id for p in result.failed)} "
            "are still in your cart; please try again."))
    else:
        engine.notifier.notify(error("Error", "Failed to place order. Please try again."))
    return result


def _settle_cart(engine: CartEngine, result: CheckoutResult) -> bool:
    """Take the ordered lines out of the cart; False when the cart could not be saved."""
    try:
        if result.ok:
            engine.clear_cart(announce=False)
        else:
            engine.drop_lines(pid for p in result.succeeded for pid in p.product_ids)
    except StorageUnavailable as e:
        logger.error("Orders %s placed but cart %s could not be updated: %s",
                     [p.order_id for p in result.succeeded], engine.key, e.message)
        engine.notifier.notify(warning(
            "Order placed",
            f"{result.orders_created} order(s) were placed, but your cart could not be emptied. "
            "Remove the ordered items before checking out again."))
        return False
    return True
