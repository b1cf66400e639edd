"""
Order fulfillment states.

pending -> shipped -> delivered, or pending -> cancelled. Only the supplier
owning the order may move it.
"""
from typing import Dict, FrozenSet, Optional

from errors import Forbidden, InvalidTransition, NotFound
from logger import get_logger
from repositories import OrderRepository
from schemas import Identity, Order, OrderStatus, Role

logger = get_logger(__name__)

TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def allowed_transitions(status) -> FrozenSet[OrderStatus]:
    return TRANSITIONS[OrderStatus(status)]


def is_terminal(status) -> bool:
    return not allowed_transitions(status)


def can_transition(current, new) -> bool:
    return OrderStatus(new) in allowed_transitions(current)


def set_status(orders: OrderRepository, order_id: str, new_status, actor: Optional[Identity]) -> Order:
    new_status = OrderStatus(new_status)
    order = orders.get(order_id)
    if order is None:
        raise NotFound(f"Order {order_id} not found.")
    if actor is None or actor.role != Role.SUPPLIER or actor.id != order.supplier_id:
        raise Forbidden("Only the supplier who owns this order can change its status.")

    current = OrderStatus(order.status)
    if current == new_status:
        return order
    if not can_transition(current, new_status):
        raise InvalidTransition(
            f"Cannot move an order from {current.value} to {new_status.value}.")

    if not orders.set_status(order_id, new_status):
        raise NotFound(f"Order {order_id} not found.")
    logger.info("Order %s status %s -> %s by %s", order_id, current.value, new_status.value, actor.id)
    return order.model_copy(update={"status": new_status.value})
