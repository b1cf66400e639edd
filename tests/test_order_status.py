import pytest

import order_status
from conftest import InMemoryOrderRepository
from errors import Forbidden, InvalidTransition, NotFound
from schemas import Order, OrderItem, OrderStatus


@pytest.fixture
def orders():
    return InMemoryOrderRepository()


@pytest.fixture
def order_id(orders):
    return orders.insert(Order(
        client_id="c1",
        client_name="Acme Retail",
        supplier_id="s1",
        items=[OrderItem(product_id="p1", name="Bolts", price=8.5, quantity=5)],
        total=42.50,
    ))


def test_owner_ships_then_stranger_forbidden(orders, order_id, supplier, other_supplier):
    assert orders.get(order_id).status == OrderStatus.PENDING

    shipped = order_status.set_status(orders, order_id, "shipped", supplier)
    assert shipped.status == OrderStatus.SHIPPED

    with pytest.raises(Forbidden):
        order_status.set_status(orders, order_id, OrderStatus.DELIVERED, other_supplier)
    assert orders.get(order_id).status == OrderStatus.SHIPPED
    assert orders.get(order_id).total == 42.50


def test_full_linear_flow(orders, order_id, supplier):
    order_status.set_status(orders, order_id, OrderStatus.SHIPPED, supplier)
    order_status.set_status(orders, order_id, OrderStatus.DELIVERED, supplier)

    assert orders.get(order_id).status == OrderStatus.DELIVERED
    assert order_status.is_terminal(OrderStatus.DELIVERED)


def test_cancel_from_pending(orders, order_id, supplier):
    order_status.set_status(orders, order_id, OrderStatus.CANCELLED, supplier)

    with pytest.raises(InvalidTransition):
        order_status.set_status(orders, order_id, OrderStatus.SHIPPED, supplier)


@pytest.mark.parametrize("path", [
    [OrderStatus.DELIVERED],
    [OrderStatus.SHIPPED, OrderStatus.CANCELLED],
    [OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.PENDING],
])
def test_disallowed_transitions(orders, order_id, supplier, path):
    *steps, last = path
    for step in steps:
        order_status.set_status(orders, order_id, step, supplier)
    before = orders.get(order_id).status

    with pytest.raises(InvalidTransition):
        order_status.set_status(orders, order_id, last, supplier)
    assert orders.get(order_id).status == before


def test_same_status_is_noop(orders, order_id, supplier):
    order = order_status.set_status(orders, order_id, OrderStatus.PENDING, supplier)

    assert order.status == OrderStatus.PENDING


def test_missing_order(orders, supplier):
    with pytest.raises(NotFound):
        order_status.set_status(orders, "order-404", OrderStatus.SHIPPED, supplier)


def test_client_cannot_change_status(orders, order_id, buyer):
    with pytest.raises(Forbidden):
        order_status.set_status(orders, order_id, OrderStatus.CANCELLED, buyer)


def test_allowed_transitions():
    assert order_status.allowed_transitions("pending") == {OrderStatus.SHIPPED, OrderStatus.CANCELLED}
    assert order_status.allowed_transitions(OrderStatus.SHIPPED) == {OrderStatus.DELIVERED}
    assert not order_status.allowed_transitions(OrderStatus.CANCELLED)
