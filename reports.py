"""
Supplier-facing aggregates over orders: dashboard figures and per-client totals.
"""
import calendar
from typing import Dict, List, NamedTuple

from repositories import OrderRepository, ProductRepository
from schemas import Identity, Order, OrderStatus

REVENUE_STATUSES = (OrderStatus.SHIPPED, OrderStatus.DELIVERED)
RECENT_LIMIT = 5


class ClientStat(NamedTuple):
    id: str
    name: str
    order_count: int
    total_value: float


def revenue_by_month(orders: List[Order]) -> List[Dict]:
    months = [{"name": calendar.month_abbr[m], "total": 0.0} for m in range(1, 13)]
    for order in orders:
        if OrderStatus(order.status) in REVENUE_STATUSES and order.created_at:
            months[order.created_at.month - 1]["total"] += order.total
    for m in months:
        m["total"] = round(m["total"], 2)
    return months


def supplier_dashboard(orders: OrderRepository, products: ProductRepository, supplier: Identity) -> Dict:
    supplier_orders = orders.list_by("supplier_id", supplier.id)
    revenue = sum(o.total for o in supplier_orders if OrderStatus(o.status) in REVENUE_STATUSES)
    return {
        "total_revenue": round(revenue, 2),
        "total_sales": len(supplier_orders),
        "active_products": len(products.list_by_supplier(supplier.id)),
        "clients": len({o.client_id for o in supplier_orders}),
        "sales_by_month": revenue_by_month(supplier_orders),
        # list_by already returns newest first
        "recent_sales": supplier_orders[:RECENT_LIMIT],
    }


def aggregate_clients(orders: List[Order]) -> List[ClientStat]:
    stats: Dict[str, ClientStat] = {}
    for order in orders:
        if not order.client_name:
            continue
        prev = stats.get(order.client_id)
        if prev:
            stats[order.client_id] = prev._replace(
                order_count=prev.order_count + 1,
                total_value=round(prev.total_value + order.total, 2))
        else:
            stats[order.client_id] = ClientStat(order.client_id, order.client_name, 1, order.total)
    return sorted(stats.values(), key=lambda s: s.total_value, reverse=True)
