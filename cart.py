"""
Cart engine.

Holds one buyer's pending purchases and enforces the single-supplier,
MOQ floor and stock ceiling rules on every mutation. Rule violations are
reported through the notifier and never raised; after any call the cart
is in a valid state.
"""
from enum import Enum
from typing import NamedTuple, Optional

from logger import get_logger
from notifications import Notifier, error, info, warning
from repositories import CartStore
from schemas import Cart, CartLine, Notice, Product

logger = get_logger(__name__)


class CartOutcome(str, Enum):
    ADDED = "added"
    QUANTITY_INCREASED = "quantity_increased"
    UPDATED = "updated"
    CLAMPED_TO_MOQ = "clamped_to_moq"
    CLAMPED_TO_STOCK = "clamped_to_stock"
    REJECTED_OUT_OF_STOCK = "rejected_out_of_stock"
    REJECTED_CROSS_SUPPLIER = "rejected_cross_supplier"
    REJECTED_STOCK_LIMIT = "rejected_stock_limit"
    REJECTED_INVALID_QUANTITY = "rejected_invalid_quantity"
    REMOVED = "removed"
    NOT_IN_CART = "not_in_cart"
    CLEARED = "cleared"

    @property
    def rejected(self) -> bool:
        return self.value.startswith("rejected")


class CartResult(NamedTuple):
    outcome: CartOutcome
    quantity: int
    notice: Notice


class CartEngine:
    def __init__(self, store: CartStore, key: str, notifier: Notifier):
        self.store = store
        self.key = key
        self.notifier = notifier
        self.cart: Cart = store.load(key)

    @property
    def cart_total(self) -> float:
        return self.cart.total

    @property
    def item_count(self) -> int:
        return self.cart.item_count

    def add_to_cart(self, product: Product, requested_quantity: int) -> CartResult:
        if requested_quantity < 1:
            existing = self.cart.find(product.id)
            held = existing.quantity if existing else 0
            return self._report(CartOutcome.REJECTED_INVALID_QUANTITY, held, error(
                "Invalid quantity", "Choose at least one unit to add to your cart."))

        if product.stock_quantity <= 0:
            return self._report(CartOutcome.REJECTED_OUT_OF_STOCK, 0, error(
                "Out of stock", f"{product.name} is out of stock."))

        current_supplier = self.cart.supplier_id
        if current_supplier is not None and current_supplier != product.supplier_id:
            return self._report(CartOutcome.REJECTED_CROSS_SUPPLIER, 0, error(
                "Error adding to cart",
                "You can only order from one supplier at a time. "
                "Please clear your cart to add items from a different supplier."))

        existing = self.cart.find(product.id)
        held = existing.quantity if existing else 0
        candidate = held + requested_quantity

        if candidate > product.stock_quantity or product.moq > product.stock_quantity:
            return self._report(CartOutcome.REJECTED_STOCK_LIMIT, held, error(
                "Stock limit reached",
                f"Only {product.stock_quantity} units of {product.name} are available "
                f"(minimum order {product.moq})."))

        if candidate < product.moq:
            candidate = product.moq
            outcome = CartOutcome.CLAMPED_TO_MOQ
            notice = warning(
                "Minimum order",
                f"{product.name} has a minimum order of {product.moq}; quantity set to {candidate}.")
        elif existing:
            outcome = CartOutcome.QUANTITY_INCREASED
            notice = info("Cart updated", f"{product.name} quantity increased.")
        else:
            outcome = CartOutcome.ADDED
            notice = info("Item added", f"{product.name} added to cart.")

        line = CartLine(product=product.model_copy(deep=True), quantity=candidate)
        items = list(self.cart.items)
        if existing:
            items[items.index(existing)] = line
        else:
            items.append(line)
        self._commit(Cart(items=items))
        return self._report(outcome, candidate, notice)

    def update_quantity(self, product_id: str, new_quantity: int) -> CartResult:
        existing = self.cart.find(product_id)
        if existing is None:
            return self._report(CartOutcome.NOT_IN_CART, 0, warning(
                "Not in cart", "That item is no longer in your cart."))

        product = existing.product
        if new_quantity > product.stock_quantity:
            quantity = product.stock_quantity
            outcome = CartOutcome.CLAMPED_TO_STOCK
            notice = warning(
                "Stock limit reached",
                f"Only {product.stock_quantity} units of {product.name} are available.")
        elif new_quantity < product.moq:
            quantity = product.moq
            outcome = CartOutcome.CLAMPED_TO_MOQ
            notice = warning(
                "Minimum order", f"{product.name} has a minimum order of {product.moq}.")
        else:
            quantity = new_quantity
            outcome = CartOutcome.UPDATED
            notice = info("Cart updated", f"{product.name} quantity set to {quantity}.")

        items = [
            line.model_copy(update={"quantity": quantity}) if line is existing else line
            for line in self.cart.items
        ]
        self._commit(Cart(items=items))
        return self._report(outcome, quantity, notice)

    def remove_from_cart(self, product_id: str) -> CartResult:
        if self.cart.find(product_id) is None:
            return self._report(CartOutcome.NOT_IN_CART, 0, info(
                "Item removed", "Item removed from cart."))
        self._commit(Cart(items=[l for l in self.cart.items if l.product.id != product_id]))
        return self._report(CartOutcome.REMOVED, 0, info("Item removed", "Item removed from cart."))

    def clear_cart(self, announce: bool = True) -> Optional[CartResult]:
        self._commit(Cart())
        if announce:
            return self._report(CartOutcome.CLEARED, 0, info("Cart cleared", "Your cart is empty."))
        return None

    def drop_lines(self, product_ids) -> None:
        """Remove several lines at once without notifying."""
        product_ids = set(product_ids)
        self._commit(Cart(items=[l for l in self.cart.items if l.product.id not in product_ids]))

    def _commit(self, cart: Cart) -> None:
        # Save first so a storage failure leaves the in-memory cart untouched
        self.store.save(self.key, cart)
        self.cart = cart

    def _report(self, outcome: CartOutcome, quantity: int, notice: Notice) -> CartResult:
        logger.debug("cart %s: %s (qty=%s)", self.key, outcome.value, quantity)
        self.notifier.notify(notice)
        return CartResult(outcome, quantity, notice)
