"""Cart manager: process-wide cart state persisted to short-lived storage."""
from decimal import Decimal
from typing import Callable, List

from storefront.errors import CartValidationError, ERROR_INVALID_QUANTITY
from storefront.logging import get_logger, sanitize_id_for_logging
from storefront.services.money import format_money
from storefront.storage import JsonRepository

from .models import Cart, CartItem

logger = get_logger(__name__)

CartListener = Callable[[Cart], None]


class CartManager:
    """
    Owns the shopping cart.

    Every mutation is a synchronous read-modify-write followed by a save of
    the full snapshot, so calls apply in order and none is lost. There are
    no network calls here.
    """

    def __init__(self, repository: JsonRepository[Cart], currency: str = "USD"):
        self._repository = repository
        self.currency = currency
        self._cart = repository.load()
        self._listeners: List[CartListener] = []

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a change listener. Returns a callable that unsubscribes."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self) -> None:
        self._repository.save(self._cart)
        self._notify()

    def _notify(self) -> None:
        snapshot = self._cart.copy()
        for listener in list(self._listeners):
            listener(snapshot)

    @property
    def items(self) -> List[CartItem]:
        return [item.copy() for item in self._cart.items]

    @property
    def total(self) -> Decimal:
        return self._cart.total

    @property
    def total_items(self) -> int:
        return self._cart.total_items

    @property
    def is_empty(self) -> bool:
        return self._cart.is_empty

    def snapshot(self) -> Cart:
        """Detached copy of the current cart."""
        return self._cart.copy()

    def add_item(self, item: CartItem, quantity: int = 1) -> Cart:
        """Add quantity units of item, merging with an existing line of the same id."""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise CartValidationError(ERROR_INVALID_QUANTITY)

        existing = self._cart.find(item.product_id)
        if existing:
            existing.quantity += quantity
        else:
            line = item.copy()
            line.quantity = quantity
            self._cart.items.append(line)

        self._commit()
        logger.info(f"Product {sanitize_id_for_logging(item.product_id)} added to cart (+{quantity})")
        return self.snapshot()

    def remove_item(self, product_id: str) -> bool:
        """Drop the line with product_id. Removing an absent id is a no-op."""
        remaining = [item for item in self._cart.items if item.product_id != product_id]
        if len(remaining) == len(self._cart.items):
            return False

        self._cart.items = remaining
        self._commit()
        logger.info(f"Product {sanitize_id_for_logging(product_id)} removed from cart")
        return True

    def update_quantity(self, product_id: str, quantity: int) -> bool:
        """
        Set the quantity of an existing line.

        Quantities below 1 are ignored rather than deleting the line; use
        remove_item() for that. Returns whether the cart changed.
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            return False

        item = self._cart.find(product_id)
        if item is None:
            return False
        if item.quantity == quantity:
            return False

        item.quantity = quantity
        self._commit()
        return True

    def clear(self) -> None:
        """Empty the cart and delete the persisted record."""
        self._cart = Cart()
        self._repository.clear()
        self._notify()

    def discard(self, ordered: Cart) -> Cart:
        """
        Remove the units of an ordered snapshot from the cart.

        Lines or units added after the snapshot was taken stay. The record
        is deleted when nothing is left.
        """
        ordered_qty = {item.product_id: item.quantity for item in ordered.items}
        remaining = []
        for item in self._cart.items:
            left = item.quantity - ordered_qty.get(item.product_id, 0)
            if left >= 1:
                line = item.copy()
                line.quantity = left
                remaining.append(line)

        if not remaining:
            self.clear()
        else:
            self._cart.items = remaining
            self._commit()
        return self.snapshot()

    def reload(self) -> Cart:
        """Re-read the cart from storage."""
        self._cart = self._repository.load()
        return self.snapshot()

    def summary(self) -> dict:
        """Cart summary for display."""
        if self._cart.is_empty:
            return {
                "is_empty": True,
                "total_items": 0,
                "items": [],
                "total": format_money(0, self.currency),
            }

        return {
            "is_empty": False,
            "total_items": self._cart.total_items,
            "items": [
                {
                    "id": item.product_id,
                    "name": item.name,
                    "image": item.image,
                    "quantity": item.quantity,
                    "unit_price": format_money(item.unit_price, self.currency),
                    "total": format_money(item.total_price, self.currency),
                }
                for item in self._cart.items
            ],
            "total": format_money(self._cart.total, self.currency),
        }
