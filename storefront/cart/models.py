"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional, List

from storefront.errors import (
    CartValidationError,
    ERROR_INVALID_PRICE,
    ERROR_INVALID_PRODUCT_ID,
    ERROR_INVALID_QUANTITY,
)
from storefront.services.money import multiply, parse_price


@dataclass
class CartItem:
    """Single line in the cart."""
    product_id: str
    name: str
    unit_price: Decimal
    quantity: int = 1
    image: str = ""

    def __post_init__(self):
        if not self.product_id or not isinstance(self.product_id, str):
            raise CartValidationError(ERROR_INVALID_PRODUCT_ID)
        try:
            self.unit_price = parse_price(self.unit_price)
        except ValueError:
            raise CartValidationError(ERROR_INVALID_PRICE)
        if self.unit_price < 0:
            raise CartValidationError(ERROR_INVALID_PRICE)
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise CartValidationError(ERROR_INVALID_QUANTITY)

    @property
    def total_price(self) -> Decimal:
        """Total price for all units."""
        return multiply(self.unit_price, self.quantity)

    def copy(self) -> "CartItem":
        return replace(self)

    def to_dict(self) -> dict:
        """Convert to dictionary (storage field names)."""
        return {
            "id": self.product_id,
            "name": self.name,
            "price": str(self.unit_price),
            "quantity": self.quantity,
            "image": self.image,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartItem":
        """Create from dictionary."""
        return cls(
            product_id=str(data["id"]),
            name=str(data.get("name", "")),
            unit_price=data["price"],
            quantity=int(data.get("quantity", 1)),
            image=str(data.get("image") or ""),
        )


@dataclass
class Cart:
    """Shopping cart. Line order is insertion order, kept for display."""
    items: List[CartItem] = field(default_factory=list)

    @property
    def total_items(self) -> int:
        """Total number of units in cart."""
        return sum(item.quantity for item in self.items)

    @property
    def total(self) -> Decimal:
        """Sum of unit_price * quantity, recomputed on every read."""
        return sum((item.total_price for item in self.items), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, product_id: str) -> Optional[CartItem]:
        return next((item for item in self.items if item.product_id == product_id), None)

    def copy(self) -> "Cart":
        return Cart(items=[item.copy() for item in self.items])

    def to_dict(self) -> dict:
        return {"items": [item.to_dict() for item in self.items]}

    @classmethod
    def from_dict(cls, data) -> "Cart":
        """
        Create from a stored record.

        Accepts the bare list format as well as {"items": [...]}. Lines that
        share an id are merged so ids stay unique.
        """
        raw_items = data.get("items", []) if isinstance(data, dict) else data
        if not isinstance(raw_items, list):
            raise TypeError(f"Cart items must be a list, got {type(raw_items).__name__}")

        cart = cls()
        for raw in raw_items:
            item = CartItem.from_dict(raw)
            existing = cart.find(item.product_id)
            if existing:
                existing.quantity += item.quantity
            else:
                cart.items.append(item)
        return cart
