"""Cart package: models, storage, and manager."""
from .models import CartItem, Cart
from .service import CartManager
from .storage import cart_repository

__all__ = [
    "CartItem",
    "Cart",
    "CartManager",
    "cart_repository",
]
