"""Storage access for the cart."""
from storefront.storage import JsonRepository, KeyValueStore, StorageKeys

from .models import Cart


def cart_repository(store: KeyValueStore) -> JsonRepository[Cart]:
    """Cart record kept in the short-lived store under StorageKeys.CART."""
    return JsonRepository(
        store,
        StorageKeys.CART,
        decode=Cart.from_dict,
        encode=Cart.to_dict,
        default=Cart,
    )
