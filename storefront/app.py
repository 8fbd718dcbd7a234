"""
Storefront client composition root.

Usage:
    async with create_storefront() as store:
        await store.start()
        store.use_cart().add_item(CartItem("ring-1", "Solitaire Ring", "1299.00"))
        await store.checkout.submit(shipping, payment)
"""
from typing import Optional

import httpx

from storefront.account import AccountService
from storefront.api.client import ApiClient
from storefront.auth import CredentialStore, SessionManager, SessionState
from storefront.cart import CartManager, cart_repository
from storefront.catalog import CatalogService
from storefront.checkout import CheckoutService
from storefront.config import Settings, get_settings
from storefront.logging import get_logger
from storefront.navigation import Navigator
from storefront.storage import JsonFileStore, KeyValueStore, MemoryStore

logger = get_logger(__name__)


class Storefront:
    """Wires storage, gateway, session, catalog, cart, checkout and account together."""

    def __init__(
        self,
        settings: Settings,
        session_store: Optional[KeyValueStore] = None,
        durable_store: Optional[KeyValueStore] = None,
        navigator: Optional[Navigator] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.session_store = session_store if session_store is not None else MemoryStore()
        self.durable_store = (
            durable_store if durable_store is not None
            else JsonFileStore(settings.durable_store_path)
        )
        self.navigator = navigator or Navigator()

        self.credentials = CredentialStore(self.durable_store)
        self.api = ApiClient(settings, self.credentials, self.navigator, transport=transport)
        self.session = SessionManager(self.api, self.credentials, self.navigator)
        self.catalog = CatalogService(self.api)
        self.cart = CartManager(cart_repository(self.session_store), currency=settings.currency)
        self.checkout = CheckoutService(self.cart, self.api)
        self.account = AccountService(self.api, self.session)

    def use_cart(self) -> CartManager:
        return self.cart

    def use_auth(self) -> SessionManager:
        return self.session

    async def start(self) -> SessionState:
        state = await self.session.start()
        logger.info(f"Storefront started ({state.value}, {self.cart.total_items} items in cart)")
        return state

    async def aclose(self) -> None:
        self.session.close()
        await self.api.aclose()

    async def __aenter__(self) -> "Storefront":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


def create_storefront(**kwargs) -> Storefront:
    """Build a Storefront from environment settings."""
    return Storefront(get_settings(), **kwargs)
